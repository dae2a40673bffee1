"""Pytest configuration and fixtures."""

from decimal import Decimal

import pytest

from sor.models.pools import SubgraphPool
from tests.helpers import TOKEN_A, TOKEN_B, make_cp_pool

# =============================================================================
# Pool fixtures
# =============================================================================


@pytest.fixture
def two_equal_pools() -> list[SubgraphPool]:
    """Two identical constant-product A/B pools, 1000/1000, 0.3% fee."""
    return [
        make_cp_pool("pool-1", TOKEN_A, TOKEN_B, "1000", "1000"),
        make_cp_pool("pool-2", TOKEN_A, TOKEN_B, "1000", "1000"),
    ]


# =============================================================================
# Mock classes for dependency injection
# =============================================================================


class MockCostOracle:
    """Cost oracle returning a fixed raw cost, or raising.

    Usage:
        oracle = MockCostOracle(raw_cost=Decimal("5000000"))
        oracle = MockCostOracle(error=RuntimeError("rpc down"))
    """

    def __init__(self, raw_cost: object = Decimal(0), error: Exception | None = None) -> None:
        self.raw_cost = raw_cost
        self.error = error
        self.calls: list[tuple[str, Decimal, int]] = []  # Track calls for assertions

    async def price_in_native(self, token: str, gas_price: Decimal, gas_units: int) -> object:
        self.calls.append((token, gas_price, gas_units))
        if self.error is not None:
            raise self.error
        return self.raw_cost


class MockPoolSource:
    """Pool source with a fixed snapshot and readiness flag."""

    def __init__(self, pools: list[SubgraphPool] | None = None, ready: bool = True) -> None:
        self.pools = pools or []
        self.ready = ready
        self.refresh_calls = 0

    def get_pools(self) -> list[SubgraphPool]:
        return self.pools

    def is_ready(self) -> bool:
        return self.ready

    async def refresh(
        self, use_live_data: bool = True, seed_data: list[SubgraphPool] | None = None
    ) -> bool:
        self.refresh_calls += 1
        if seed_data is not None:
            self.pools = seed_data
        self.ready = True
        return True


@pytest.fixture
def mock_oracle() -> MockCostOracle:
    """Oracle returning 5 USDC (raw, 6 decimals) per route."""
    return MockCostOracle(raw_cost=Decimal("5000000"))
