"""Per-route cost in output-token units.

Using one more route costs roughly swap_gas_units of gas. The optimizer
needs that cost in the token it is maximizing (or minimizing), so it is
converted once per token and cached:

1. If a manual cost is given, store it as-is
2. If the token is native or wrapped native, cost = gas_price * gas_units / 1e18
3. Otherwise ask the price oracle for the cost in raw token units and
   divide by 10**decimals
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Protocol

import structlog

from sor.constants import NATIVE_DECIMALS, SWAP_GAS_COST, WRAPPED_NATIVE, ZERO_ADDRESS, ChainId
from sor.errors import CostOracleFailure
from sor.math.decimal_math import DECIMAL_CONTEXT, ZERO
from sor.models.types import normalize_address

logger = structlog.get_logger()


class CostOracle(Protocol):
    """Prices gas in a non-native token."""

    async def price_in_native(self, token: str, gas_price: Decimal, gas_units: int) -> Decimal:
        """Return the cost of gas_units at gas_price, in raw units of token.

        Raises:
            Exception: Any failure; the estimator wraps it in CostOracleFailure
        """
        ...


class CostEstimator:
    """Computes and caches the per-route cost for each token.

    The cache is owned by this instance and lives as long as it does;
    clear() empties it, for example after a gas price change.
    """

    def __init__(
        self,
        gas_price: Decimal = ZERO,
        swap_gas_units: int = SWAP_GAS_COST,
        chain_id: int = ChainId.MAINNET,
        oracle: CostOracle | None = None,
    ) -> None:
        self.gas_price = gas_price
        self.swap_gas_units = swap_gas_units
        self.chain_id = chain_id
        self.oracle = oracle
        self._costs: dict[str, Decimal] = {}

    def is_native(self, token: str) -> bool:
        """Return True for the chain's native asset or its wrapped form."""
        token_norm = normalize_address(token)
        return token_norm == ZERO_ADDRESS or token_norm == WRAPPED_NATIVE.get(self.chain_id)

    def native_cost(self) -> Decimal:
        """Cost of one route in native units."""
        return DECIMAL_CONTEXT.divide(
            DECIMAL_CONTEXT.multiply(self.gas_price, Decimal(self.swap_gas_units)),
            Decimal(10) ** NATIVE_DECIMALS,
        )

    def get_cost_output_token(self, token: str) -> Decimal:
        """Cached cost for token, or zero if none has been computed yet."""
        return self._costs.get(normalize_address(token), ZERO)

    async def set_cost_output_token(
        self, token: str, decimals: int, cost: Decimal | None = None
    ) -> Decimal:
        """Compute (or set) and cache the per-route cost for token.

        Args:
            token: Token the cost is expressed in
            decimals: Token decimals, used to scale the oracle's raw amount
            cost: Manual override, stored verbatim

        Returns:
            The cached cost

        Raises:
            CostOracleFailure: If the oracle fails or returns an invalid value
        """
        token_norm = normalize_address(token)
        if cost is not None:
            self._costs[token_norm] = cost
            return cost

        if self.is_native(token_norm):
            value = self.native_cost()
        else:
            value = await self._oracle_cost(token_norm, decimals)

        self._costs[token_norm] = value
        logger.debug("route_cost_updated", token=token_norm, cost=str(value))
        return value

    async def estimate(
        self, token: str, decimals: int, manual_override: Decimal | None = None
    ) -> Decimal:
        """Cached cost for token, computing it on first use.

        A manual override always replaces the cached value.
        """
        token_norm = normalize_address(token)
        if manual_override is None and token_norm in self._costs:
            return self._costs[token_norm]
        return await self.set_cost_output_token(token_norm, decimals, manual_override)

    async def _oracle_cost(self, token: str, decimals: int) -> Decimal:
        if self.oracle is None:
            raise CostOracleFailure(token, "no price oracle configured")
        try:
            raw = await self.oracle.price_in_native(token, self.gas_price, self.swap_gas_units)
        except CostOracleFailure:
            raise
        except Exception as e:
            logger.warning("cost_oracle_failed", token=token, error=str(e))
            raise CostOracleFailure(token, str(e)) from e

        try:
            raw_cost = Decimal(raw)
        except (InvalidOperation, TypeError, ValueError) as e:
            raise CostOracleFailure(token, f"non-numeric value {raw!r}") from e
        if not raw_cost.is_finite() or raw_cost < 0:
            raise CostOracleFailure(token, f"invalid value {raw!r}")

        return DECIMAL_CONTEXT.divide(raw_cost, Decimal(10) ** decimals)

    def clear(self) -> None:
        """Drop every cached cost."""
        self._costs.clear()


__all__ = ["CostOracle", "CostEstimator"]
