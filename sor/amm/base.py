"""Base classes for pool variants.

Every pool kind exposes the same capabilities to discovery, limit
calculation and the optimizer: pair data, spot price (before and after a
trade), the safety-bounded trade limit, pricing in both directions and
balance updates on a working copy.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import ClassVar

from sor.amm.errors import ZeroBalanceError
from sor.constants import MAX_IN_RATIO, MAX_OUT_RATIO
from sor.math.decimal_math import ONE, ZERO, high_precision
from sor.models.swap import SwapTypes
from sor.models.types import normalize_address


class PoolKind(str, Enum):
    """Closed set of supported pool variants."""

    CONSTANT_PRODUCT = "ConstantProduct"
    WEIGHTED = "Weighted"
    STABLE = "Stable"


@dataclass(frozen=True)
class PoolPairData:
    """Snapshot of a pool as seen by one (token_in, token_out) pair.

    balances holds every pool balance in token order, which stable math needs
    for its invariant. weight_* default to one for unweighted pools and
    rate_* to one for pools without price rates.
    """

    pool_id: str
    kind: PoolKind
    token_in: str
    token_out: str
    balance_in: Decimal
    balance_out: Decimal
    swap_fee: Decimal
    weight_in: Decimal = ONE
    weight_out: Decimal = ONE
    index_in: int = 0
    index_out: int = 1
    balances: tuple[Decimal, ...] = ()
    rate_in: Decimal = ONE
    rate_out: Decimal = ONE
    amp: Decimal = ZERO


def check_pair_balances(pair: PoolPairData) -> None:
    """Raise ZeroBalanceError if either side of the pair is empty."""
    if pair.balance_in <= 0 or pair.balance_out <= 0:
        raise ZeroBalanceError(f"Pool {pair.pool_id} has an empty side")


@dataclass
class RoutablePool(ABC):
    """Mutable pool state shared by all variants.

    balances maps lowercase token address to balance in token units.
    Instances held by the query cache are never mutated; the optimizer works
    on deep copies.
    """

    id: str
    balances: dict[str, Decimal]
    swap_fee: Decimal
    start_time: int | None = field(default=None, kw_only=True)
    end_time: int | None = field(default=None, kw_only=True)

    kind: ClassVar[PoolKind]

    @property
    def tokens(self) -> list[str]:
        """Token addresses in pool order."""
        return list(self.balances)

    def has_token(self, token: str) -> bool:
        """Return True if the pool holds the given token."""
        return normalize_address(token) in self.balances

    def token_index(self, token: str) -> int:
        """Position of token in pool order."""
        token_norm = normalize_address(token)
        try:
            return self.tokens.index(token_norm)
        except ValueError:
            raise ValueError(f"Token {token} not in pool {self.id}") from None

    def parse_pool_pair_data(self, token_in: str, token_out: str) -> PoolPairData:
        """Build the pair view used by the pricing functions.

        Raises:
            ValueError: If either token is not in the pool
        """
        token_in_norm = normalize_address(token_in)
        token_out_norm = normalize_address(token_out)
        index_in = self.token_index(token_in_norm)
        index_out = self.token_index(token_out_norm)
        fields: dict[str, object] = {
            "balances": tuple(self.balances.values()),
        }
        fields.update(self._pair_extras(token_in_norm, token_out_norm))
        return PoolPairData(
            pool_id=self.id,
            kind=self.kind,
            token_in=token_in_norm,
            token_out=token_out_norm,
            balance_in=self.balances[token_in_norm],
            balance_out=self.balances[token_out_norm],
            swap_fee=self.swap_fee,
            index_in=index_in,
            index_out=index_out,
            **fields,  # type: ignore[arg-type]
        )

    def _pair_extras(self, token_in: str, token_out: str) -> dict[str, object]:
        """Variant-specific fields of PoolPairData."""
        return {}

    @high_precision
    def limit_amount(self, pair: PoolPairData, swap_type: SwapTypes) -> Decimal:
        """Largest amount one swap may trade through this pair.

        ExactIn limits the input, ExactOut limits the output.
        """
        if swap_type == SwapTypes.EXACT_IN:
            return pair.balance_in * MAX_IN_RATIO
        return pair.balance_out * MAX_OUT_RATIO

    def spot_price(self, pair: PoolPairData) -> Decimal:
        """Marginal price (token_in per token_out, fee included) before trading."""
        return self.spot_price_after_swap(pair, ZERO, SwapTypes.EXACT_IN)

    @abstractmethod
    def normalized_liquidity(self, pair: PoolPairData) -> Decimal:
        """Liquidity proxy in token_out units, used to rank pools."""
        ...

    @abstractmethod
    def exact_in(self, pair: PoolPairData, amount: Decimal) -> Decimal:
        """Output received for an exact input amount."""
        ...

    @abstractmethod
    def exact_out(self, pair: PoolPairData, amount: Decimal) -> Decimal:
        """Input required for an exact output amount."""
        ...

    @abstractmethod
    def spot_price_after_swap(
        self, pair: PoolPairData, amount: Decimal, swap_type: SwapTypes
    ) -> Decimal:
        """Marginal price after trading amount (input for ExactIn, output for ExactOut)."""
        ...

    @high_precision
    def update_balances(
        self, token_in: str, token_out: str, amount_in: Decimal, amount_out: Decimal
    ) -> None:
        """Apply an executed hop to this pool's balances."""
        token_in_norm = normalize_address(token_in)
        token_out_norm = normalize_address(token_out)
        self.balances[token_in_norm] += amount_in
        self.balances[token_out_norm] -= amount_out


__all__ = ["PoolKind", "PoolPairData", "RoutablePool", "check_pair_balances"]
