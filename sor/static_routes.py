"""Fixed-rate routes for liquid-staking pairs.

Some pairs convert at a protocol-defined rate (for example wstETH and
stETH), so general routing would only add price impact that does not
exist. The orchestrator sends those pairs here instead of to the
optimizer.

The rate comes from the pool snapshot: each token of the referenced pool
carries a priceRate, and one token_a converts to
priceRate(token_a) / priceRate(token_b) of token_b.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal
from typing import Protocol

import structlog

from sor.constants import STETH, WSTETH, ChainId
from sor.math.decimal_math import ONE, high_precision, to_decimal
from sor.models.pools import SubgraphPool
from sor.models.swap import NoRouteReason, SwapInfo, SwapLeg, SwapTypes
from sor.models.types import normalize_address

logger = structlog.get_logger()


@dataclass(frozen=True)
class FixedRatePair:
    """A pair priced by the token rates of one pool."""

    token_a: str
    token_b: str
    pool_id: str

    @property
    def key(self) -> frozenset[str]:
        return frozenset({normalize_address(self.token_a), normalize_address(self.token_b)})


class FixedRateRouteBuilder(Protocol):
    """Builds results for pairs that bypass general routing."""

    def is_fixed_rate_pair(self, token_in: str, token_out: str) -> bool: ...

    def build_static_swap(
        self,
        pools: list[SubgraphPool],
        token_in: str,
        token_out: str,
        swap_type: SwapTypes,
        amount: Decimal,
    ) -> SwapInfo: ...


# Lido wstETH/stETH conversion, priced by the wstETH/WETH MetaStable pool
LIDO_PAIRS: dict[int, tuple[FixedRatePair, ...]] = {
    ChainId.MAINNET: (
        FixedRatePair(
            token_a=WSTETH,
            token_b=STETH,
            pool_id="0x32296969ef14eb0c6d29669c550d4a0449130230000200000000000000000080",
        ),
    ),
}


class StaticRouteBuilder:
    """Fixed-rate builder over a configurable set of pairs."""

    def __init__(self, pairs: Iterable[FixedRatePair] = ()) -> None:
        self._pairs: dict[frozenset[str], FixedRatePair] = {pair.key: pair for pair in pairs}

    @classmethod
    def for_chain(cls, chain_id: int) -> StaticRouteBuilder:
        return cls(LIDO_PAIRS.get(chain_id, ()))

    def is_fixed_rate_pair(self, token_in: str, token_out: str) -> bool:
        key = frozenset({normalize_address(token_in), normalize_address(token_out)})
        return len(key) == 2 and key in self._pairs

    @staticmethod
    def _rate(pool: SubgraphPool, token: str) -> Decimal:
        for entry in pool.tokens:
            if normalize_address(entry.address) == token:
                return to_decimal(entry.price_rate)
        raise ValueError(f"Token {token} not in pool {pool.id}")

    @high_precision
    def build_static_swap(
        self,
        pools: list[SubgraphPool],
        token_in: str,
        token_out: str,
        swap_type: SwapTypes,
        amount: Decimal,
    ) -> SwapInfo:
        """Convert amount at the pool's rate.

        Returns:
            One-leg SwapInfo, or the no-route result when the pricing pool is
            missing from the snapshot or has no usable rate
        """
        token_in = normalize_address(token_in)
        token_out = normalize_address(token_out)
        if amount <= 0:
            return SwapInfo.empty(NoRouteReason.ZERO_AMOUNT)

        pair = self._pairs[frozenset({token_in, token_out})]
        pool = next((p for p in pools if p.id == pair.pool_id), None)
        if pool is None:
            logger.warning("fixed_rate_pool_missing", pool_id=pair.pool_id)
            return SwapInfo.empty(NoRouteReason.NO_LIQUIDITY_PATH)

        # Rates are looked up for the pair's tokens; the pricing pool may hold
        # a different token standing in for token_b (e.g. WETH for stETH)
        token_a = normalize_address(pair.token_a)
        try:
            rate_a = self._rate(pool, token_a)
            rate_b = ONE
            if pool.has_token(pair.token_b):
                rate_b = self._rate(pool, normalize_address(pair.token_b))
        except ValueError as e:
            logger.warning("fixed_rate_unavailable", pool_id=pool.id, error=str(e))
            return SwapInfo.empty(NoRouteReason.NO_LIQUIDITY_PATH)
        if rate_a <= 0 or rate_b <= 0:
            return SwapInfo.empty(NoRouteReason.NO_LIQUIDITY_PATH)

        # token_out received per token_in
        rate = rate_a / rate_b if token_in == token_a else rate_b / rate_a
        if swap_type == SwapTypes.EXACT_IN:
            returned = amount * rate
        else:
            returned = amount / rate

        leg = SwapLeg(
            pool_id=pool.id,
            token_in=token_in,
            token_out=token_out,
            swap_amount=amount,
            return_amount=returned,
            token_in_index=0,
            token_out_index=1,
        )
        return SwapInfo(
            token_addresses=[token_in, token_out],
            swaps=[[leg]],
            swap_amount=amount,
            swap_amount_for_swaps=amount,
            return_amount=returned,
            return_amount_considering_fees=returned,
            return_amount_from_swaps=returned,
            market_sp=ONE / rate,
            token_in=token_in,
            token_out=token_out,
        )


__all__ = ["FixedRatePair", "FixedRateRouteBuilder", "StaticRouteBuilder", "LIDO_PAIRS"]
