"""Weighted-product pool.

Invariant: prod(balance_i ** weight_i) = k. Pricing for a token pair:
    out = Bo * (1 - (Bi / (Bi + a)) ** (wi / wo)),   a = in * (1 - fee)
    in  = Bi * ((Bo / (Bo - out)) ** (wo / wi) - 1) / (1 - fee)
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import ClassVar

from sor.amm.base import PoolKind, PoolPairData, RoutablePool, check_pair_balances
from sor.amm.errors import InsufficientLiquidityError
from sor.math.decimal_math import ONE, ZERO, high_precision
from sor.models.swap import SwapTypes
from sor.models.types import normalize_address


@dataclass
class WeightedPool(RoutablePool):
    """Weighted pool with two or more tokens.

    weights are normalized (they sum to one) and keyed like balances.
    """

    weights: dict[str, Decimal]

    kind: ClassVar[PoolKind] = PoolKind.WEIGHTED

    def _pair_extras(self, token_in: str, token_out: str) -> dict[str, object]:
        return {
            "weight_in": self.weights[normalize_address(token_in)],
            "weight_out": self.weights[normalize_address(token_out)],
        }

    @high_precision
    def normalized_liquidity(self, pair: PoolPairData) -> Decimal:
        return pair.balance_out * pair.weight_in / (pair.weight_in + pair.weight_out)

    @high_precision
    def exact_in(self, pair: PoolPairData, amount: Decimal) -> Decimal:
        if amount <= 0:
            return ZERO
        check_pair_balances(pair)
        amount_with_fee = amount * (ONE - pair.swap_fee)
        base = pair.balance_in / (pair.balance_in + amount_with_fee)
        return pair.balance_out * (ONE - base ** (pair.weight_in / pair.weight_out))

    @high_precision
    def exact_out(self, pair: PoolPairData, amount: Decimal) -> Decimal:
        if amount <= 0:
            return ZERO
        check_pair_balances(pair)
        if amount >= pair.balance_out:
            raise InsufficientLiquidityError(
                f"Pool {pair.pool_id}: requested {amount} of {pair.balance_out} available"
            )
        base = pair.balance_out / (pair.balance_out - amount)
        power = base ** (pair.weight_out / pair.weight_in)
        return pair.balance_in * (power - ONE) / (ONE - pair.swap_fee)

    @high_precision
    def spot_price_after_swap(
        self, pair: PoolPairData, amount: Decimal, swap_type: SwapTypes
    ) -> Decimal:
        """Price after the trade: (Bi' / wi) / (Bo' / wo) / (1 - fee)."""
        check_pair_balances(pair)
        fee_factor = ONE - pair.swap_fee
        if swap_type == SwapTypes.EXACT_IN:
            amount_in = amount
            amount_out = self.exact_in(pair, amount)
        else:
            amount_out = amount
            amount_in = self.exact_out(pair, amount)
        balance_in = pair.balance_in + amount_in * fee_factor
        balance_out = pair.balance_out - amount_out
        return (balance_in / pair.weight_in) / (balance_out / pair.weight_out) / fee_factor


__all__ = ["WeightedPool"]
