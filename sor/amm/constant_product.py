"""Constant-product pool (x * y = k).

Fee is taken from the input amount:
    amount_out = balance_out * a / (balance_in + a),  a = amount_in * (1 - fee)
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import ClassVar

from sor.amm.base import PoolKind, PoolPairData, RoutablePool, check_pair_balances
from sor.amm.errors import InsufficientLiquidityError
from sor.math.decimal_math import ONE, ZERO, high_precision
from sor.models.swap import SwapTypes


@dataclass
class ConstantProductPool(RoutablePool):
    """Two-token constant-product pool."""

    kind: ClassVar[PoolKind] = PoolKind.CONSTANT_PRODUCT

    @high_precision
    def normalized_liquidity(self, pair: PoolPairData) -> Decimal:
        return pair.balance_out / 2

    @high_precision
    def exact_in(self, pair: PoolPairData, amount: Decimal) -> Decimal:
        if amount <= 0:
            return ZERO
        check_pair_balances(pair)
        amount_with_fee = amount * (ONE - pair.swap_fee)
        return pair.balance_out * amount_with_fee / (pair.balance_in + amount_with_fee)

    @high_precision
    def exact_out(self, pair: PoolPairData, amount: Decimal) -> Decimal:
        if amount <= 0:
            return ZERO
        check_pair_balances(pair)
        if amount >= pair.balance_out:
            raise InsufficientLiquidityError(
                f"Pool {pair.pool_id}: requested {amount} of {pair.balance_out} available"
            )
        return pair.balance_in * amount / ((pair.balance_out - amount) * (ONE - pair.swap_fee))

    @high_precision
    def spot_price_after_swap(
        self, pair: PoolPairData, amount: Decimal, swap_type: SwapTypes
    ) -> Decimal:
        """Price after the trade: balance_in' / balance_out' / (1 - fee).

        balance_in' counts only the fee-adjusted part of the input, which is
        what moved along the curve.
        """
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
        return balance_in / balance_out / fee_factor


__all__ = ["ConstantProductPool"]
