"""StableSwap pool (Curve-style invariant).

Invariant for n tokens with amplification A (Ann = A * n**n):
    Ann * sum(x) + D = Ann * D + D**(n+1) / (n**n * prod(x))

Balances are scaled by each token's price rate before entering the
invariant, so the same math serves plain and meta-stable pools.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import ClassVar

from sor.amm.base import PoolKind, PoolPairData, RoutablePool, check_pair_balances
from sor.amm.errors import (
    InsufficientLiquidityError,
    StableGetBalanceDidNotConverge,
    StableInvariantDidNotConverge,
    ZeroBalanceError,
)
from sor.constants import STABLE_MAX_OUT_RATIO
from sor.math.decimal_math import ONE, ZERO, high_precision
from sor.models.swap import SwapTypes
from sor.models.types import normalize_address

# Maximum iterations for Newton-Raphson convergence
_STABLE_MAX_ITERATIONS = 255

# Relative step size at which Newton-Raphson is considered converged
_CONVERGENCE_TOLERANCE = Decimal("1e-40")


def _converged(new: Decimal, prev: Decimal) -> bool:
    return abs(new - prev) <= abs(prev) * _CONVERGENCE_TOLERANCE


def _amp_times_total(amp: Decimal, n_coins: int) -> Decimal:
    return amp * Decimal(n_coins) ** n_coins


@high_precision
def calculate_invariant(amp: Decimal, balances: tuple[Decimal, ...]) -> Decimal:
    """Calculate StableSwap invariant D using Newton-Raphson iteration.

    Algorithm:
        1. Initial guess: D = sum(balances)
        2. D_p = D**(n+1) / (n**n * prod(balances)), built one balance at a time
        3. D = (Ann * S + n * D_p) * D / ((Ann - 1) * D + (n + 1) * D_p)

    Args:
        amp: Amplification parameter A
        balances: Token balances, already scaled by price rate

    Returns:
        The invariant D

    Raises:
        ZeroBalanceError: If any balance is not positive
        StableInvariantDidNotConverge: If iteration doesn't converge
    """
    n_coins = len(balances)
    if n_coins == 0:
        return ZERO

    for i, bal in enumerate(balances):
        if bal <= 0:
            raise ZeroBalanceError(f"Balance at index {i} must be positive")

    sum_balances = sum(balances, ZERO)
    ann = _amp_times_total(amp, n_coins)
    n = Decimal(n_coins)
    d_prev = sum_balances

    for _ in range(_STABLE_MAX_ITERATIONS):
        d_p = d_prev
        for bal in balances:
            d_p = d_p * d_prev / (n * bal)

        numerator = (ann * sum_balances + n * d_p) * d_prev
        denominator = (ann - ONE) * d_prev + (n + ONE) * d_p
        d_new = numerator / denominator

        if _converged(d_new, d_prev):
            return d_new
        d_prev = d_new

    raise StableInvariantDidNotConverge(
        f"Stable invariant did not converge after {_STABLE_MAX_ITERATIONS} iterations"
    )


@high_precision
def get_token_balance_given_invariant_and_all_other_balances(
    amp: Decimal,
    balances: tuple[Decimal, ...],
    invariant: Decimal,
    token_index: int,
) -> Decimal:
    """Solve for balances[token_index] given D and all other balances.

    Iterates y = (y**2 + c) / (2y + b - D) where
        c = D**(n+1) / (n**n * prod(x_j, j != k) * Ann)
        b = sum(x_j, j != k) + D / Ann

    Raises:
        StableGetBalanceDidNotConverge: If iteration doesn't converge
        IndexError: If token_index is out of range
    """
    n_coins = len(balances)
    if token_index < 0 or token_index >= n_coins:
        raise IndexError(f"token_index {token_index} out of range for {n_coins} tokens")

    ann = _amp_times_total(amp, n_coins)
    n = Decimal(n_coins)
    c = invariant
    sum_others = ZERO
    for j, bal in enumerate(balances):
        if j == token_index:
            continue
        if bal <= 0:
            raise ZeroBalanceError(f"Balance at index {j} must be positive")
        sum_others += bal
        c = c * invariant / (bal * n)
    c = c * invariant / (ann * n)
    b = sum_others + invariant / ann

    token_balance = invariant
    for _ in range(_STABLE_MAX_ITERATIONS):
        prev = token_balance
        denominator = 2 * token_balance + b - invariant
        if denominator <= 0:
            raise StableGetBalanceDidNotConverge("Denominator became non-positive")
        token_balance = (token_balance * token_balance + c) / denominator
        if _converged(token_balance, prev):
            return token_balance

    raise StableGetBalanceDidNotConverge(
        f"Stable get_balance did not converge after {_STABLE_MAX_ITERATIONS} iterations"
    )


@high_precision
def invariant_partial(
    amp: Decimal, balances: tuple[Decimal, ...], invariant: Decimal, token_index: int
) -> Decimal:
    """Partial derivative of the invariant equation with respect to one balance.

    dF/dx_k = Ann + D_p / x_k. The marginal exchange rate between two tokens
    is the ratio of their partials.
    """
    n_coins = len(balances)
    n = Decimal(n_coins)
    d_p = invariant
    for bal in balances:
        d_p = d_p * invariant / (n * bal)
    return _amp_times_total(amp, n_coins) + d_p / balances[token_index]


@dataclass
class StablePool(RoutablePool):
    """Stable pool with two or more tokens.

    amp is the unscaled amplification parameter A. price_rates scale each
    balance into a common unit (one for plain stable pools).
    """

    amp: Decimal
    price_rates: dict[str, Decimal] = field(default_factory=dict)

    kind: ClassVar[PoolKind] = PoolKind.STABLE

    def rate(self, token: str) -> Decimal:
        return self.price_rates.get(normalize_address(token), ONE)

    @high_precision
    def _pair_extras(self, token_in: str, token_out: str) -> dict[str, object]:
        return {
            "balances": tuple(bal * self.rate(tok) for tok, bal in self.balances.items()),
            "rate_in": self.rate(token_in),
            "rate_out": self.rate(token_out),
            "amp": self.amp,
        }

    @high_precision
    def normalized_liquidity(self, pair: PoolPairData) -> Decimal:
        return pair.balance_out * pair.amp

    @high_precision
    def limit_amount(self, pair: PoolPairData, swap_type: SwapTypes) -> Decimal:
        """Stable curves stay well-defined deep into a pool, so the bound is on output.

        ExactIn is limited to the input that extracts that output.
        """
        max_out = pair.balance_out * STABLE_MAX_OUT_RATIO
        if swap_type == SwapTypes.EXACT_OUT:
            return max_out
        return self.exact_out(pair, max_out)

    @high_precision
    def exact_in(self, pair: PoolPairData, amount: Decimal) -> Decimal:
        if amount <= 0:
            return ZERO
        check_pair_balances(pair)
        balances = list(pair.balances)
        invariant = calculate_invariant(pair.amp, pair.balances)
        balances[pair.index_in] += amount * (ONE - pair.swap_fee) * pair.rate_in
        new_out = get_token_balance_given_invariant_and_all_other_balances(
            pair.amp, tuple(balances), invariant, pair.index_out
        )
        amount_out = (pair.balances[pair.index_out] - new_out) / pair.rate_out
        return max(amount_out, ZERO)

    @high_precision
    def exact_out(self, pair: PoolPairData, amount: Decimal) -> Decimal:
        if amount <= 0:
            return ZERO
        check_pair_balances(pair)
        if amount >= pair.balance_out:
            raise InsufficientLiquidityError(
                f"Pool {pair.pool_id}: requested {amount} of {pair.balance_out} available"
            )
        balances = list(pair.balances)
        invariant = calculate_invariant(pair.amp, pair.balances)
        balances[pair.index_out] -= amount * pair.rate_out
        new_in = get_token_balance_given_invariant_and_all_other_balances(
            pair.amp, tuple(balances), invariant, pair.index_in
        )
        scaled_in = new_in - pair.balances[pair.index_in]
        return scaled_in / pair.rate_in / (ONE - pair.swap_fee)

    @high_precision
    def spot_price_after_swap(
        self, pair: PoolPairData, amount: Decimal, swap_type: SwapTypes
    ) -> Decimal:
        """Price after the trade: (dF/dx_out * rate_out) / (dF/dx_in * rate_in) / (1 - fee)."""
        check_pair_balances(pair)
        fee_factor = ONE - pair.swap_fee
        if swap_type == SwapTypes.EXACT_IN:
            amount_in = amount
            amount_out = self.exact_in(pair, amount)
        else:
            amount_out = amount
            amount_in = self.exact_out(pair, amount)

        invariant = calculate_invariant(pair.amp, pair.balances)
        balances = list(pair.balances)
        balances[pair.index_in] += amount_in * fee_factor * pair.rate_in
        balances[pair.index_out] -= amount_out * pair.rate_out
        if balances[pair.index_out] <= 0:
            raise InsufficientLiquidityError(f"Pool {pair.pool_id} drained")

        after = tuple(balances)
        partial_in = invariant_partial(pair.amp, after, invariant, pair.index_in)
        partial_out = invariant_partial(pair.amp, after, invariant, pair.index_out)
        return (partial_out * pair.rate_out) / (partial_in * pair.rate_in) / fee_factor


__all__ = [
    "StablePool",
    "calculate_invariant",
    "get_token_balance_given_invariant_and_all_other_balances",
    "invariant_partial",
]
