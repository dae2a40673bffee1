"""Multi-route allocation.

Splits a swap across up to max_routes candidate routes so the cost-adjusted
return is best. For a fixed route set the optimum equalizes the marginal
price of every route that is neither empty nor at its limit. Routes are
ranked by their spot price before any trade and the k best are tried for
each k; the net of k route costs decides between subset sizes, with ties
going to fewer routes.

Routes are priced independently against the cached pool subset, which is
exact because discovery never gives one pool to two routes. Final amounts
are replayed on a private deep copy, leaving the cached subset untouched.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from decimal import Decimal

import structlog

from sor.amm.base import PoolPairData, RoutablePool
from sor.amm.errors import PoolMathError
from sor.math.decimal_math import ONE, ZERO, decimal_gt, decimal_lt, high_precision
from sor.models.swap import NoRouteReason, SwapLeg, SwapTypes
from sor.routing.types import Route

logger = structlog.get_logger()

# Newton iterations for marginal-price equalization
MAX_ITERATIONS = 50

# Stop once no allocation moves by more than this share of the amount
CONVERGENCE_TOLERANCE = Decimal("1e-15")

# Finite-difference step for price slopes, as a share of the route limit
DERIVATIVE_STEP = Decimal("1e-15")

# Floor for price slopes, as a share of the price
MIN_SLOPE = Decimal("1e-30")


@dataclass
class OptimizationResult:
    """Chosen split for one query.

    allocations maps each used route id to its given amount (input for
    ExactIn, output for ExactOut); they add up to the swap amount.
    """

    swaps: list[list[SwapLeg]] = field(default_factory=list)
    return_amount: Decimal = ZERO
    return_amount_considering_fees: Decimal = ZERO
    market_sp: Decimal = ZERO
    allocations: dict[str, Decimal] = field(default_factory=dict)
    no_route_reason: NoRouteReason | None = None

    @classmethod
    def empty(cls, reason: NoRouteReason) -> OptimizationResult:
        return cls(no_route_reason=reason)

    @property
    def is_empty(self) -> bool:
        return not self.swaps


class RoutePricer:
    """Prices one route against a fixed pool state.

    amount() and marginal_price() take the route's given amount: input for
    ExactIn, output for ExactOut. Nothing is mutated.
    """

    def __init__(self, pools: dict[str, RoutablePool], route: Route, swap_type: SwapTypes):
        self.route = route
        self.swap_type = swap_type
        self._legs: list[tuple[RoutablePool, PoolPairData]] = []
        for hop in route.hops:
            pool = pools[hop.pool_id]
            self._legs.append((pool, pool.parse_pool_pair_data(hop.token_in, hop.token_out)))

    @high_precision
    def amount(self, given: Decimal) -> Decimal:
        """Output for an input (ExactIn) or input for an output (ExactOut)."""
        if self.swap_type == SwapTypes.EXACT_IN:
            for pool, pair in self._legs:
                given = pool.exact_in(pair, given)
        else:
            for pool, pair in reversed(self._legs):
                given = pool.exact_out(pair, given)
        return given

    @high_precision
    def marginal_price(self, given: Decimal) -> Decimal:
        """Route price (token_in per token_out) after trading the given amount.

        A two-hop price is the product of the hop prices, each taken at the
        amount that hop trades.
        """
        price = ONE
        if self.swap_type == SwapTypes.EXACT_IN:
            for pool, pair in self._legs:
                price *= pool.spot_price_after_swap(pair, given, SwapTypes.EXACT_IN)
                given = pool.exact_in(pair, given)
        else:
            for pool, pair in reversed(self._legs):
                price *= pool.spot_price_after_swap(pair, given, SwapTypes.EXACT_OUT)
                given = pool.exact_out(pair, given)
        return price

    @high_precision
    def slope(self, given: Decimal, price: Decimal) -> Decimal:
        """Forward-difference derivative of marginal_price, backward near the limit."""
        limit = self.route.limit
        step = limit * DERIVATIVE_STEP
        if given + step <= limit:
            slope = (self.marginal_price(given + step) - price) / step
        else:
            slope = (price - self.marginal_price(given - step)) / step
        return max(slope, price * MIN_SLOPE)


@high_precision
def rank_routes(
    pools: dict[str, RoutablePool], routes: list[Route] | tuple[Route, ...], swap_type: SwapTypes
) -> list[Route]:
    """Usable routes, cheapest spot price first.

    Ties go to the larger limit, then the route id. Routes with a zero limit
    or whose pools cannot price a trade are dropped.
    """
    scored: list[tuple[Decimal, Decimal, str, Route]] = []
    for route in routes:
        if route.limit <= 0:
            continue
        try:
            price = RoutePricer(pools, route, swap_type).marginal_price(ZERO)
        except (PoolMathError, ArithmeticError) as e:
            logger.debug("route_unpriceable", route_id=route.id, error=str(e))
            continue
        scored.append((price, -route.limit, route.id, route))
    scored.sort(key=lambda item: item[:3])
    return [item[3] for item in scored]


def _assign_residual(allocation: list[Decimal], limits: list[Decimal], amount: Decimal) -> None:
    """Make allocation sum to amount exactly, staying inside [0, limit].

    Shortfalls go to routes already in use, most headroom first, so rounding
    never opens an empty route. Excesses come off the largest allocations.
    """
    residual = amount - sum(allocation, ZERO)
    if residual > 0:
        order = sorted(
            range(len(allocation)), key=lambda i: (allocation[i] <= 0, allocation[i] - limits[i])
        )
        for i in order:
            if residual <= 0:
                break
            added = min(residual, limits[i] - allocation[i])
            allocation[i] += added
            residual -= added
    elif residual < 0:
        order = sorted(range(len(allocation)), key=lambda i: -allocation[i])
        for i in order:
            if residual >= 0:
                break
            removed = min(-residual, allocation[i])
            allocation[i] -= removed
            residual += removed


@high_precision
def allocate(pricers: list[RoutePricer], amount: Decimal) -> list[Decimal]:
    """Split amount across routes so their marginal prices match.

    Each Newton step linearizes every route's price around its current
    allocation, p_i(x) ~ p_i + d_i * (x - x_i), and solves for the common
    price lambda. Routes whose target leaves [0, limit] are clamped to the
    bound and lambda is solved again for the rest.

    Args:
        pricers: One pricer per route; their combined limits must cover amount
        amount: Total given amount to split

    Returns:
        Allocation per route, summing exactly to amount
    """
    limits = [p.route.limit for p in pricers]
    total_limit = sum(limits, ZERO)
    allocation = [amount * limit / total_limit for limit in limits]
    _assign_residual(allocation, limits, amount)
    if len(pricers) == 1:
        return allocation

    for _ in range(MAX_ITERATIONS):
        prices = [p.marginal_price(x) for p, x in zip(pricers, allocation, strict=True)]
        slopes = [
            p.slope(x, price)
            for p, x, price in zip(pricers, allocation, prices, strict=True)
        ]

        pinned: dict[int, Decimal] = {}
        targets: dict[int, Decimal] = {}
        while True:
            free = [i for i in range(len(pricers)) if i not in pinned]
            if not free:
                break
            remaining = amount - sum(pinned.values(), ZERO)
            inverse_slopes = sum((ONE / slopes[i] for i in free), ZERO)
            intercepts = sum((allocation[i] - prices[i] / slopes[i] for i in free), ZERO)
            common_price = (remaining - intercepts) / inverse_slopes
            targets = {
                i: allocation[i] + (common_price - prices[i]) / slopes[i] for i in free
            }
            violations = {i: t for i, t in targets.items() if t < 0 or t > limits[i]}
            if not violations:
                break
            for i, t in violations.items():
                pinned[i] = ZERO if t < 0 else limits[i]

        new_allocation = [pinned[i] if i in pinned else targets[i] for i in range(len(pricers))]
        _assign_residual(new_allocation, limits, amount)
        moved = max(abs(new - old) for new, old in zip(new_allocation, allocation, strict=True))
        allocation = new_allocation
        if moved <= amount * CONVERGENCE_TOLERANCE:
            break

    return allocation


def _execute(
    working: dict[str, RoutablePool], route: Route, given: Decimal, swap_type: SwapTypes
) -> tuple[list[SwapLeg], Decimal]:
    """Trade given through route on the working copy.

    Returns the route's legs (in route order) and its computed amount.
    """
    legs: list[SwapLeg] = []
    hops = route.hops if swap_type == SwapTypes.EXACT_IN else tuple(reversed(route.hops))
    for hop in hops:
        pool = working[hop.pool_id]
        pair = pool.parse_pool_pair_data(hop.token_in, hop.token_out)
        if swap_type == SwapTypes.EXACT_IN:
            computed = pool.exact_in(pair, given)
            pool.update_balances(hop.token_in, hop.token_out, given, computed)
        else:
            computed = pool.exact_out(pair, given)
            pool.update_balances(hop.token_in, hop.token_out, computed, given)
        legs.append(
            SwapLeg(
                pool_id=hop.pool_id,
                token_in=hop.token_in,
                token_out=hop.token_out,
                swap_amount=given,
                return_amount=computed,
            )
        )
        given = computed
    if swap_type == SwapTypes.EXACT_OUT:
        legs.reverse()
    return legs, given


def _market_price(
    working: dict[str, RoutablePool],
    used: list[tuple[Route, Decimal]],
    swap_type: SwapTypes,
) -> Decimal:
    """Spot price of the chosen set after trading.

    Routes still below their limit share one marginal price at the optimum;
    that price is reported. If every route is saturated the cheapest is used.
    """
    unsaturated = [r for r, x in used if x < r.limit] or [r for r, _ in used]
    return min(RoutePricer(working, r, swap_type).marginal_price(ZERO) for r in unsaturated)


@high_precision
def _evaluate_subset(
    pools: dict[str, RoutablePool],
    subset: list[Route],
    amount: Decimal,
    swap_type: SwapTypes,
    route_cost: Decimal,
) -> OptimizationResult:
    pricers = [RoutePricer(pools, route, swap_type) for route in subset]
    allocation = allocate(pricers, amount)

    working = copy.deepcopy(pools)
    swaps: list[list[SwapLeg]] = []
    used: list[tuple[Route, Decimal]] = []
    total = ZERO
    for route, given in zip(subset, allocation, strict=True):
        if given <= 0:
            continue
        legs, computed = _execute(working, route, given, swap_type)
        swaps.append(legs)
        used.append((route, given))
        total += computed

    fees = route_cost * len(used)
    net = total - fees if swap_type == SwapTypes.EXACT_IN else total + fees
    return OptimizationResult(
        swaps=swaps,
        return_amount=total,
        return_amount_considering_fees=net,
        market_sp=_market_price(working, used, swap_type),
        allocations={route.id: given for route, given in used},
    )


def _is_better(candidate: Decimal, best: Decimal, swap_type: SwapTypes) -> bool:
    if swap_type == SwapTypes.EXACT_IN:
        return decimal_gt(candidate, best)
    return decimal_lt(candidate, best)


@high_precision
def optimize(
    pools: dict[str, RoutablePool],
    routes: list[Route] | tuple[Route, ...],
    amount: Decimal,
    swap_type: SwapTypes,
    max_routes: int,
    route_cost: Decimal = ZERO,
) -> OptimizationResult:
    """Pick the route set and split with the best cost-adjusted return.

    Args:
        pools: Pool subset for the query (read only)
        routes: Limit-annotated candidate routes
        amount: Amount to swap: input for ExactIn, output for ExactOut
        swap_type: Swap direction
        max_routes: Largest number of routes one result may use
        route_cost: Cost of one route, in output token for ExactIn and input token for ExactOut

    Returns:
        OptimizationResult; empty with a reason when no split is possible
    """
    if amount <= 0:
        return OptimizationResult.empty(NoRouteReason.ZERO_AMOUNT)
    if not routes:
        return OptimizationResult.empty(NoRouteReason.NO_LIQUIDITY_PATH)

    ranked = rank_routes(pools, routes, swap_type)
    if not ranked:
        return OptimizationResult.empty(NoRouteReason.INSUFFICIENT_LIQUIDITY)

    best: OptimizationResult | None = None
    for k in range(1, min(max_routes, len(ranked)) + 1):
        subset = ranked[:k]
        if sum((r.limit for r in subset), ZERO) < amount:
            continue
        try:
            result = _evaluate_subset(pools, subset, amount, swap_type, route_cost)
        except (PoolMathError, ArithmeticError) as e:
            logger.debug("route_subset_failed", routes=k, error=str(e))
            continue
        if best is None or _is_better(
            result.return_amount_considering_fees,
            best.return_amount_considering_fees,
            swap_type,
        ):
            best = result

    if best is None:
        return OptimizationResult.empty(NoRouteReason.INSUFFICIENT_LIQUIDITY)

    logger.debug(
        "route_optimization_complete",
        routes_used=len(best.swaps),
        candidates=len(ranked),
        return_amount=str(best.return_amount),
    )
    return best


__all__ = [
    "MAX_ITERATIONS",
    "OptimizationResult",
    "RoutePricer",
    "allocate",
    "optimize",
    "rank_routes",
]
