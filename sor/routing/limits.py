"""Route limit calculation.

A route's limit is the largest amount it may trade without pushing any of
its pools past the pricing safety bound: input for ExactIn, output for
ExactOut. Two-hop limits take the tighter of the two pools, mapped through
the first pool's pricing.
"""

from __future__ import annotations

import dataclasses
from decimal import Decimal

import structlog

from sor.amm.base import RoutablePool
from sor.amm.errors import PoolMathError
from sor.math.decimal_math import ZERO, high_precision
from sor.models.swap import SwapTypes
from sor.routing.types import CandidateRoutes, Route

logger = structlog.get_logger()


def _direct_limit(pool: RoutablePool, route: Route, swap_type: SwapTypes) -> Decimal:
    hop = route.hops[0]
    pair = pool.parse_pool_pair_data(hop.token_in, hop.token_out)
    return pool.limit_amount(pair, swap_type)


def _two_hop_limit(
    first: RoutablePool, second: RoutablePool, route: Route, swap_type: SwapTypes
) -> Decimal:
    hop1, hop2 = route.hops
    pair1 = first.parse_pool_pair_data(hop1.token_in, hop1.token_out)
    pair2 = second.parse_pool_pair_data(hop2.token_in, hop2.token_out)

    if swap_type == SwapTypes.EXACT_IN:
        limit = first.limit_amount(pair1, SwapTypes.EXACT_IN)
        # Input to the first pool that saturates the second pool's input bound
        hop_limit = second.limit_amount(pair2, SwapTypes.EXACT_IN)
        if hop_limit < first.limit_amount(pair1, SwapTypes.EXACT_OUT):
            limit = min(limit, first.exact_out(pair1, hop_limit))
        return limit

    limit = second.limit_amount(pair2, SwapTypes.EXACT_OUT)
    # The second pool cannot consume more hop token than the first can release
    hop_available = first.limit_amount(pair1, SwapTypes.EXACT_OUT)
    if second.exact_out(pair2, limit) > hop_available:
        limit = second.exact_in(pair2, hop_available)
    return limit


@high_precision
def route_limit(pools: dict[str, RoutablePool], route: Route, swap_type: SwapTypes) -> Decimal:
    """Limit for one route; zero when its pools cannot price a trade."""
    try:
        if route.is_multihop:
            first, second = (pools[pool_id] for pool_id in route.pool_ids)
            limit = _two_hop_limit(first, second, route, swap_type)
        else:
            limit = _direct_limit(pools[route.pool_ids[0]], route, swap_type)
    except (PoolMathError, ArithmeticError) as e:
        logger.debug("route_limit_unavailable", route_id=route.id, error=str(e))
        return ZERO
    return max(limit, ZERO)


def compute_limits(candidates: CandidateRoutes, swap_type: SwapTypes) -> CandidateRoutes:
    """Annotate every route in candidates with its limit.

    Returns a new CandidateRoutes sharing the same pool subset; pools are only
    read.
    """
    routes = tuple(
        dataclasses.replace(route, limit=route_limit(candidates.pools, route, swap_type))
        for route in candidates.routes
    )
    return dataclasses.replace(candidates, routes=routes)


__all__ = ["route_limit", "compute_limits"]
