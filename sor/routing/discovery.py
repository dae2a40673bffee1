"""Candidate route discovery.

Finds the pools connecting tokenIn and tokenOut directly, plus two-hop
routes through intermediate "hop" tokens. Hop tokens are the tokens paired
with tokenIn in some pool and with tokenOut in another, the same adjacency
idea as a token graph restricted to paths of length two.

Every pool carries at most one route. Pools holding both tokens are direct
routes only; hop legs come from pools holding exactly one of them, and a
pool picked for one hop route is not reused by another. Routes priced
independently therefore never trade against the same balances.

The hop search is bounded by max_routes. It is a heuristic: with highly
fragmented liquidity some profitable hop routes may not be considered.
"""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal

import structlog

from sor.amm.base import RoutablePool
from sor.amm.parsing import parse_pools
from sor.math.decimal_math import high_precision
from sor.models.pools import SubgraphPool
from sor.models.swap import DisabledOptions
from sor.models.types import normalize_address
from sor.routing.types import CandidateRoutes, Route, RouteHop

logger = structlog.get_logger()


def _rank_pools(
    pools: Iterable[RoutablePool], token_in: str, token_out: str
) -> list[tuple[Decimal, RoutablePool]]:
    """Pools holding both tokens, most liquid first (liquidity in token_out units)."""
    ranked = [
        (pool.normalized_liquidity(pool.parse_pool_pair_data(token_in, token_out)), pool)
        for pool in pools
        if pool.has_token(token_in) and pool.has_token(token_out)
    ]
    ranked.sort(key=lambda item: (-item[0], item[1].id))
    return ranked


def _best_hop_pools(
    in_pools: list[RoutablePool],
    out_pools: list[RoutablePool],
    token_in: str,
    token_out: str,
    hop_token: str,
    taken: frozenset[str] | set[str] = frozenset(),
) -> tuple[Decimal, RoutablePool, RoutablePool] | None:
    """Pick the most liquid free pools for tokenIn->hop and hop->tokenOut.

    Both legs are measured in hop-token units so the score is comparable.
    Pools in taken already carry a route and are skipped.
    Returns (score, first pool, second pool), or None when no free pair exists.
    """
    first_leg = [
        item for item in _rank_pools(in_pools, token_in, hop_token) if item[1].id not in taken
    ]
    second_leg = [
        item for item in _rank_pools(out_pools, token_out, hop_token) if item[1].id not in taken
    ]
    if not first_leg or not second_leg:
        return None
    (liquidity_in, pool_in), (liquidity_out, pool_out) = first_leg[0], second_leg[0]
    return min(liquidity_in, liquidity_out), pool_in, pool_out


@high_precision
def discover_routes(
    pools: Iterable[SubgraphPool],
    token_in: str,
    token_out: str,
    max_routes: int,
    disabled_options: DisabledOptions | None = None,
    as_of_timestamp: int = 0,
) -> CandidateRoutes:
    """Find direct and two-hop routes between token_in and token_out.

    Args:
        pools: Raw pool snapshot (not mutated)
        token_in: Token being sold
        token_out: Token being bought
        max_routes: Cap on the number of hop tokens explored
        disabled_options: Disabled-token policy
        as_of_timestamp: Time used for pool validity windows (0 disables the check)

    Returns:
        CandidateRoutes with unannotated (zero-limit) routes. Empty if no pool qualifies.
    """
    token_in = normalize_address(token_in)
    token_out = normalize_address(token_out)
    if token_in == token_out:
        return CandidateRoutes(pools={}, routes=())

    disabled: frozenset[str] = frozenset()
    if disabled_options is not None and not disabled_options.is_override:
        disabled = disabled_options.addresses

    eligible = [
        raw
        for raw in pools
        if (raw.has_token(token_in) or raw.has_token(token_out))
        and not disabled.intersection(raw.token_addresses)
        and raw.is_active(as_of_timestamp)
    ]
    report = parse_pools(eligible)

    direct: dict[str, RoutablePool] = {}
    in_pools: list[RoutablePool] = []
    out_pools: list[RoutablePool] = []
    for pool in report.pools.values():
        has_in = pool.has_token(token_in)
        has_out = pool.has_token(token_out)
        if has_in and has_out:
            direct[pool.id] = pool
        elif has_in:
            in_pools.append(pool)
        elif has_out:
            out_pools.append(pool)

    tokens_with_in = {t for p in in_pools for t in p.tokens}
    tokens_with_out = {t for p in out_pools for t in p.tokens}
    hop_tokens = (tokens_with_in & tokens_with_out) - {token_in, token_out}

    # Rank hop tokens on their best pools, then hand out pools greedily
    ranked_hops: list[tuple[Decimal, str]] = []
    for hop_token in hop_tokens:
        best = _best_hop_pools(in_pools, out_pools, token_in, token_out, hop_token)
        if best is not None:
            ranked_hops.append((best[0], hop_token))
    ranked_hops.sort(key=lambda item: (-item[0], item[1]))

    taken: set[str] = set()
    hop_routes: list[tuple[str, RoutablePool, RoutablePool]] = []
    for _, hop_token in ranked_hops:
        if len(hop_routes) >= max_routes:
            break
        best = _best_hop_pools(in_pools, out_pools, token_in, token_out, hop_token, taken)
        if best is None:
            continue
        _, pool_in, pool_out = best
        taken.update((pool_in.id, pool_out.id))
        hop_routes.append((hop_token, pool_in, pool_out))

    routes: list[Route] = [
        Route(id=pool.id, hops=(RouteHop(pool.id, token_in, token_out),))
        for pool in direct.values()
    ]
    subset: dict[str, RoutablePool] = dict(direct)
    for hop_token, pool_in, pool_out in hop_routes:
        routes.append(
            Route(
                id=pool_in.id + pool_out.id,
                hops=(
                    RouteHop(pool_in.id, token_in, hop_token),
                    RouteHop(pool_out.id, hop_token, token_out),
                ),
            )
        )
        subset[pool_in.id] = pool_in
        subset[pool_out.id] = pool_out

    logger.debug(
        "route_discovery_complete",
        token_in=token_in,
        token_out=token_out,
        direct_routes=len(direct),
        hop_routes=len(hop_routes),
        hop_tokens_considered=len(hop_tokens),
        invalid_pools=report.invalid_count,
    )

    return CandidateRoutes(
        pools=subset, routes=tuple(routes), invalid_pool_count=report.invalid_count
    )


__all__ = ["discover_routes"]
