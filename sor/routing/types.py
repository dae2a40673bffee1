"""Type definitions for routing module."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from sor.amm.base import RoutablePool
from sor.math.decimal_math import ZERO


@dataclass(frozen=True)
class RouteHop:
    """One pool hop of a route."""

    pool_id: str
    token_in: str
    token_out: str


@dataclass(frozen=True)
class Route:
    """Candidate path of one or two hops from token_in to token_out.

    limit is the largest amount the route may take: input for ExactIn,
    output for ExactOut. Routes straight out of discovery carry a zero limit
    until the limit calculator annotates them.
    """

    id: str
    hops: tuple[RouteHop, ...]
    limit: Decimal = ZERO

    @property
    def token_in(self) -> str:
        return self.hops[0].token_in

    @property
    def token_out(self) -> str:
        return self.hops[-1].token_out

    @property
    def is_multihop(self) -> bool:
        """Check if this route goes through a hop token."""
        return len(self.hops) > 1

    @property
    def pool_ids(self) -> tuple[str, ...]:
        return tuple(hop.pool_id for hop in self.hops)


@dataclass(frozen=True)
class CandidateRoutes:
    """Pool subset and annotated route list for one query key.

    Stored by the query cache. Neither the mapping nor the pools may be
    mutated once the entry exists; pricing passes work on a deep copy.
    """

    pools: dict[str, RoutablePool]
    routes: tuple[Route, ...]
    invalid_pool_count: int = 0

    @property
    def is_empty(self) -> bool:
        return not self.routes


__all__ = ["RouteHop", "Route", "CandidateRoutes"]
