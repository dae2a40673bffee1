"""Route discovery, limits, caching and multi-route allocation."""

from sor.routing.cache import QueryCache, make_cache_key
from sor.routing.discovery import discover_routes
from sor.routing.formatting import format_swaps
from sor.routing.limits import compute_limits, route_limit
from sor.routing.optimizer import OptimizationResult, RoutePricer, allocate, optimize
from sor.routing.types import CandidateRoutes, Route, RouteHop

__all__ = [
    "CandidateRoutes",
    "OptimizationResult",
    "QueryCache",
    "Route",
    "RouteHop",
    "RoutePricer",
    "allocate",
    "compute_limits",
    "discover_routes",
    "format_swaps",
    "make_cache_key",
    "optimize",
    "route_limit",
]
