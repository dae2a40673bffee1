"""Per-query cache of candidate routes.

Entries map a query key to the pool subset and limit-annotated route list
for that key. The cache is owned by one router instance. Entries are
never mutated after insertion: hits return the stored object itself, and
consumers that move pool balances must take their own deep copy.

Storage is any MutableMapping. The default is a bounded LRU; a TTL cache
can be used when time-bucketed keys would otherwise pile up.
"""

from __future__ import annotations

from collections.abc import Callable, MutableMapping

import structlog
from cachetools import LRUCache, TTLCache

from sor.models.swap import SwapTypes
from sor.routing.types import CandidateRoutes

logger = structlog.get_logger()

DEFAULT_CACHE_SIZE = 1024


def make_cache_key(
    token_in: str, token_out: str, swap_type: SwapTypes, timestamp: int, pool_filter: str = ""
) -> str:
    """Concatenate the query fields into a cache key.

    pool_filter is appended only for filtered queries, so unfiltered keys are
    tokenIn + tokenOut + direction + timestamp.
    """
    return f"{token_in}{token_out}{swap_type.value}{timestamp}{pool_filter}"


class QueryCache:
    """Get-or-compute cache for candidate routes.

    Example:
        >>> cache = QueryCache()
        >>> entry = cache.get_or_compute(key, lambda: compute_candidates(...))
    """

    def __init__(self, backend: MutableMapping[str, CandidateRoutes] | None = None) -> None:
        self._entries: MutableMapping[str, CandidateRoutes] = (
            backend if backend is not None else LRUCache(maxsize=DEFAULT_CACHE_SIZE)
        )

    @classmethod
    def lru(cls, maxsize: int = DEFAULT_CACHE_SIZE) -> QueryCache:
        """Cache evicting the least recently used key beyond maxsize entries."""
        return cls(LRUCache(maxsize=maxsize))

    @classmethod
    def ttl(cls, maxsize: int = DEFAULT_CACHE_SIZE, ttl: float = 300.0) -> QueryCache:
        """Cache whose entries expire ttl seconds after insertion."""
        return cls(TTLCache(maxsize=maxsize, ttl=ttl))

    def get_or_compute(
        self,
        key: str,
        compute_fn: Callable[[], CandidateRoutes],
        use_cache: bool = True,
    ) -> CandidateRoutes:
        """Return the entry for key, computing it on a miss.

        Args:
            key: Query key from make_cache_key()
            compute_fn: Runs discovery and limit calculation
            use_cache: When False, always recompute and leave the cache untouched

        Returns:
            The cached entry on a hit, otherwise the freshly computed one
        """
        if use_cache:
            cached = self._entries.get(key)
            if cached is not None:
                logger.debug("route_cache_hit", key=key)
                return cached

        logger.debug("route_cache_miss", key=key, use_cache=use_cache)
        entry = compute_fn()
        if use_cache:
            self._entries[key] = entry
        return entry

    def clear(self) -> None:
        """Drop every entry."""
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries


__all__ = ["DEFAULT_CACHE_SIZE", "QueryCache", "make_cache_key"]
