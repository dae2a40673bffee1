"""Pool snapshot sources."""

from sor.pools.source import PoolFetcher, PoolSource, load_pools

__all__ = ["PoolFetcher", "PoolSource", "load_pools"]
