"""Pydantic models for the raw pool snapshot.

Field names follow the subgraph JSON (camelCase aliases). Numeric fields are
kept as strings so malformed entries survive model validation and are
rejected later, one pool at a time, by sor.amm.parsing.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from sor.models.types import normalize_address


class PoolFilter(str, Enum):
    """Pool-type filter applied to the snapshot before routing."""

    ALL = "All"
    CONSTANT_PRODUCT = "ConstantProduct"
    WEIGHTED = "Weighted"
    STABLE = "Stable"
    META_STABLE = "MetaStable"
    LBP = "LiquidityBootstrapping"
    INVESTMENT = "Investment"


class SubgraphToken(BaseModel):
    """One token entry inside a pool."""

    address: str
    balance: str | None = None
    weight: str | None = None
    price_rate: str = Field(default="1", alias="priceRate")

    model_config = {"populate_by_name": True, "extra": "allow"}


class SubgraphPool(BaseModel):
    """One pool as delivered by the pool source."""

    id: str
    address: str | None = None
    pool_type: str = Field(alias="poolType")
    swap_fee: str | None = Field(default=None, alias="swapFee")
    tokens: list[SubgraphToken] = Field(default_factory=list)
    tokens_list: list[str] = Field(default_factory=list, alias="tokensList")
    amp: str | None = None
    # Optional validity window (unix seconds)
    start_time: int | None = Field(default=None, alias="startTime")
    end_time: int | None = Field(default=None, alias="endTime")
    expiry_time: int | None = Field(default=None, alias="expiryTime")

    model_config = {"populate_by_name": True, "extra": "allow"}

    @property
    def token_addresses(self) -> list[str]:
        """Lowercase token addresses, preferring the token entries over tokensList."""
        if self.tokens:
            return [normalize_address(t.address) for t in self.tokens]
        return [normalize_address(t) for t in self.tokens_list]

    def has_token(self, token: str) -> bool:
        """Return True if the pool holds the given token."""
        return normalize_address(token) in self.token_addresses

    @property
    def window_end(self) -> int | None:
        """End of the validity window: the earlier of endTime and expiryTime."""
        ends = [t for t in (self.end_time, self.expiry_time) if t is not None]
        return min(ends) if ends else None

    def is_active(self, timestamp: int) -> bool:
        """Return True if the pool's validity window contains timestamp.

        A timestamp of 0 disables the check.
        """
        if timestamp <= 0:
            return True
        if self.start_time is not None and timestamp < self.start_time:
            return False
        end = self.window_end
        return end is None or timestamp < end


class PoolSnapshot(BaseModel):
    """Envelope returned by a pool endpoint.

    Only the envelope is checked here. Entries stay raw so load_pools can
    drop malformed pools one at a time.
    """

    pools: list[dict[str, Any]]


def matches_filter(pool: SubgraphPool, pool_filter: PoolFilter) -> bool:
    """Return True if the pool passes the pool-type filter."""
    if pool_filter == PoolFilter.ALL:
        return True
    return pool.pool_type == pool_filter.value


__all__ = [
    "PoolFilter",
    "SubgraphToken",
    "SubgraphPool",
    "PoolSnapshot",
    "matches_filter",
]
