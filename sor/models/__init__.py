"""Data models for the router."""

from sor.models.pools import PoolFilter, PoolSnapshot, SubgraphPool, SubgraphToken
from sor.models.swap import (
    DisabledOptions,
    DisabledToken,
    NoRouteReason,
    SwapInfo,
    SwapLeg,
    SwapOptions,
    SwapTypes,
)
from sor.models.types import Address, DecimalString, is_valid_address, normalize_address

__all__ = [
    # Pool snapshot
    "PoolFilter",
    "PoolSnapshot",
    "SubgraphPool",
    "SubgraphToken",
    # Swap
    "DisabledOptions",
    "DisabledToken",
    "NoRouteReason",
    "SwapInfo",
    "SwapLeg",
    "SwapOptions",
    "SwapTypes",
    # Types
    "Address",
    "DecimalString",
    "is_valid_address",
    "normalize_address",
]
