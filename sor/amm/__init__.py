"""Pool variants and their pricing math."""

from sor.amm.base import PoolKind, PoolPairData, RoutablePool
from sor.amm.constant_product import ConstantProductPool
from sor.amm.errors import (
    InsufficientLiquidityError,
    InvalidPoolDataError,
    PoolMathError,
    StableGetBalanceDidNotConverge,
    StableInvariantDidNotConverge,
    ZeroBalanceError,
)
from sor.amm.parsing import ParseReport, parse_pool, parse_pools
from sor.amm.stable import StablePool
from sor.amm.weighted import WeightedPool

__all__ = [
    "PoolKind",
    "PoolPairData",
    "RoutablePool",
    "ConstantProductPool",
    "WeightedPool",
    "StablePool",
    "ParseReport",
    "parse_pool",
    "parse_pools",
    "PoolMathError",
    "ZeroBalanceError",
    "InsufficientLiquidityError",
    "StableInvariantDidNotConverge",
    "StableGetBalanceDidNotConverge",
    "InvalidPoolDataError",
]
