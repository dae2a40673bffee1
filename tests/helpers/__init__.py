"""Test helpers module for shared test utilities.

This module consolidates common test utilities to reduce duplication:
- constants: Token addresses
- factories: Pool and router factory functions
"""

from tests.helpers.constants import (
    BAL,
    DAI,
    NATIVE,
    STETH,
    TOKEN_A,
    TOKEN_B,
    TOKEN_C,
    TOKEN_D,
    TOKEN_DECIMALS,
    USDC,
    USDT,
    WETH,
    WSTETH,
)
from tests.helpers.factories import (
    make_cp_pool,
    make_router,
    make_stable_pool,
    make_weighted_pool,
)

__all__ = [
    # Constants
    "WETH",
    "USDC",
    "DAI",
    "USDT",
    "BAL",
    "STETH",
    "WSTETH",
    "NATIVE",
    "TOKEN_A",
    "TOKEN_B",
    "TOKEN_C",
    "TOKEN_D",
    "TOKEN_DECIMALS",
    # Factories
    "make_cp_pool",
    "make_weighted_pool",
    "make_stable_pool",
    "make_router",
]
