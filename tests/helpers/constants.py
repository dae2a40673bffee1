"""Shared token constants for tests.

All addresses are lowercase for consistency with normalize_address().

Usage:
    from tests.helpers import WETH, USDC
    # or
    from tests.helpers.constants import WETH, USDC
"""

# =============================================================================
# Mainnet tokens (most commonly used)
# =============================================================================

WETH = "0xc02aaa39b223fe8d0a0e5c4f27ead9083c756cc2"  # Wrapped Ether (18 decimals)
USDC = "0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48"  # USD Coin (6 decimals)
DAI = "0x6b175474e89094c44da98b954eedeac495271d0f"  # Dai Stablecoin (18 decimals)
USDT = "0xdac17f958d2ee523a2206206994597c13d831ec7"  # Tether USD (6 decimals)
BAL = "0xba100000625a3754423978a60c9317c58a424e3d"  # Balancer (18 decimals)

# =============================================================================
# Liquid staking
# =============================================================================

STETH = "0xae7ab96520de3a18e5e111b5eaab095312d7fe84"  # Lido stETH (18 decimals)
WSTETH = "0x7f39c581f595b53c5cb19bd0b3f8da6c935e2ca0"  # Wrapped stETH (18 decimals)

# Native asset placeholder
NATIVE = "0x0000000000000000000000000000000000000000"

# =============================================================================
# Synthetic tokens for routing scenarios
# =============================================================================

TOKEN_A = "0x" + "aa" * 20
TOKEN_B = "0x" + "bb" * 20
TOKEN_C = "0x" + "cc" * 20
TOKEN_D = "0x" + "dd" * 20


# =============================================================================
# Token decimals lookup (for tests that need it)
# =============================================================================

TOKEN_DECIMALS = {
    WETH: 18,
    USDC: 6,
    DAI: 18,
    USDT: 6,
    BAL: 18,
    STETH: 18,
    WSTETH: 18,
}
