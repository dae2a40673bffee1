"""Router constants.

Centralizes chain ids, well-known addresses and routing parameters.
"""

from decimal import Decimal

from sor.models.types import is_valid_address

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

# Gas units charged per route when converting gas into an output token cost
SWAP_GAS_COST = 100_000

# Default cap on the number of routes used by one swap
DEFAULT_MAX_ROUTES = 4

# Native asset decimals (wei per ether)
NATIVE_DECIMALS = 18


def _validate_token_address(name: str, address: str) -> str:
    """Validate and return a token address.

    Args:
        name: Name of the token (for error messages)
        address: The address to validate

    Returns:
        The validated address

    Raises:
        ValueError: If the address is invalid
    """
    if not is_valid_address(address):
        raise ValueError(f"Invalid {name} address: {address} (must be 0x + 40 hex chars)")
    return address


class ChainId:
    """Supported chain ids."""

    MAINNET = 1
    GOERLI = 5
    POLYGON = 137
    ARBITRUM = 42161


# Wrapped native token per chain (lowercase for consistency)
# All addresses are validated at import time to catch typos early
WRAPPED_NATIVE: dict[int, str] = {
    ChainId.MAINNET: _validate_token_address(
        "WETH", "0xc02aaa39b223fe8d0a0e5c4f27ead9083c756cc2"
    ),
    ChainId.GOERLI: _validate_token_address(
        "WETH (goerli)", "0xdfcea9088c8a88a76ff74892c1457c17dfeef9c1"
    ),
    ChainId.POLYGON: _validate_token_address(
        "WMATIC", "0x0d500b1d8e8ef31e21c99d1db9a6444d3adf1270"
    ),
    ChainId.ARBITRUM: _validate_token_address(
        "WETH (arbitrum)", "0x82af49447d8a07e3bd95bd0d56f35241523fbab1"
    ),
}

# Liquid staking pair on mainnet, priced at a fixed rate instead of routed
STETH = _validate_token_address("stETH", "0xae7ab96520de3a18e5e111b5eaab095312d7fe84")
WSTETH = _validate_token_address("wstETH", "0x7f39c581f595b53c5cb19bd0b3f8da6c935e2ca0")

# Pricing safety bounds: share of a pool balance one swap may consume
MAX_IN_RATIO = Decimal("0.3")
MAX_OUT_RATIO = Decimal("0.3")

# Stable pools tolerate deeper trades before pricing becomes unstable
STABLE_MAX_OUT_RATIO = Decimal("0.99")


__all__ = [
    "ZERO_ADDRESS",
    "SWAP_GAS_COST",
    "DEFAULT_MAX_ROUTES",
    "NATIVE_DECIMALS",
    "ChainId",
    "WRAPPED_NATIVE",
    "STETH",
    "WSTETH",
    "MAX_IN_RATIO",
    "MAX_OUT_RATIO",
    "STABLE_MAX_OUT_RATIO",
]
