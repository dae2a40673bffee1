"""Smart order router for multi-pool DEX liquidity."""

from sor.models.swap import SwapInfo, SwapOptions, SwapTypes
from sor.sor import SOR

__version__ = "0.1.0"

__all__ = ["SOR", "SwapInfo", "SwapOptions", "SwapTypes"]
