"""Pydantic models for swap requests and results."""

from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, Field

from sor.models.pools import PoolFilter
from sor.models.types import normalize_address


class SwapTypes(str, Enum):
    """Swap direction."""

    EXACT_IN = "ExactIn"
    EXACT_OUT = "ExactOut"


class NoRouteReason(str, Enum):
    """Why a query produced the no-route result."""

    POOLS_NOT_READY = "PoolsNotReady"
    NO_LIQUIDITY_PATH = "NoLiquidityPath"
    ZERO_AMOUNT = "ZeroAmount"
    INSUFFICIENT_LIQUIDITY = "InsufficientLiquidity"
    COMPUTATION_FAILED = "ComputationFailed"


class DisabledToken(BaseModel):
    """A token excluded from routing."""

    address: str
    symbol: str | None = None


class DisabledOptions(BaseModel):
    """Disabled-token policy.

    Pools holding any disabled token are skipped during discovery unless
    is_override is set.
    """

    is_override: bool = Field(default=False, alias="isOverRide")
    disabled_tokens: list[DisabledToken] = Field(default_factory=list, alias="disabledTokens")

    model_config = {"populate_by_name": True, "frozen": True}

    @property
    def addresses(self) -> frozenset[str]:
        """Lowercase addresses of the disabled tokens."""
        return frozenset(normalize_address(t.address) for t in self.disabled_tokens)


class SwapOptions(BaseModel):
    """Per-query options."""

    pool_type_filter: PoolFilter = Field(default=PoolFilter.ALL, alias="poolTypeFilter")
    as_of_timestamp: int = Field(default=0, ge=0, alias="timestamp")
    max_routes: int | None = Field(default=None, ge=1, alias="maxPools")
    force_refresh: bool = Field(default=False, alias="forceRefresh")

    model_config = {"populate_by_name": True}


class SwapLeg(BaseModel):
    """One executed pool hop.

    swap_amount is the given side of the hop (input for ExactIn, output for
    ExactOut) and return_amount the computed side.
    """

    pool_id: str = Field(alias="poolId")
    token_in: str = Field(alias="tokenIn")
    token_out: str = Field(alias="tokenOut")
    swap_amount: Decimal = Field(alias="swapAmount")
    return_amount: Decimal = Field(alias="returnAmount")
    token_in_index: int = Field(default=0, alias="assetInIndex")
    token_out_index: int = Field(default=0, alias="assetOutIndex")

    model_config = {"populate_by_name": True}


class SwapInfo(BaseModel):
    """Result of a swap query."""

    token_addresses: list[str] = Field(default_factory=list, alias="tokenAddresses")
    swaps: list[list[SwapLeg]] = Field(default_factory=list)
    swap_amount: Decimal = Field(default=Decimal(0), alias="swapAmount")
    swap_amount_for_swaps: Decimal = Field(default=Decimal(0), alias="swapAmountForSwaps")
    return_amount: Decimal = Field(default=Decimal(0), alias="returnAmount")
    return_amount_considering_fees: Decimal = Field(
        default=Decimal(0), alias="returnAmountConsideringFees"
    )
    return_amount_from_swaps: Decimal = Field(default=Decimal(0), alias="returnAmountFromSwaps")
    market_sp: Decimal = Field(default=Decimal(0), alias="marketSp")
    token_in: str = Field(default="", alias="tokenIn")
    token_out: str = Field(default="", alias="tokenOut")
    no_route_reason: NoRouteReason | None = Field(default=None, alias="noRouteReason")

    model_config = {"populate_by_name": True}

    @classmethod
    def empty(cls, reason: NoRouteReason | None = None) -> "SwapInfo":
        """Return the no-route result: zero amounts, no tokens, no swaps."""
        return cls(no_route_reason=reason)

    @property
    def has_route(self) -> bool:
        """Return True if the result carries at least one swap."""
        return bool(self.swaps)

    @property
    def route_count(self) -> int:
        """Number of routes used."""
        return len(self.swaps)


__all__ = [
    "SwapTypes",
    "NoRouteReason",
    "DisabledToken",
    "DisabledOptions",
    "SwapOptions",
    "SwapLeg",
    "SwapInfo",
]
