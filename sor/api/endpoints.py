"""API endpoints for the router."""

from decimal import Decimal

import structlog
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from sor.errors import CostOracleFailure
from sor.models.pools import PoolFilter
from sor.models.swap import SwapInfo, SwapOptions, SwapTypes
from sor.models.types import Address, DecimalString
from sor.sor import SOR, get_default_router

logger = structlog.get_logger()

router = APIRouter()


class QuoteRequest(BaseModel):
    """Body of POST /quote."""

    token_in: Address = Field(alias="tokenIn")
    token_out: Address = Field(alias="tokenOut")
    swap_type: SwapTypes = Field(alias="swapType")
    amount: DecimalString
    pool_type_filter: PoolFilter = Field(default=PoolFilter.ALL, alias="poolTypeFilter")
    timestamp: int = Field(default=0, ge=0)
    max_pools: int | None = Field(default=None, ge=1, alias="maxPools")
    force_refresh: bool = Field(default=False, alias="forceRefresh")

    model_config = {"populate_by_name": True}

    def options(self) -> SwapOptions:
        return SwapOptions(
            pool_type_filter=self.pool_type_filter,
            as_of_timestamp=self.timestamp,
            max_routes=self.max_pools,
            force_refresh=self.force_refresh,
        )


def get_router() -> SOR:
    """Dependency provider for the router instance.

    Override this in tests to inject a router:
        app.dependency_overrides[get_router] = lambda: test_router

    Returns:
        The router used to answer quotes.
    """
    return get_default_router()


@router.post("/quote", response_model_exclude_none=True)
async def quote(
    request: QuoteRequest,
    sor_instance: SOR = Depends(get_router),
) -> SwapInfo:
    """Quote a swap.

    Error Handling:
        - Invalid request schema: Returns 422 Validation Error (Pydantic)
        - Cost oracle failure: Returns 502, the quote cannot be priced
        - Any other router exception: Logs error, returns the no-route result
    """
    logger.info(
        "received_quote",
        token_in=request.token_in,
        token_out=request.token_out,
        swap_type=request.swap_type.value,
        amount=request.amount,
    )

    try:
        swap_info = await sor_instance.get_swaps(
            request.token_in,
            request.token_out,
            request.swap_type,
            Decimal(request.amount),
            request.options(),
        )
    except CostOracleFailure as e:
        logger.warning("quote_cost_oracle_failed", token=e.token, reason=e.reason)
        raise HTTPException(status_code=502, detail=str(e)) from e
    except Exception:
        # Return the no-route result rather than a 500 error
        logger.exception(
            "router_error",
            token_in=request.token_in,
            token_out=request.token_out,
            message="Router raised an exception, returning empty result",
        )
        return SwapInfo.empty()

    logger.info(
        "returning_quote",
        routes=swap_info.route_count,
        return_amount=str(swap_info.return_amount),
        no_route_reason=swap_info.no_route_reason,
    )
    return swap_info
