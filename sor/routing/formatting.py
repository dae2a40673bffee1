"""Assemble SwapInfo results from optimizer output."""

from __future__ import annotations

from decimal import Decimal

import structlog

from sor.math.decimal_math import ZERO, high_precision
from sor.models.swap import SwapInfo
from sor.routing.optimizer import OptimizationResult

logger = structlog.get_logger()

# Route allocations may miss the requested amount by rounding only
ALLOCATION_TOLERANCE = Decimal("1e-40")


@high_precision
def check_allocations(result: OptimizationResult, swap_amount: Decimal) -> None:
    """Raise ArithmeticError unless the route allocations add up to swap_amount."""
    allocated = sum(result.allocations.values(), ZERO)
    if abs(allocated - swap_amount) > swap_amount * ALLOCATION_TOLERANCE:
        logger.error(
            "allocation_mismatch",
            allocated=str(allocated),
            swap_amount=str(swap_amount),
            routes=len(result.allocations),
        )
        raise ArithmeticError(f"Route allocations sum to {allocated}, expected {swap_amount}")


def format_swaps(
    result: OptimizationResult,
    token_in: str,
    token_out: str,
    swap_amount: Decimal,
) -> SwapInfo:
    """Build the SwapInfo for an optimization result.

    tokenAddresses lists every token touched, in first-seen order, and each
    leg carries the indices of its tokens in that list. Amount fields are
    expressed in routing tokens; wrapping is undone later by the caller.

    Raises:
        ArithmeticError: If the route allocations do not add up to swap_amount
    """
    if result.is_empty:
        return SwapInfo.empty(result.no_route_reason)

    check_allocations(result, swap_amount)

    token_addresses: list[str] = []
    index: dict[str, int] = {}

    def index_of(token: str) -> int:
        if token not in index:
            index[token] = len(token_addresses)
            token_addresses.append(token)
        return index[token]

    index_of(token_in)
    swaps = []
    for legs in result.swaps:
        swaps.append(
            [
                leg.model_copy(
                    update={
                        "token_in_index": index_of(leg.token_in),
                        "token_out_index": index_of(leg.token_out),
                    }
                )
                for leg in legs
            ]
        )
    index_of(token_out)

    return SwapInfo(
        token_addresses=token_addresses,
        swaps=swaps,
        swap_amount=swap_amount,
        swap_amount_for_swaps=swap_amount,
        return_amount=result.return_amount,
        return_amount_considering_fees=result.return_amount_considering_fees,
        return_amount_from_swaps=result.return_amount,
        market_sp=result.market_sp,
        token_in=token_in,
        token_out=token_out,
    )


__all__ = ["ALLOCATION_TOLERANCE", "check_allocations", "format_swaps"]
