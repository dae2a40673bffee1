"""Shared high-precision Decimal utilities for pricing and allocation.

All router math runs inside DECIMAL_CONTEXT. Marginal-price equalization is
sensitive to rounding, so binary floats are never used for amounts, balances
or prices.
"""

from __future__ import annotations

import decimal
from collections.abc import Callable
from decimal import Decimal, InvalidOperation
from functools import wraps
from typing import Any, TypeVar

# 60 significant digits: well beyond 18-decimal token amounts times 1e30 balances
DECIMAL_CONTEXT = decimal.Context(
    prec=60,
    rounding=decimal.ROUND_HALF_EVEN,
    traps=[decimal.InvalidOperation, decimal.DivisionByZero, decimal.Overflow],
)

ZERO = Decimal(0)
ONE = Decimal(1)

F = TypeVar("F", bound=Callable[..., Any])


def high_precision(func: F) -> F:
    """Run the decorated function inside DECIMAL_CONTEXT."""

    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        with decimal.localcontext(DECIMAL_CONTEXT):
            return func(*args, **kwargs)

    return wrapper  # type: ignore[return-value]


def to_decimal(value: str | int | Decimal) -> Decimal:
    """Parse a finite decimal value.

    Raises:
        ValueError: If value is not a finite decimal number
    """
    try:
        result = Decimal(str(value))
    except InvalidOperation as err:
        raise ValueError(f"Not a decimal number: {value!r}") from err
    if not result.is_finite():
        raise ValueError(f"Not a finite decimal number: {value!r}")
    return result


def decimal_lt(a: Decimal, b: Decimal) -> bool:
    """Compare a < b with high precision for exactness."""
    with decimal.localcontext(DECIMAL_CONTEXT):
        return (a - b) < 0


def decimal_gt(a: Decimal, b: Decimal) -> bool:
    """Compare a > b with high precision for exactness."""
    with decimal.localcontext(DECIMAL_CONTEXT):
        return (a - b) > 0


__all__ = [
    "DECIMAL_CONTEXT",
    "ZERO",
    "ONE",
    "high_precision",
    "to_decimal",
    "decimal_lt",
    "decimal_gt",
]
