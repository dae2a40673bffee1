"""Numeric helpers for router math."""

from sor.math.decimal_math import (
    DECIMAL_CONTEXT,
    ONE,
    ZERO,
    decimal_gt,
    decimal_lt,
    high_precision,
    to_decimal,
)

__all__ = [
    "DECIMAL_CONTEXT",
    "ONE",
    "ZERO",
    "decimal_gt",
    "decimal_lt",
    "high_precision",
    "to_decimal",
]
