"""
6-decimal fixed-point helpers.

All operations truncate toward zero, matching the on-chain UFixed6/Fixed6
libraries. Inputs are plain ints already scaled by 10**6.
"""

from __future__ import annotations

from decimal import ROUND_DOWN, Decimal
from typing import Any

from perennial_sdk.constants import BIG6_SCALE


def _truncating_div(numerator: int, denominator: int) -> int:
    """Integer division rounding toward zero (Python's // floors)."""
    quotient = abs(numerator) // abs(denominator)
    if (numerator < 0) != (denominator < 0):
        return -quotient
    return quotient


class Big6Math:
    """Fixed-point arithmetic at the protocol's 6-decimal scale."""

    ZERO = 0
    ONE = BIG6_SCALE

    @staticmethod
    def mul(a: int, b: int) -> int:
        """Multiply two 6-decimal values."""
        return _truncating_div(a * b, BIG6_SCALE)

    @staticmethod
    def div(a: int, b: int) -> int:
        """Divide two 6-decimal values.

        Raises:
            ZeroDivisionError: If b is zero.
        """
        if b == 0:
            raise ZeroDivisionError("Big6Math.div by zero")
        return _truncating_div(a * BIG6_SCALE, b)

    @staticmethod
    def abs(a: int) -> int:
        return -a if a < 0 else a

    @staticmethod
    def min(a: int, b: int) -> int:
        return a if a < b else b

    @staticmethod
    def max(a: int, b: int) -> int:
        return a if a > b else b

    @staticmethod
    def from_decimal(value: Any) -> int:
        """Scale a human-readable number to 6-decimal fixed point.

        Accepts Decimal, str or int. Floats are converted via str to keep
        their printed representation.
        """
        if isinstance(value, float):
            value = str(value)
        scaled = Decimal(value) * BIG6_SCALE
        return int(scaled.to_integral_value(rounding=ROUND_DOWN))

    @staticmethod
    def to_decimal(value: int) -> Decimal:
        return Decimal(value) / BIG6_SCALE
