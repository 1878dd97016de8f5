"""
Integer fixed-point arithmetic for margin accounting.

Prices, sizes, collateral and PnL are plain Python ints expressed in the
smallest tick of a shared unit. Python ints never overflow, so every
product below is computed exactly (the "widened intermediate") and the
result is then checked against the width of the field it is stored in.

Rounding is always explicit:
- CEILING for margin requirements (the protocol never under-collects)
- FLOOR for the weighted-average entry price
- EXACT for notional and PnL, which are plain integer products
"""

from enum import StrEnum

from src.core.constants import (
    INT64_MAX,
    INT64_MIN,
    INT128_MAX,
    INT128_MIN,
    UINT8_MAX,
    UINT16_MAX,
    UINT64_MAX,
)
from src.core.enums import RoundingMode
from src.core.exceptions.engine import ArithmeticOverflowError, InexactDivisionError


class Width(StrEnum):
    """Storage widths of record fields."""

    INT64 = "int64"
    UINT64 = "uint64"
    INT128 = "int128"
    UINT16 = "uint16"
    UINT8 = "uint8"

    @property
    def bounds(self) -> tuple[int, int]:
        """Inclusive (min, max) range of the width."""
        return _BOUNDS[self]

    def contains(self, value: int) -> bool:
        """Check if value is representable in this width."""
        low, high = self.bounds
        return low <= value <= high


_BOUNDS: dict[Width, tuple[int, int]] = {
    Width.INT64: (INT64_MIN, INT64_MAX),
    Width.UINT64: (0, UINT64_MAX),
    Width.INT128: (INT128_MIN, INT128_MAX),
    Width.UINT16: (0, UINT16_MAX),
    Width.UINT8: (0, UINT8_MAX),
}


def checked(value: int, width: Width, operation: str = "calculation") -> int:
    """Return value unchanged if it fits width.

    Args:
        value: Integer to check
        width: Target storage width
        operation: Description of the operation for error messages

    Returns:
        The value

    Raises:
        ArithmeticOverflowError: If value is outside the width
    """
    if not width.contains(value):
        raise ArithmeticOverflowError(value, width.value, operation)
    return value


def sign(value: int) -> int:
    """Sign of value as -1, 0 or 1."""
    return (value > 0) - (value < 0)


def floor_div(a: int, b: int) -> int:
    """`a / b` rounded toward negative infinity.

    Examples:
        >>> floor_div(7, 2)
        3
        >>> floor_div(-7, 2)
        -4
    """
    if b == 0:
        raise ArithmeticOverflowError(a, "nonzero divisor", "division")
    return a // b


def ceil_div(a: int, b: int) -> int:
    """`a / b` rounded toward positive infinity.

    Examples:
        >>> ceil_div(7, 2)
        4
        >>> ceil_div(-7, 2)
        -3
    """
    if b == 0:
        raise ArithmeticOverflowError(a, "nonzero divisor", "division")
    return -((-a) // b)


def trunc_div(a: int, b: int) -> int:
    """`a / b` rounded toward zero."""
    if b == 0:
        raise ArithmeticOverflowError(a, "nonzero divisor", "division")
    quotient = abs(a) // abs(b)
    return quotient if (a < 0) == (b < 0) else -quotient


def divide(a: int, b: int, rounding: RoundingMode) -> int:
    """Divide a by b under the given rounding mode.

    Raises:
        ArithmeticOverflowError: If b is zero
        InexactDivisionError: If rounding is EXACT and b does not divide a
    """
    if rounding == RoundingMode.FLOOR:
        return floor_div(a, b)
    if rounding == RoundingMode.CEILING:
        return ceil_div(a, b)
    if rounding == RoundingMode.TRUNCATE:
        return trunc_div(a, b)
    quotient = trunc_div(a, b)
    if quotient * b != a:
        raise InexactDivisionError(a, b)
    return quotient


def mul_div(
    a: int,
    b: int,
    divisor: int,
    rounding: RoundingMode = RoundingMode.FLOOR,
    width: Width = Width.INT128,
    operation: str = "mul_div",
) -> int:
    """Compute `a * b / divisor` without intermediate overflow.

    Args:
        a: First factor
        b: Second factor
        divisor: Non-zero divisor
        rounding: Rounding mode applied to the quotient
        width: Width the result must fit
        operation: Description of the operation for error messages

    Returns:
        The rounded quotient

    Raises:
        ArithmeticOverflowError: On a zero divisor or a result outside width
        InexactDivisionError: If rounding is EXACT and the division leaves a remainder

    Examples:
        >>> mul_div(7, 3, 2, RoundingMode.FLOOR)
        10
        >>> mul_div(7, 3, 2, RoundingMode.CEILING)
        11
    """
    return checked(divide(a * b, divisor, rounding), width, operation)


def checked_mul(a: int, b: int, width: Width = Width.INT128, operation: str = "mul") -> int:
    """Exact product of a and b, checked against width."""
    return checked(a * b, width, operation)


def checked_add(a: int, b: int, width: Width = Width.INT128, operation: str = "add") -> int:
    """Exact sum of a and b, checked against width."""
    return checked(a + b, width, operation)


def checked_sub(a: int, b: int, width: Width = Width.INT128, operation: str = "sub") -> int:
    """Exact difference of a and b, checked against width."""
    return checked(a - b, width, operation)
