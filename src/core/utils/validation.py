"""
Validation utilities for core domain models.

Provides consistent validation across the application.
"""

from typing import Any

from src.core.constants import BPS_SCALE
from src.core.enums import Side
from src.core.exceptions.engine import ValidationError
from src.core.types.fixed_point import Width


def validate_int(value: Any, param_name: str) -> int:
    """Validate that a value is an integer (bool and float are rejected).

    Args:
        value: Value to validate
        param_name: Parameter name for error messages

    Returns:
        The validated integer

    Raises:
        ValidationError: If value is not an int
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{param_name} must be an integer, got {type(value).__name__}")
    return value


def validate_width(value: Any, width: Width, param_name: str) -> int:
    """Validate that a value is an integer representable in width.

    Args:
        value: Value to validate
        width: Storage width of the field
        param_name: Parameter name for error messages

    Returns:
        The validated integer

    Raises:
        ValidationError: If value is not an int or is out of range
    """
    validate_int(value, param_name)
    if not width.contains(value):
        low, high = width.bounds
        raise ValidationError(f"{param_name} must fit {width.value} [{low}, {high}], got {value}")
    return value


def validate_positive(value: int, param_name: str) -> int:
    """Validate that a numeric value is positive.

    Args:
        value: Value to validate
        param_name: Parameter name for error messages

    Returns:
        The validated value

    Raises:
        ValidationError: If value is not positive
    """
    if value <= 0:
        raise ValidationError(f"{param_name} must be positive, got {value}")
    return value


def validate_bps(value: int, param_name: str = "bps") -> int:
    """Validate that a basis-point value is in [0, 10000).

    Raises:
        ValidationError: If value is out of range
    """
    validate_int(value, param_name)
    if value < 0 or value >= BPS_SCALE:
        raise ValidationError(f"{param_name} must be between 0 and {BPS_SCALE - 1}, got {value}")
    return value


def validate_side(side: Any, param_name: str = "side") -> Side:
    """Validate that a value is a Side enum.

    Raises:
        ValidationError: If side is not a Side enum
    """
    if not isinstance(side, Side):
        raise ValidationError(f"{param_name} must be Side enum, got {type(side).__name__}")
    return side


def validate_identifier(value: Any, param_name: str) -> str:
    """Validate that an identifier is a non-empty string.

    Raises:
        ValidationError: If value is not a non-empty string
    """
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{param_name} must be a non-empty string, got {value!r}")
    return value
