"""
Unit tests for validation utilities.
"""

import pytest

from src.core.enums import Side
from src.core.exceptions.engine import ValidationError
from src.core.types.fixed_point import Width
from src.core.utils.validation import (
    validate_bps,
    validate_identifier,
    validate_int,
    validate_positive,
    validate_side,
    validate_width,
)


class TestValidateInt:
    """Test integer validation."""

    def test_should_accept_int(self) -> None:
        """Test that ints pass."""
        assert validate_int(5, "size") == 5

    @pytest.mark.parametrize("value", [1.0, "1", True, None])
    def test_should_reject_non_int(self, value: object) -> None:
        """Test that floats, strings, bools and None are rejected."""
        with pytest.raises(ValidationError, match="size must be an integer"):
            validate_int(value, "size")


class TestValidateWidth:
    """Test width validation."""

    def test_should_accept_value_in_range(self) -> None:
        """Test in-range value."""
        assert validate_width(255, Width.UINT8, "count") == 255

    def test_should_reject_value_out_of_range(self) -> None:
        """Test out-of-range value."""
        with pytest.raises(ValidationError, match="count must fit uint8"):
            validate_width(256, Width.UINT8, "count")

        with pytest.raises(ValidationError, match="collateral must fit uint64"):
            validate_width(-1, Width.UINT64, "collateral")


class TestValidatePositive:
    """Test positive number validation."""

    def test_should_accept_positive(self) -> None:
        """Test positive value."""
        assert validate_positive(1, "price") == 1

    @pytest.mark.parametrize("value", [0, -1])
    def test_should_reject_non_positive(self, value: int) -> None:
        """Test zero and negative values."""
        with pytest.raises(ValidationError, match="price must be positive"):
            validate_positive(value, "price")


class TestValidateBps:
    """Test basis-point validation."""

    def test_should_accept_bounds(self) -> None:
        """Test accepted range [0, 9999]."""
        assert validate_bps(0) == 0
        assert validate_bps(9999) == 9999

    @pytest.mark.parametrize("value", [-1, 10_000])
    def test_should_reject_out_of_range(self, value: int) -> None:
        """Test rejected values."""
        with pytest.raises(ValidationError, match="between 0 and 9999"):
            validate_bps(value)


class TestValidateSideAndIdentifier:
    """Test side and identifier validation."""

    def test_should_accept_side_enum(self) -> None:
        """Test Side passes through."""
        assert validate_side(Side.SHORT) == Side.SHORT

    def test_should_reject_raw_string_side(self) -> None:
        """Test that strings are not accepted in place of Side."""
        with pytest.raises(ValidationError, match="side must be Side enum"):
            validate_side("long")

    def test_should_reject_blank_identifier(self) -> None:
        """Test identifier validation."""
        assert validate_identifier("alice", "user_id") == "alice"

        with pytest.raises(ValidationError, match="user_id must be a non-empty string"):
            validate_identifier("  ", "user_id")
