"""
Unit tests for the engine exception hierarchy.
"""

import pytest

from src.core.exceptions.engine import (
    AccountNotFoundError,
    ArithmeticOverflowError,
    CalculationError,
    EngineException,
    EnginePausedError,
    InexactDivisionError,
    InsufficientCollateralError,
    InvalidAmountError,
    InvalidFundingRateError,
    InvalidLeverageError,
    MarketEmergencyError,
    MarketNotFoundError,
    NoOpenPositionError,
    NotLiquidatableError,
    OpenPositionsError,
    PositionError,
    PositionLimitError,
    PriceError,
    PriceUnavailableError,
    SelfLiquidationError,
    StalePriceError,
    ValidationError,
)


class TestExceptionHierarchy:
    """Test that every error is rooted at EngineException."""

    @pytest.mark.parametrize(
        ("error", "parent"),
        [
            (InvalidAmountError(0), ValidationError),
            (InvalidLeverageError(21, 20), ValidationError),
            (InvalidFundingRateError(5, 1), ValidationError),
            (MarketEmergencyError("BTC-PERP"), PositionError),
            (InsufficientCollateralError(10, 5), PositionError),
            (NoOpenPositionError("alice", "BTC-PERP"), PositionError),
            (NotLiquidatableError("alice", "BTC-PERP", 10, 5), PositionError),
            (SelfLiquidationError("alice"), PositionError),
            (PositionLimitError("alice", 255), PositionError),
            (OpenPositionsError("alice", 1), PositionError),
            (ArithmeticOverflowError(1, "uint8"), CalculationError),
            (InexactDivisionError(3, 2), CalculationError),
            (StalePriceError("BTC-PERP", 90, 60), PriceError),
            (PriceUnavailableError("BTC-PERP"), PriceError),
            (EnginePausedError("open"), EngineException),
            (MarketNotFoundError("BTC-PERP"), EngineException),
            (AccountNotFoundError("alice"), EngineException),
        ],
    )
    def test_should_inherit_from_domain_parent(
        self, error: EngineException, parent: type[EngineException]
    ) -> None:
        """Test each error's parent class."""
        assert isinstance(error, parent)
        assert isinstance(error, EngineException)


class TestExceptionAttributes:
    """Test structured attributes and messages."""

    def test_should_carry_collateral_details(self) -> None:
        """Test InsufficientCollateralError attributes."""
        error = InsufficientCollateralError(required=300, available=100, operation="opening")

        assert error.required == 300
        assert error.available == 100
        assert "required=300" in str(error)
        assert "available=100" in str(error)

    def test_should_carry_leverage_bounds(self) -> None:
        """Test InvalidLeverageError attributes."""
        error = InvalidLeverageError(leverage=25, max_leverage=20)

        assert error.leverage == 25
        assert error.max_leverage == 20
        assert "1..20" in str(error)

    def test_should_describe_amount(self) -> None:
        """Test InvalidAmountError message."""
        error = InvalidAmountError(0, "size_delta")

        assert error.amount == 0
        assert str(error) == "Invalid size_delta: must be greater than zero, got 0"

    def test_should_carry_liquidation_health(self) -> None:
        """Test NotLiquidatableError attributes."""
        error = NotLiquidatableError("alice", "BTC-PERP", equity=500, requirement=100)

        assert error.equity == 500
        assert error.requirement == 100
        assert "not liquidatable" in str(error)

    def test_should_name_market_in_emergency(self) -> None:
        """Test MarketEmergencyError attributes."""
        error = MarketEmergencyError("BTC-PERP")

        assert error.market_id == "BTC-PERP"
        assert "emergency mode" in str(error)
