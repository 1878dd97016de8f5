"""Input checks shared by the engine operations."""

from src.core.enums import Side
from src.core.exceptions.engine import (
    InsufficientCollateralError,
    InvalidAmountError,
    InvalidLeverageError,
    NoOpenPositionError,
    ValidationError,
)
from src.core.models.market import Market
from src.core.models.oracle import OraclePrice
from src.core.models.position import Position
from src.core.models.user_account import UserAccount
from src.core.types.fixed_point import Width
from src.core.utils.validation import validate_int, validate_side, validate_width


class TradeValidator:
    """Centralized validation helper for engine operations.

    Every check runs before any new record is built, so a failure leaves
    the caller's records untouched.
    """

    @staticmethod
    def validate_records(position: Position, user: UserAccount, market: Market) -> None:
        """Validate that the three records belong together.

        Raises:
            ValidationError: If a record has the wrong type or the keys disagree
        """
        if not isinstance(user, UserAccount):
            raise ValidationError("user must be a UserAccount instance")
        TradeValidator.validate_position_market(position, market)
        if position.user_id != user.user_id:
            raise ValidationError(
                f"Position owner {position.user_id} does not match user {user.user_id}"
            )

    @staticmethod
    def validate_position_market(position: Position, market: Market) -> None:
        """Validate that the position belongs to the market."""
        if not isinstance(position, Position):
            raise ValidationError("position must be a Position instance")
        if not isinstance(market, Market):
            raise ValidationError("market must be a Market instance")
        if position.market_id != market.market_id:
            raise ValidationError(
                f"Position market {position.market_id} does not match market {market.market_id}"
            )

    @staticmethod
    def validate_price(price: OraclePrice) -> int:
        """Validate the oracle input and return its integer price."""
        if not isinstance(price, OraclePrice):
            raise ValidationError(f"price must be an OraclePrice, got {type(price).__name__}")
        return price.price

    @staticmethod
    def validate_size(size_delta: int, name: str = "size_delta") -> int:
        """Validate a trade size magnitude.

        Raises:
            InvalidAmountError: If size is zero or negative
            ValidationError: If size is not an integer or does not fit int64
        """
        validate_int(size_delta, name)
        if size_delta <= 0:
            raise InvalidAmountError(size_delta, name)
        return validate_width(size_delta, Width.INT64, name)

    @staticmethod
    def validate_leverage(leverage: int, market: Market) -> int:
        """Validate leverage against the market's bound.

        Raises:
            InvalidLeverageError: If leverage is outside [1, max_leverage]
        """
        validate_int(leverage, "leverage")
        if not market.params.is_valid_leverage(leverage):
            raise InvalidLeverageError(leverage, market.max_leverage)
        return leverage

    @staticmethod
    def validate_side(side: Side) -> Side:
        """Validate trade side."""
        return validate_side(side)

    @staticmethod
    def validate_close_amount(close_amount: int | None) -> int | None:
        """Validate a close amount; None means close everything."""
        if close_amount is None:
            return None
        return TradeValidator.validate_size(close_amount, "close_amount")

    @staticmethod
    def require_open_position(position: Position) -> None:
        """Raise NoOpenPositionError for an empty position."""
        if position.is_empty:
            raise NoOpenPositionError(position.user_id, position.market_id)

    @staticmethod
    def check_sufficient_collateral(margin_delta: int, user: UserAccount, operation: str) -> None:
        """Validate that free collateral covers a margin increase.

        Raises:
            InsufficientCollateralError: If margin_delta exceeds free collateral
        """
        if margin_delta > user.free_collateral:
            raise InsufficientCollateralError(
                required=margin_delta, available=user.free_collateral, operation=operation
            )
