"""
User ledger model.

Aggregates a user's free collateral, shared across all of their markets,
and the number of positions they currently hold open.
"""

from dataclasses import dataclass, replace

from src.core.constants import MAX_POSITIONS_PER_USER
from src.core.exceptions.engine import (
    InsufficientCollateralError,
    InvalidAmountError,
    PositionLimitError,
    ValidationError,
)
from src.core.types.fixed_point import Width, checked
from src.core.utils.validation import validate_identifier, validate_width


@dataclass(frozen=True)
class UserAccount:
    """Free collateral pool and open-position counter of one user."""

    user_id: str
    free_collateral: int = 0
    open_position_count: int = 0

    def __post_init__(self) -> None:
        """Validate account data after initialization."""
        validate_identifier(self.user_id, "user_id")
        validate_width(self.free_collateral, Width.UINT64, "free_collateral")
        validate_width(self.open_position_count, Width.UINT8, "open_position_count")

    @property
    def has_open_positions(self) -> bool:
        """Check if the user holds any open position."""
        return self.open_position_count > 0

    def credit(self, amount: int) -> "UserAccount":
        """Return a copy with amount added to free collateral.

        Raises:
            ArithmeticOverflowError: If the balance would exceed uint64
        """
        if amount < 0:
            raise InvalidAmountError(amount, "credit")
        balance = checked(self.free_collateral + amount, Width.UINT64, "credit free collateral")
        return replace(self, free_collateral=balance)

    def debit(self, amount: int, operation: str = "debit") -> "UserAccount":
        """Return a copy with amount removed from free collateral.

        Raises:
            InsufficientCollateralError: If amount exceeds free collateral
        """
        if amount < 0:
            raise InvalidAmountError(amount, "debit")
        if amount > self.free_collateral:
            raise InsufficientCollateralError(
                required=amount, available=self.free_collateral, operation=operation
            )
        return replace(self, free_collateral=self.free_collateral - amount)

    def with_position_opened(self) -> "UserAccount":
        """Return a copy with one more open position.

        Raises:
            PositionLimitError: If the counter is already at its maximum
        """
        if self.open_position_count >= MAX_POSITIONS_PER_USER:
            raise PositionLimitError(self.user_id, MAX_POSITIONS_PER_USER)
        return replace(self, open_position_count=self.open_position_count + 1)

    def with_position_closed(self) -> "UserAccount":
        """Return a copy with one fewer open position.

        Raises:
            ValidationError: If the counter is already zero
        """
        if self.open_position_count == 0:
            raise ValidationError(
                f"User {self.user_id} has no open position to close; counter out of sync"
            )
        return replace(self, open_position_count=self.open_position_count - 1)

    def to_dict(self) -> dict:
        """Convert account to dictionary."""
        return {
            "user_id": self.user_id,
            "free_collateral": self.free_collateral,
            "open_position_count": self.open_position_count,
        }
