"""
Oracle price input.
"""

from dataclasses import dataclass

from src.core.exceptions.engine import ValidationError
from src.core.types.fixed_point import Width
from src.core.utils.validation import validate_width


@dataclass(frozen=True)
class OraclePrice:
    """Resolved index price, immutable for the duration of one engine call.

    `price` shares its integer unit with notional and collateral; callers
    align decimals before invoking the engine.
    """

    price: int
    timestamp: int | None = None

    def __post_init__(self) -> None:
        """Validate oracle reading after initialization."""
        validate_width(self.price, Width.INT64, "price")
        if self.price <= 0:
            raise ValidationError(f"Oracle price must be positive, got {self.price}")
        if self.timestamp is not None:
            validate_width(self.timestamp, Width.INT64, "timestamp")

    def age(self, now: int) -> int | None:
        """Seconds elapsed since the reading (None when untimestamped)."""
        if self.timestamp is None:
            return None
        return now - self.timestamp
