"""
Position side enumeration.

A side is carried on a position only as the sign of its signed base size;
this enum is the caller-facing name for that sign.
"""

from enum import StrEnum


class Side(StrEnum):
    """
    Allowed trade directions.

    Defines whether a request adds long (positive) or short (negative) exposure.
    """

    LONG = "long"
    SHORT = "short"

    @property
    def sign(self) -> int:
        """Sign applied to a size magnitude for this side."""
        return 1 if self == self.LONG else -1

    @property
    def is_long(self) -> bool:
        """Check if side is long."""
        return self == self.LONG

    @property
    def is_short(self) -> bool:
        """Check if side is short."""
        return self == self.SHORT

    def opposite(self) -> "Side":
        """Get the opposite side."""
        return self.SHORT if self.is_long else self.LONG  # type: ignore[return-value]

    @classmethod
    def from_base_size(cls, base_size: int) -> "Side | None":
        """
        Derive the side from a signed base size.

        Args:
            base_size: Signed base size (positive = long, negative = short)

        Returns:
            Side of the exposure, or None for an empty position
        """
        if base_size > 0:
            return cls.LONG
        if base_size < 0:
            return cls.SHORT
        return None

    @classmethod
    def from_string(cls, value: str) -> "Side":
        """
        Convert string to Side enum, with case-insensitive matching.

        Args:
            value: String representation of the side ("long", "buy", "short", "sell")

        Returns:
            Corresponding Side enum value

        Raises:
            ValueError: If side is not recognised
        """
        value_lower = value.lower()
        if value_lower in ["long", "buy"]:
            return cls.LONG
        elif value_lower in ["short", "sell"]:
            return cls.SHORT
        else:
            raise ValueError(
                f"Unsupported side: {value}. Supported sides: {', '.join([s.value for s in cls])}"
            )
