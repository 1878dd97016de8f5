"""
Engine configuration.

Configuration is passed explicitly to the engine at construction; nothing
in the engine reads global mutable state.
"""

from dataclasses import dataclass

from src.core.exceptions.engine import ConfigurationError


@dataclass(frozen=True)
class EngineConfig:
    """Protocol-wide switches consulted before every mutating call."""

    paused: bool = False
    max_price_age: int | None = None  # seconds; None disables the staleness check

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if not isinstance(self.paused, bool):
            raise ConfigurationError(f"paused must be a bool, got {type(self.paused).__name__}")
        if self.max_price_age is not None and not self.is_valid_price_age(self.max_price_age):
            raise ConfigurationError(
                f"max_price_age must be a non-negative integer, got {self.max_price_age}"
            )

    def is_valid_price_age(self, value: int) -> bool:
        """Check if a staleness bound is valid."""
        return isinstance(value, int) and not isinstance(value, bool) and value >= 0

    def is_price_fresh(self, age: int | None) -> bool:
        """Check if a reading of the given age passes the staleness bound."""
        if self.max_price_age is None:
            return True
        return age is not None and 0 <= age <= self.max_price_age
