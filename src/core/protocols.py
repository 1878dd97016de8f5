"""
Core type definitions and protocols.

This module defines shared types and protocols used at the seams between
the engine, the host service and the infrastructure collaborators.
"""

from typing import Protocol

from src.core.models.oracle import OraclePrice


class PriceGuard(Protocol):
    """Precondition run on every oracle reading before the engine uses it.

    Implementations raise a PriceError subclass to reject the reading.
    """

    def __call__(self, market_id: str, price: OraclePrice, now: int | None) -> None:
        """Validate the reading for market_id at time now."""
        ...


# Type aliases for commonly used types
PositionKey = tuple[str, str]  # (user_id, market_id)
