"""
Position engine interface.
"""

from abc import ABC, abstractmethod

from src.core.enums import Side
from src.core.models.market import Market
from src.core.models.oracle import OraclePrice
from src.core.models.outcome import TradeOutcome
from src.core.models.position import Position
from src.core.models.user_account import UserAccount

CLOSE_ALL = None


class IPositionEngine(ABC):
    """Abstract interface for the position and margin accounting engine."""

    @abstractmethod
    def open_or_increase(
        self,
        position: Position,
        user: UserAccount,
        market: Market,
        price: OraclePrice,
        side: Side,
        size_delta: int,
        leverage: int,
        *,
        now: int | None = None,
    ) -> TradeOutcome:
        """Open a position or add to it on the requested side."""
        pass

    @abstractmethod
    def decrease_or_close(
        self,
        position: Position,
        user: UserAccount,
        market: Market,
        price: OraclePrice,
        close_amount: int | None = CLOSE_ALL,
        *,
        now: int | None = None,
    ) -> TradeOutcome:
        """Reduce or fully close an open position."""
        pass

    @abstractmethod
    def is_liquidatable(
        self,
        position: Position,
        market: Market,
        price: OraclePrice,
        *,
        now: int | None = None,
    ) -> bool:
        """Check if the position is below its maintenance margin."""
        pass

    @abstractmethod
    def settle_funding(
        self,
        position: Position,
        user: UserAccount,
        market: Market,
        *,
        now: int | None = None,
    ) -> TradeOutcome:
        """Apply unsettled funding to the position's collateral."""
        pass
