"""
Interfaces of the collaborators the host consumes without owning.
"""

from abc import ABC, abstractmethod

from src.core.models.market import Market
from src.core.models.oracle import OraclePrice
from src.core.models.position import Position
from src.core.models.user_account import UserAccount


class IPriceResolver(ABC):
    """Abstract interface for resolving the current index price of a market."""

    @abstractmethod
    def get_price(self, market_id: str) -> OraclePrice:
        """Return the current price, or raise a PriceError."""
        pass

    @abstractmethod
    def set_price(self, market_id: str, price: OraclePrice) -> None:
        """Publish a new reading for a market."""
        pass


class IAccountStore(ABC):
    """Abstract interface for the record store.

    Positions are keyed by (user_id, market_id), accounts by user_id and
    markets by market_id.
    """

    @abstractmethod
    def get_market(self, market_id: str) -> Market:
        """Get a market, raising MarketNotFoundError if missing."""
        pass

    @abstractmethod
    def put_market(self, market: Market) -> None:
        """Insert or replace a market."""
        pass

    @abstractmethod
    def has_market(self, market_id: str) -> bool:
        """Check if a market exists."""
        pass

    @abstractmethod
    def get_account(self, user_id: str) -> UserAccount:
        """Get an account, raising AccountNotFoundError if missing."""
        pass

    @abstractmethod
    def put_account(self, account: UserAccount) -> None:
        """Insert or replace an account."""
        pass

    @abstractmethod
    def has_account(self, user_id: str) -> bool:
        """Check if an account exists."""
        pass

    @abstractmethod
    def get_position(self, user_id: str, market_id: str) -> Position:
        """Get a position, creating an empty one lazily."""
        pass

    @abstractmethod
    def commit(self, position: Position, account: UserAccount, market: Market) -> None:
        """Write the three records of one engine result together."""
        pass


class ICollateralVault(ABC):
    """Abstract interface for the shared custody pool.

    Per-user entitlements live on the ledgers; the vault only checks that
    the pool itself can pay out.
    """

    @abstractmethod
    def deposit(self, source: str, amount: int) -> None:
        """Move amount from source into custody."""
        pass

    @abstractmethod
    def withdraw(self, destination: str, amount: int) -> None:
        """Move amount from custody to destination."""
        pass

    @abstractmethod
    def balance(self) -> int:
        """Total amount held in custody."""
        pass
