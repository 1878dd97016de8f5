"""
In-memory record store.

Holds markets, accounts and positions. Positions are created lazily: an
unknown (user, market) pair reads as an empty position and is only stored
once an engine result is committed for it.
"""

from threading import RLock

from loguru import logger

from src.core.exceptions.engine import AccountNotFoundError, MarketNotFoundError
from src.core.interfaces.collaborators import IAccountStore
from src.core.models.market import Market
from src.core.models.position import Position
from src.core.models.user_account import UserAccount
from src.core.protocols import PositionKey


class InMemoryAccountStore(IAccountStore):
    """Dictionary-backed store.

    Thread Safety:
        Every read and write takes an internal RLock. `commit` writes the
        position, account and market under one acquisition so readers never
        see a partially applied engine result.
    """

    def __init__(self) -> None:
        self._markets: dict[str, Market] = {}
        self._accounts: dict[str, UserAccount] = {}
        self._positions: dict[PositionKey, Position] = {}
        self._lock = RLock()

    def get_market(self, market_id: str) -> Market:
        with self._lock:
            if market_id not in self._markets:
                raise MarketNotFoundError(market_id)
            return self._markets[market_id]

    def put_market(self, market: Market) -> None:
        with self._lock:
            self._markets[market.market_id] = market

    def has_market(self, market_id: str) -> bool:
        with self._lock:
            return market_id in self._markets

    def list_markets(self) -> list[Market]:
        """Return all markets ordered by id."""
        with self._lock:
            return [self._markets[key] for key in sorted(self._markets)]

    def get_account(self, user_id: str) -> UserAccount:
        with self._lock:
            if user_id not in self._accounts:
                raise AccountNotFoundError(user_id)
            return self._accounts[user_id]

    def put_account(self, account: UserAccount) -> None:
        with self._lock:
            self._accounts[account.user_id] = account

    def has_account(self, user_id: str) -> bool:
        with self._lock:
            return user_id in self._accounts

    def get_position(self, user_id: str, market_id: str) -> Position:
        """Return the stored position, or an empty one snapshotting the market index."""
        with self._lock:
            position = self._positions.get((user_id, market_id))
            if position is not None:
                return position
            market = self.get_market(market_id)
            return Position.empty(user_id, market_id, market.cumulative_funding)

    def list_positions(self, user_id: str) -> list[Position]:
        """Return the user's non-empty positions."""
        with self._lock:
            return [
                position
                for (owner, _), position in sorted(self._positions.items())
                if owner == user_id and not position.is_empty
            ]

    def commit(self, position: Position, account: UserAccount, market: Market) -> None:
        """Write one engine result atomically."""
        with self._lock:
            self._positions[(position.user_id, position.market_id)] = position
            self._accounts[account.user_id] = account
            self._markets[market.market_id] = market
        logger.debug(
            f"Committed {position.user_id}/{position.market_id}: base={position.base_size}, "
            f"collateral={position.collateral}, free={account.free_collateral}, "
            f"oi={market.open_interest}"
        )
