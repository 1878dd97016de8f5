"""
Exchange service - hosts the position engine.

The engine is a pure transition function; this service supplies it with
records from the store and prices from the feed, serialises mutations per
user and per market, commits the engine's result and journals the audit
record. Collateral enters and leaves the shared custody pool only on
deposit, withdraw and insurance funding; every other call moves claims
between ledgers.
"""

import threading
import time
from collections.abc import Callable, Iterator
from contextlib import ExitStack, contextmanager
from datetime import UTC, datetime

from loguru import logger

from src.core.enums import OperationKind, Side
from src.core.engine.engine import PositionEngine
from src.core.engine.funding import FundingAccumulator
from src.core.exceptions.engine import (
    EnginePausedError,
    InvalidAmountError,
    OpenPositionsError,
    SelfLiquidationError,
    ValidationError,
)
from src.core.interfaces.collaborators import IAccountStore, ICollateralVault, IPriceResolver
from src.core.interfaces.engine import CLOSE_ALL
from src.core.models.config import EngineConfig
from src.core.models.market import Market, MarketParams
from src.core.models.oracle import OraclePrice
from src.core.models.outcome import TradeOutcome
from src.core.models.position import Position
from src.core.models.trade_record import TradeRecord
from src.core.models.user_account import UserAccount
from src.core.types.fixed_point import Width
from src.core.utils.validation import validate_identifier, validate_int, validate_width
from src.infrastructure.journal import EventJournal
from src.infrastructure.pricing import CachedPriceFeed
from src.infrastructure.store import InMemoryAccountStore
from src.infrastructure.vault import InMemoryCollateralVault


def _unix_now() -> int:
    return int(time.time())


class ExchangeService:
    """Host for the position engine.

    Thread Safety:
        Each call touching a position holds the market's lock and then the
        user's lock (always in that order), so two calls on the same
        (user, market) pair never interleave. A liquidation holds the market
        lock and then both users' locks in sorted order. Deposits and
        withdrawals hold only the user's lock.
    """

    def __init__(
        self,
        engine: PositionEngine | None = None,
        store: IAccountStore | None = None,
        prices: IPriceResolver | None = None,
        vault: ICollateralVault | None = None,
        journal: EventJournal | None = None,
        clock: Callable[[], int] = _unix_now,
    ) -> None:
        """Initialize the service; missing collaborators default to in-memory ones."""
        self.engine = engine or PositionEngine()
        self.store = store or InMemoryAccountStore()
        self.prices = prices or CachedPriceFeed()
        self.vault = vault or InMemoryCollateralVault()
        self.journal = journal if journal is not None else EventJournal()
        self._clock = clock

        self._user_locks: dict[str, threading.RLock] = {}
        self._market_locks: dict[str, threading.RLock] = {}
        self._registry_lock = threading.Lock()

    @property
    def config(self) -> EngineConfig:
        """Engine configuration in force."""
        return self.engine.config

    # Administration

    def create_market(
        self, market_id: str, params: MarketParams | None = None, *, now: int | None = None
    ) -> Market:
        """List a new market with zeroed funding and open interest.

        Raises:
            ValidationError: If the market already exists
        """
        self._ensure_active("create_market")
        validate_identifier(market_id, "market_id")
        with self._market_lock(market_id):
            if self.store.has_market(market_id):
                raise ValidationError(f"Market already exists: {market_id}")
            market = Market.create(market_id, params or MarketParams(), self._now(now))
            self.store.put_market(market)
        logger.info(
            f"Created market {market_id}: max_leverage={market.max_leverage}, "
            f"maintenance_margin_bps={market.maintenance_margin_bps}"
        )
        return market

    def register_user(self, user_id: str) -> UserAccount:
        """Create an empty account.

        Raises:
            ValidationError: If the account already exists
        """
        validate_identifier(user_id, "user_id")
        with self._user_lock(user_id):
            if self.store.has_account(user_id):
                raise ValidationError(f"Account already exists: {user_id}")
            account = UserAccount(user_id=user_id)
            self.store.put_account(account)
        logger.info(f"Registered user {user_id}")
        return account

    def set_price(self, market_id: str, price: int, *, timestamp: int | None = None) -> OraclePrice:
        """Publish an oracle reading for an existing market."""
        self.store.get_market(market_id)
        reading = OraclePrice(price=price, timestamp=self._now(timestamp))
        self.prices.set_price(market_id, reading)
        return reading

    def update_funding_rate(self, market_id: str, rate: int, *, now: int | None = None) -> Market:
        """Accrue funding to now under the old rate, then install rate.

        Raises:
            InvalidFundingRateError: If |rate| exceeds the market's bound
        """
        self._ensure_active("update_funding_rate")
        now = self._now(now)
        with self._market_lock(market_id):
            market = self.store.get_market(market_id)
            updated = FundingAccumulator.update_funding_rate(market, rate, now)
            self.store.put_market(updated)

        self._journal(
            TradeRecord(
                kind=OperationKind.FUNDING_RATE_UPDATE,
                user_id=None,
                market_id=market_id,
                size_delta=0,
                price=0,
                margin_delta=0,
                realized_pnl=0,
                open_interest=updated.open_interest,
                timestamp=datetime.fromtimestamp(now, UTC),
            )
        )
        logger.info(f"Funding rate for {market_id} set to {rate}")
        return updated

    # Collateral

    def deposit(self, user_id: str, amount: int) -> UserAccount:
        """Move collateral into custody and credit free collateral."""
        self._ensure_active("deposit")
        amount = self._validate_amount(amount, "deposit")
        with self._user_lock(user_id):
            account = self.store.get_account(user_id).credit(amount)
            self.vault.deposit(user_id, amount)
            self.store.put_account(account)

        self._journal(self._collateral_record(OperationKind.DEPOSIT, user_id, amount))
        logger.info(f"Deposited {amount} for {user_id}, free collateral {account.free_collateral}")
        return account

    def withdraw(self, user_id: str, amount: int) -> UserAccount:
        """Debit free collateral and release it from custody.

        Raises:
            OpenPositionsError: If the user still holds open positions
            InsufficientCollateralError: If amount exceeds free collateral
        """
        self._ensure_active("withdraw")
        amount = self._validate_amount(amount, "withdraw")
        with self._user_lock(user_id):
            account = self.store.get_account(user_id)
            if account.has_open_positions:
                raise OpenPositionsError(user_id, account.open_position_count)
            account = account.debit(amount, "withdraw")
            self.vault.withdraw(user_id, amount)
            self.store.put_account(account)

        self._journal(self._collateral_record(OperationKind.WITHDRAW, user_id, -amount))
        logger.info(f"Withdrew {amount} for {user_id}, free collateral {account.free_collateral}")
        return account

    def deposit_insurance(
        self, market_id: str, amount: int, *, source: str = "insurance"
    ) -> Market:
        """Move collateral into custody and add it to a market's insurance fund.

        Funding the insurance does not lift emergency mode.
        """
        self._ensure_active("deposit_insurance")
        amount = self._validate_amount(amount, "insurance deposit")
        with self._market_lock(market_id):
            market = self.store.get_market(market_id).fund_insurance(amount)
            self.vault.deposit(source, amount)
            self.store.put_market(market)

        self._journal(
            TradeRecord(
                kind=OperationKind.INSURANCE_DEPOSIT,
                user_id=None,
                market_id=market_id,
                size_delta=0,
                price=0,
                margin_delta=amount,
                realized_pnl=0,
                open_interest=market.open_interest,
            )
        )
        logger.info(f"Insurance fund of {market_id} raised by {amount} to {market.insurance_fund}")
        return market

    # Trading

    def open_position(
        self,
        user_id: str,
        market_id: str,
        side: Side,
        size: int,
        leverage: int,
        *,
        now: int | None = None,
    ) -> TradeOutcome:
        """Open, increase, reduce or flip a position at the current oracle price."""
        now = self._now(now)
        with self._position_locks(user_id, market_id):
            position, account, market = self._load(user_id, market_id)
            price = self.prices.get_price(market_id)
            outcome = self.engine.open_or_increase(
                position, account, market, price, side, size, leverage, now=now
            )
            self._commit(outcome)
        return outcome

    def close_position(
        self,
        user_id: str,
        market_id: str,
        amount: int | None = CLOSE_ALL,
        *,
        now: int | None = None,
    ) -> TradeOutcome:
        """Reduce or fully close a position at the current oracle price."""
        now = self._now(now)
        with self._position_locks(user_id, market_id):
            position, account, market = self._load(user_id, market_id)
            price = self.prices.get_price(market_id)
            outcome = self.engine.decrease_or_close(
                position, account, market, price, amount, now=now
            )
            self._commit(outcome)
        return outcome

    def settle_funding(
        self, user_id: str, market_id: str, *, now: int | None = None
    ) -> TradeOutcome:
        """Settle a position's funding without trading."""
        now = self._now(now)
        with self._position_locks(user_id, market_id):
            position, account, market = self._load(user_id, market_id)
            outcome = self.engine.settle_funding(position, account, market, now=now)
            self._commit(outcome)
        return outcome

    # Liquidation

    def check_liquidation(self, user_id: str, market_id: str, *, now: int | None = None) -> bool:
        """Check if a position can be liquidated at the current price."""
        now = self._now(now)
        with self._position_locks(user_id, market_id):
            position, _, market = self._load(user_id, market_id)
            price = self.prices.get_price(market_id)
            return self.engine.is_liquidatable(position, market, price, now=now)

    def liquidate(
        self, liquidator_id: str, user_id: str, market_id: str, *, now: int | None = None
    ) -> TradeOutcome:
        """Force-close an under-margined position and pay the liquidator's fee.

        The fee is credited to the liquidator's free collateral in the same
        commit as the liquidated records.

        Raises:
            SelfLiquidationError: If the liquidator owns the position
            AccountNotFoundError: If the liquidator has no account
            NoOpenPositionError: If the position is empty
            NotLiquidatableError: If the position is above maintenance
        """
        validate_identifier(liquidator_id, "liquidator_id")
        if liquidator_id == user_id:
            raise SelfLiquidationError(user_id)

        now = self._now(now)
        with self._liquidation_locks(liquidator_id, user_id, market_id):
            liquidator = self.store.get_account(liquidator_id)
            position, account, market = self._load(user_id, market_id)
            price = self.prices.get_price(market_id)
            outcome = self.engine.force_close(position, account, market, price, now=now)
            liquidator = liquidator.credit(outcome.liquidation_fee)
            self._commit(outcome)
            self.store.put_account(liquidator)

        logger.warning(
            f"{liquidator_id} liquidated {user_id}/{market_id}: "
            f"pnl={outcome.realized_pnl}, returned={outcome.collateral_returned}, "
            f"fee={outcome.liquidation_fee}, penalty={outcome.insurance_penalty}, "
            f"bad_debt={outcome.bad_debt}, insurance_draw={outcome.insurance_draw}"
        )
        if outcome.market.emergency and not market.emergency:
            logger.error(f"Market {market_id} entered emergency mode")
        return outcome

    # Queries

    def get_market(self, market_id: str) -> Market:
        return self.store.get_market(market_id)

    def list_markets(self) -> list[Market]:
        return self.store.list_markets()

    def list_positions(self, user_id: str) -> list[Position]:
        """Return the user's open positions."""
        self.store.get_account(user_id)
        return self.store.list_positions(user_id)

    def get_account(self, user_id: str) -> UserAccount:
        return self.store.get_account(user_id)

    def get_position(self, user_id: str, market_id: str) -> Position:
        self.store.get_account(user_id)
        return self.store.get_position(user_id, market_id)

    def get_price(self, market_id: str) -> OraclePrice:
        return self.prices.get_price(market_id)

    # Internals

    def _load(self, user_id: str, market_id: str) -> tuple[Position, UserAccount, Market]:
        market = self.store.get_market(market_id)
        account = self.store.get_account(user_id)
        position = self.store.get_position(user_id, market_id)
        return position, account, market

    def _commit(self, outcome: TradeOutcome) -> None:
        self.store.commit(outcome.position, outcome.user, outcome.market)
        self._journal(outcome.record)
        if outcome.bad_debt:
            logger.warning(
                f"Bad debt {outcome.bad_debt} absorbed on "
                f"{outcome.record.user_id}/{outcome.record.market_id}"
            )

    def _journal(self, record: TradeRecord) -> None:
        self.journal.append(record)

    def _collateral_record(self, kind: OperationKind, user_id: str, amount: int) -> TradeRecord:
        return TradeRecord(
            kind=kind,
            user_id=user_id,
            market_id=None,
            size_delta=0,
            price=0,
            margin_delta=amount,
            realized_pnl=0,
            open_interest=0,
        )

    def _validate_amount(self, amount: int, name: str) -> int:
        validate_int(amount, name)
        if amount <= 0:
            raise InvalidAmountError(amount, name)
        return validate_width(amount, Width.UINT64, name)

    def _ensure_active(self, operation: str) -> None:
        if self.config.paused:
            raise EnginePausedError(operation)

    def _now(self, now: int | None) -> int:
        return self._clock() if now is None else now

    def _lock_for(self, registry: dict[str, threading.RLock], key: str) -> threading.RLock:
        with self._registry_lock:
            lock = registry.get(key)
            if lock is None:
                lock = registry[key] = threading.RLock()
            return lock

    @contextmanager
    def _user_lock(self, user_id: str) -> Iterator[None]:
        with self._lock_for(self._user_locks, user_id):
            yield

    @contextmanager
    def _market_lock(self, market_id: str) -> Iterator[None]:
        with self._lock_for(self._market_locks, market_id):
            yield

    @contextmanager
    def _position_locks(self, user_id: str, market_id: str) -> Iterator[None]:
        with self._market_lock(market_id), self._user_lock(user_id):
            yield

    @contextmanager
    def _liquidation_locks(
        self, liquidator_id: str, user_id: str, market_id: str
    ) -> Iterator[None]:
        with self._market_lock(market_id), ExitStack() as stack:
            for key in sorted([liquidator_id, user_id]):
                stack.enter_context(self._user_lock(key))
            yield
