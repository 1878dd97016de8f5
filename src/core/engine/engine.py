"""
Position engine - orchestrates the engine components.

This module provides the engine's four operations by composing the focused
components: validation, funding settlement, trading legs and risk checks.
Every operation is a pure transition: it reads frozen records and returns
new ones in a TradeOutcome, so a rejected call changes nothing.
"""

from dataclasses import replace
from datetime import UTC, datetime

from loguru import logger

from src.core.enums import OperationKind, Side
from src.core.exceptions.engine import (
    EnginePausedError,
    MarketEmergencyError,
    NotLiquidatableError,
    StalePriceError,
)
from src.core.interfaces.engine import CLOSE_ALL, IPositionEngine
from src.core.models.config import EngineConfig
from src.core.models.market import Market
from src.core.models.oracle import OraclePrice
from src.core.models.outcome import TradeOutcome
from src.core.models.position import Position
from src.core.models.trade_record import TradeRecord
from src.core.models.user_account import UserAccount
from src.core.protocols import PriceGuard
from src.core.utils.decorators import log_operation

from .funding import FundingAccumulator, FundingSettlement
from .risk import PositionRisk
from .trading import LegResult, PositionTrading
from .validators import TradeValidator


class PositionEngine(IPositionEngine):
    """Main engine implementation.

    Composes:
    - TradeValidator: input checks
    - FundingAccumulator: lazy funding settlement
    - PositionTrading: open/increase and decrease/close legs
    - PositionRisk: liquidation test
    """

    def __init__(
        self, config: EngineConfig | None = None, price_guard: PriceGuard | None = None
    ) -> None:
        """Initialize the engine.

        Args:
            config: Explicit engine configuration (defaults to an unpaused,
                staleness-free configuration)
            price_guard: Optional precondition run on every oracle reading,
                replacing the config's max_price_age check
        """
        self.config = config or EngineConfig()
        self._price_guard = price_guard
        self._trading = PositionTrading()
        self._funding = FundingAccumulator()
        self._risk = PositionRisk()

    @log_operation
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
        """Open a position or add to it on the requested side.

        A request against the position's own side (or an empty position)
        increases it. A request on the opposite side reduces it; when the
        request is larger than the position, the position is closed and the
        residual opened on the other side in the same call.

        Args:
            position: Current position record
            user: Owner's account
            market: Market record
            price: Oracle reading used as the execution price
            side: Requested side
            size_delta: Unsigned size of the request
            leverage: Leverage in [1, market.max_leverage]
            now: Current unix time; when given, market funding is accrued first

        Returns:
            TradeOutcome with the new records and an audit record

        Raises:
            EnginePausedError: If the engine is paused
            InvalidAmountError: If size_delta <= 0
            InvalidLeverageError: If leverage is out of range
            InsufficientCollateralError: If free collateral cannot cover the margin
            MarketEmergencyError: If the request adds exposure to a market in emergency mode
            PriceError: If the price guard rejects the reading
            ArithmeticOverflowError: If a result does not fit its width
        """
        self._ensure_active("open_or_increase")
        TradeValidator.validate_records(position, user, market)
        exec_price = self._resolve_price(price, market, now)
        side = TradeValidator.validate_side(side)
        size_delta = TradeValidator.validate_size(size_delta)
        leverage = TradeValidator.validate_leverage(leverage, market)

        market, settlement = self._settle(position, market, now)
        position = settlement.position
        signed_delta = side.sign * size_delta

        if position.is_empty or position.direction == side.sign:
            self._ensure_not_emergency(market)
            kind = OperationKind.OPEN if position.is_empty else OperationKind.INCREASE
            leg = self._trading.increase(position, user, market, exec_price, signed_delta, leverage)
        elif size_delta <= position.size:
            leg = self._trading.reduce(position, user, market, exec_price, size_delta)
            kind = OperationKind.CLOSE if leg.position.is_empty else OperationKind.DECREASE
        else:
            self._ensure_not_emergency(market)
            kind = OperationKind.FLIP
            leg = self._flip(position, user, market, exec_price, signed_delta, leverage)

        return self._outcome(kind, leg, signed_delta, exec_price, settlement, now)

    @log_operation
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
        """Reduce or fully close an open position at the oracle price.

        Raises:
            EnginePausedError: If the engine is paused
            NoOpenPositionError: If the position is empty
            InvalidAmountError: If close_amount is given and <= 0
        """
        self._ensure_active("decrease_or_close")
        TradeValidator.validate_records(position, user, market)
        exec_price = self._resolve_price(price, market, now)
        close_amount = TradeValidator.validate_close_amount(close_amount)
        TradeValidator.require_open_position(position)

        return self._close(position, user, market, exec_price, close_amount, now)

    @log_operation
    def settle_funding(
        self,
        position: Position,
        user: UserAccount,
        market: Market,
        *,
        now: int | None = None,
    ) -> TradeOutcome:
        """Settle funding without trading.

        Idempotent: settling again against the same market index pays 0.
        """
        self._ensure_active("settle_funding")
        TradeValidator.validate_records(position, user, market)

        market, settlement = self._settle(position, market, now)
        leg = LegResult(position=settlement.position, user=user, market=market)
        return self._outcome(OperationKind.FUNDING_SETTLEMENT, leg, 0, 0, settlement, now)

    def is_liquidatable(
        self,
        position: Position,
        market: Market,
        price: OraclePrice,
        *,
        now: int | None = None,
    ) -> bool:
        """Check if equity (including unsettled funding) is below maintenance."""
        TradeValidator.validate_position_market(position, market)
        exec_price = self._resolve_price(price, market, now)
        if now is not None:
            market = self._funding.accrue(market, now)
        return self._risk.is_liquidatable(position, market, exec_price)

    def health(
        self,
        position: Position,
        market: Market,
        price: OraclePrice,
        *,
        now: int | None = None,
    ) -> tuple[int, int]:
        """Return (equity, maintenance requirement) for the position."""
        TradeValidator.validate_position_market(position, market)
        exec_price = self._resolve_price(price, market, now)
        if now is not None:
            market = self._funding.accrue(market, now)
        return self._risk.health(position, market, exec_price)

    @log_operation
    def force_close(
        self,
        position: Position,
        user: UserAccount,
        market: Market,
        price: OraclePrice,
        *,
        now: int | None = None,
    ) -> TradeOutcome:
        """Close a liquidatable position in full, recorded as a liquidation.

        The record carries the liquidation fee owed to the liquidator, the
        penalty paid into the insurance fund and any insurance draw.

        Raises:
            NoOpenPositionError: If the position is empty
            NotLiquidatableError: If the position is above maintenance
        """
        self._ensure_active("liquidation")
        TradeValidator.validate_records(position, user, market)
        exec_price = self._resolve_price(price, market, now)
        TradeValidator.require_open_position(position)

        accrued = market if now is None else self._funding.accrue(market, now)
        equity, requirement = self._risk.health(position, accrued, exec_price)
        if equity >= requirement:
            raise NotLiquidatableError(position.user_id, position.market_id, equity, requirement)

        logger.warning(
            f"Liquidating {position.user_id}/{position.market_id}: "
            f"equity={equity}, maintenance={requirement}"
        )
        market, settlement = self._settle(position, market, now)
        leg = self._trading.liquidate(settlement.position, user, market, exec_price)
        return self._outcome(
            OperationKind.LIQUIDATION, leg, -position.base_size, exec_price, settlement, now
        )

    def _close(
        self,
        position: Position,
        user: UserAccount,
        market: Market,
        exec_price: int,
        close_amount: int | None,
        now: int | None,
    ) -> TradeOutcome:
        """Settle funding and run the reducing leg."""
        market, settlement = self._settle(position, market, now)
        leg = self._trading.reduce(settlement.position, user, market, exec_price, close_amount)
        kind = OperationKind.CLOSE if leg.position.is_empty else OperationKind.DECREASE

        closed = position.size - leg.position.size
        signed_delta = -position.direction * closed
        return self._outcome(kind, leg, signed_delta, exec_price, settlement, now)

    def _flip(
        self,
        position: Position,
        user: UserAccount,
        market: Market,
        exec_price: int,
        signed_delta: int,
        leverage: int,
    ) -> LegResult:
        """Close the whole position, then open the residual on the other side."""
        closed = self._trading.reduce(position, user, market, exec_price, CLOSE_ALL)
        residual = signed_delta + position.base_size
        opened = self._trading.increase(
            closed.position, closed.user, closed.market, exec_price, residual, leverage
        )
        return replace(
            opened,
            margin_delta=closed.margin_delta + opened.margin_delta,
            collateral_returned=closed.collateral_returned,
            realized_pnl=closed.realized_pnl,
            bad_debt=closed.bad_debt,
        )

    def _settle(
        self, position: Position, market: Market, now: int | None
    ) -> tuple[Market, FundingSettlement]:
        """Accrue the market to now (if given) and settle the position against it."""
        if now is not None:
            market = self._funding.accrue(market, now)
        return market, self._funding.settle(position, market)

    def _resolve_price(self, price: OraclePrice, market: Market, now: int | None) -> int:
        """Validate the oracle reading and run the staleness precondition."""
        exec_price = TradeValidator.validate_price(price)
        if self._price_guard is not None:
            self._price_guard(market.market_id, price, now)
        elif self.config.max_price_age is not None and now is not None:
            age = price.age(now)
            if not self.config.is_price_fresh(age):
                logger.warning(f"Rejected stale price for {market.market_id}: age={age}s")
                raise StalePriceError(market.market_id, age, self.config.max_price_age)
        return exec_price

    def _ensure_active(self, operation: str) -> None:
        """Raise EnginePausedError while the configuration is paused."""
        if self.config.paused:
            raise EnginePausedError(operation)

    @staticmethod
    def _ensure_not_emergency(market: Market) -> None:
        if market.emergency:
            raise MarketEmergencyError(market.market_id)

    @staticmethod
    def _outcome(
        kind: OperationKind,
        leg: LegResult,
        signed_delta: int,
        exec_price: int,
        settlement: FundingSettlement,
        now: int | None,
    ) -> TradeOutcome:
        """Bundle a finished leg with its audit record."""
        record = TradeRecord(
            kind=kind,
            user_id=leg.position.user_id,
            market_id=leg.position.market_id,
            size_delta=signed_delta,
            price=exec_price,
            margin_delta=leg.margin_delta,
            realized_pnl=leg.realized_pnl,
            open_interest=leg.market.open_interest,
            collateral_returned=leg.collateral_returned,
            funding_payment=settlement.payment,
            bad_debt=leg.bad_debt + settlement.bad_debt,
            liquidation_fee=leg.liquidation_fee,
            insurance_penalty=leg.insurance_penalty,
            insurance_draw=leg.insurance_draw,
            timestamp=None if now is None else datetime.fromtimestamp(now, UTC),
        )
        return TradeOutcome(position=leg.position, user=leg.user, market=leg.market, record=record)
