"""
Unit tests for liquidation checks and forced closes.
"""

import pytest

from src.core.engine.engine import PositionEngine
from src.core.engine.risk import PositionRisk
from src.core.enums import OperationKind, Side
from src.core.exceptions.engine import (
    MarketEmergencyError,
    NoOpenPositionError,
    NotLiquidatableError,
)
from src.core.models.market import Market, MarketParams
from src.core.models.oracle import OraclePrice
from src.core.models.position import Position
from src.core.models.user_account import UserAccount


def _market(cumulative: int = 0, insurance_fund: int = 0, **params: int) -> Market:
    return Market(
        market_id="BTC-PERP",
        params=MarketParams(maintenance_margin_bps=500, **params),
        cumulative_funding=cumulative,
        open_interest=1_000_000,
        insurance_fund=insurance_fund,
    )


def _long() -> Position:
    return Position("alice", "BTC-PERP", base_size=10, entry_price=100_000, collateral=200_000)


def _short() -> Position:
    return Position("alice", "BTC-PERP", base_size=-10, entry_price=100_000, collateral=200_000)


class TestPositionRisk:
    """Test equity and maintenance computations."""

    def test_should_report_health(self) -> None:
        """Test equity and requirement at the entry price."""
        assert PositionRisk.health(_long(), _market(), 100_000) == (200_000, 50_000)

    def test_should_not_liquidate_empty_position(self) -> None:
        """Empty positions are never liquidatable."""
        empty = Position.empty("alice", "BTC-PERP")

        assert PositionRisk.is_liquidatable(empty, _market(), 1) is False

    @pytest.mark.parametrize(("price", "expected"), [(84_211, False), (84_210, True)])
    def test_should_flip_at_maintenance_boundary(self, price: int, expected: bool) -> None:
        """Equity 42_110 vs 42_106 stays, 42_100 vs 42_105 goes."""
        assert PositionRisk.is_liquidatable(_long(), _market(), price) is expected

    def test_should_liquidate_short_on_rally(self) -> None:
        """Short loses all collateral at 120_000."""
        assert PositionRisk.is_liquidatable(_short(), _market(), 120_000)

    def test_should_include_unsettled_funding(self) -> None:
        """Pending funding alone can push a position under maintenance."""
        assert not PositionRisk.is_liquidatable(_long(), _market(), 100_000)
        assert PositionRisk.is_liquidatable(_long(), _market(cumulative=16_000), 100_000)


class TestEngineLiquidation:
    """Test engine liquidation entry points."""

    def test_should_answer_is_liquidatable(self) -> None:
        """Test engine delegation."""
        engine = PositionEngine()

        assert engine.is_liquidatable(_long(), _market(), OraclePrice(83_000))
        assert not engine.is_liquidatable(_long(), _market(), OraclePrice(100_000))

    def test_should_accrue_funding_when_now_given(self) -> None:
        """Accrued funding counts against equity."""
        engine = PositionEngine()
        market = Market(
            market_id="BTC-PERP",
            params=MarketParams(),
            funding_rate=100,
            last_funding_timestamp=0,
        )

        assert not engine.is_liquidatable(_long(), market, OraclePrice(100_000), now=0)
        assert engine.is_liquidatable(_long(), market, OraclePrice(100_000), now=160)

    def test_should_force_close_liquidatable_position(self) -> None:
        """Force close records a liquidation and returns the remaining equity."""
        # Arrange
        engine = PositionEngine()
        user = UserAccount("alice", free_collateral=0, open_position_count=1)
        market = _market(liquidation_fee_bps=0, liquidation_penalty_bps=0)

        # Act
        outcome = engine.force_close(_long(), user, market, OraclePrice(83_000))

        # Assert
        assert outcome.record.kind == OperationKind.LIQUIDATION
        assert outcome.record.size_delta == -10
        assert outcome.position.is_empty
        assert outcome.realized_pnl == -170_000
        assert outcome.collateral_returned == 30_000
        assert outcome.user.free_collateral == 30_000
        assert outcome.user.open_position_count == 0
        assert outcome.market.open_interest == 1_000_000 - 830_000
        assert outcome.liquidation_fee == 0
        assert outcome.bad_debt == 0

    def test_should_charge_fee_and_penalty_on_closed_notional(self) -> None:
        """Fee and penalty come out of the returned collateral."""
        user = UserAccount("alice", open_position_count=1)
        market = _market(liquidation_fee_bps=100, liquidation_penalty_bps=50)

        outcome = PositionEngine().force_close(_long(), user, market, OraclePrice(83_000))

        assert outcome.liquidation_fee == 8_300
        assert outcome.insurance_penalty == 4_150
        assert outcome.collateral_returned == 17_550
        assert outcome.user.free_collateral == 17_550
        assert outcome.market.insurance_fund == 4_150
        assert outcome.market.emergency is False

    def test_should_draw_shortfall_from_insurance_fund(self) -> None:
        """A shortfall within the fund is covered and the penalty added after."""
        # Arrange
        user = UserAccount("alice", open_position_count=1)
        market = _market(insurance_fund=50_000)

        # Act
        outcome = PositionEngine().force_close(_long(), user, market, OraclePrice(83_000))

        # Assert
        assert outcome.liquidation_fee == 20_750
        assert outcome.insurance_penalty == 20_750
        assert outcome.bad_debt == 11_500
        assert outcome.insurance_draw == 11_500
        assert outcome.collateral_returned == 0
        assert outcome.user.free_collateral == 0
        assert outcome.market.insurance_fund == 50_000 - 11_500 + 20_750
        assert outcome.market.emergency is False

    def test_should_enter_emergency_when_fund_is_short(self) -> None:
        """A shortfall beyond the fund empties it and raises emergency mode."""
        user = UserAccount("alice", open_position_count=1)
        market = _market(insurance_fund=5_000)

        outcome = PositionEngine().force_close(_long(), user, market, OraclePrice(83_000))

        assert outcome.bad_debt == 11_500
        assert outcome.insurance_draw == 5_000
        assert outcome.market.insurance_fund == 20_750
        assert outcome.market.emergency is True
        assert market.emergency is False

    def test_should_refuse_to_force_close_healthy_position(self) -> None:
        """Healthy positions cannot be liquidated."""
        user = UserAccount("alice", open_position_count=1)

        with pytest.raises(NotLiquidatableError) as exc_info:
            PositionEngine().force_close(_long(), user, _market(), OraclePrice(100_000))

        assert exc_info.value.equity == 200_000
        assert exc_info.value.requirement == 50_000

    def test_should_refuse_to_force_close_empty_position(self) -> None:
        """Empty positions have nothing to liquidate."""
        empty = Position.empty("alice", "BTC-PERP")

        with pytest.raises(NoOpenPositionError):
            PositionEngine().force_close(empty, UserAccount("alice"), _market(), OraclePrice(1))


class TestEmergencyMode:
    """Test trading restrictions of a market in emergency mode."""

    @pytest.fixture
    def market(self) -> Market:
        """Create a market in emergency mode."""
        return Market("BTC-PERP", MarketParams(), open_interest=1_000_000, emergency=True)

    def test_should_reject_new_position(self, market: Market) -> None:
        """Opening exposure is refused."""
        user = UserAccount("alice", free_collateral=1_000_000)

        with pytest.raises(MarketEmergencyError):
            PositionEngine().open_or_increase(
                Position.empty("alice", "BTC-PERP"),
                user,
                market,
                OraclePrice(100_000),
                Side.LONG,
                1,
                1,
            )

    def test_should_reject_increase_and_flip(self, market: Market) -> None:
        """Adding exposure on either side is refused."""
        engine = PositionEngine()
        user = UserAccount("alice", free_collateral=1_000_000, open_position_count=1)

        with pytest.raises(MarketEmergencyError):
            engine.open_or_increase(
                _long(), user, market, OraclePrice(100_000), Side.LONG, 1, 5
            )
        with pytest.raises(MarketEmergencyError):
            engine.open_or_increase(
                _long(), user, market, OraclePrice(100_000), Side.SHORT, 11, 5
            )

    def test_should_allow_reductions(self, market: Market) -> None:
        """Reducing and closing still go through."""
        engine = PositionEngine()
        user = UserAccount("alice", open_position_count=1)

        reduced = engine.open_or_increase(
            _long(), user, market, OraclePrice(100_000), Side.SHORT, 4, 5
        )
        closed = engine.decrease_or_close(_long(), user, market, OraclePrice(100_000))

        assert reduced.record.kind == OperationKind.DECREASE
        assert closed.record.kind == OperationKind.CLOSE
        assert closed.market.emergency is True
