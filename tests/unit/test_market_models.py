"""
Unit tests for market, account, oracle, record and config models.
"""

from datetime import UTC, datetime

import pytest

from src.core.constants import MAX_POSITIONS_PER_USER
from src.core.enums import OperationKind
from src.core.exceptions.engine import (
    ArithmeticOverflowError,
    ConfigurationError,
    InsufficientCollateralError,
    InvalidAmountError,
    PositionLimitError,
    ValidationError,
)
from src.core.models.config import EngineConfig
from src.core.models.market import Market, MarketParams
from src.core.models.oracle import OraclePrice
from src.core.models.trade_record import TradeRecord
from src.core.models.user_account import UserAccount


class TestMarketParams:
    """Test market risk parameter validation."""

    def test_should_use_defaults(self) -> None:
        """Test default parameters."""
        params = MarketParams()

        assert params.max_leverage == 20
        assert params.maintenance_margin_bps == 500
        assert params.liquidation_fee_bps == 250
        assert params.liquidation_penalty_bps == 250

    def test_should_reject_zero_leverage(self) -> None:
        """Test max_leverage >= 1."""
        with pytest.raises(ConfigurationError, match="max_leverage must be at least 1"):
            MarketParams(max_leverage=0)

    def test_should_reject_maintenance_ratio_of_one_hundred_percent(self) -> None:
        """Test maintenance_margin_bps < 10000."""
        with pytest.raises(ConfigurationError, match="maintenance_margin_bps"):
            MarketParams(maintenance_margin_bps=10_000)

    def test_should_reject_liquidation_charges_out_of_range(self) -> None:
        """Test liquidation fee and penalty are basis points."""
        with pytest.raises(ConfigurationError, match="liquidation_fee_bps"):
            MarketParams(liquidation_fee_bps=-1)
        with pytest.raises(ConfigurationError, match="liquidation_penalty_bps"):
            MarketParams(liquidation_penalty_bps=10_000)

    def test_should_reject_leverage_beyond_uint16(self) -> None:
        """Test max_leverage width."""
        with pytest.raises(ConfigurationError, match="uint16"):
            MarketParams(max_leverage=70_000)

    def test_should_check_leverage_and_funding_bounds(self) -> None:
        """Test is_valid helpers."""
        params = MarketParams(max_leverage=10, max_funding_rate=5)

        assert params.is_valid_leverage(10)
        assert not params.is_valid_leverage(11)
        assert not params.is_valid_leverage(0)
        assert params.is_valid_funding_rate(-5)
        assert not params.is_valid_funding_rate(6)


class TestMarket:
    """Test market state."""

    def test_should_create_zeroed_market(self) -> None:
        """Test factory."""
        market = Market.create("BTC-PERP", MarketParams(max_leverage=5), timestamp=1_000)

        assert market.max_leverage == 5
        assert market.maintenance_margin_bps == 500
        assert market.open_interest == 0
        assert market.cumulative_funding == 0
        assert market.last_funding_timestamp == 1_000
        assert market.insurance_fund == 0
        assert market.emergency is False

    def test_should_reject_blank_market_id(self) -> None:
        """Test identifier validation."""
        with pytest.raises(ValidationError, match="market_id"):
            Market.create("", MarketParams())

    def test_should_serialize_to_dict(self) -> None:
        """Test to_dict."""
        data = Market.create("BTC-PERP", MarketParams()).to_dict()

        assert data["market_id"] == "BTC-PERP"
        assert data["max_funding_rate"] == 1_000
        assert data["insurance_fund"] == 0
        assert data["emergency"] is False
        assert data["liquidation_fee_bps"] == 250

    def test_should_fund_insurance(self) -> None:
        """Test insurance deposits return a new market."""
        market = Market.create("BTC-PERP", MarketParams())

        funded = market.fund_insurance(50_000).fund_insurance(25_000)

        assert funded.insurance_fund == 75_000
        assert market.insurance_fund == 0

    def test_should_reject_invalid_insurance_deposit(self) -> None:
        """Test insurance amount and width checks."""
        market = Market("BTC-PERP", MarketParams(), insurance_fund=2**64 - 1)

        with pytest.raises(InvalidAmountError):
            market.fund_insurance(0)
        with pytest.raises(ArithmeticOverflowError):
            market.fund_insurance(1)


class TestUserAccount:
    """Test user ledger operations."""

    def test_should_credit_and_debit(self) -> None:
        """Test credit and debit return new accounts."""
        account = UserAccount("alice", free_collateral=100)

        credited = account.credit(50)
        debited = credited.debit(120)

        assert account.free_collateral == 100
        assert credited.free_collateral == 150
        assert debited.free_collateral == 30

    def test_should_reject_debit_beyond_balance(self) -> None:
        """Test that free collateral never goes negative."""
        account = UserAccount("alice", free_collateral=100)

        with pytest.raises(InsufficientCollateralError) as exc_info:
            account.debit(101, "withdraw")

        assert exc_info.value.required == 101
        assert exc_info.value.available == 100

    def test_should_reject_credit_overflow(self) -> None:
        """Test uint64 bound on free collateral."""
        account = UserAccount("alice", free_collateral=2**64 - 1)

        with pytest.raises(ArithmeticOverflowError):
            account.credit(1)

    def test_should_track_open_positions(self) -> None:
        """Test counter increments and decrements."""
        account = UserAccount("alice").with_position_opened()

        assert account.open_position_count == 1
        assert account.has_open_positions
        assert account.with_position_closed().open_position_count == 0

    def test_should_reject_closing_with_zero_open_positions(self) -> None:
        """Test that a counter out of sync with the positions is an error."""
        account = UserAccount("alice")

        with pytest.raises(ValidationError, match="counter out of sync"):
            account.with_position_closed()

    def test_should_cap_open_positions(self) -> None:
        """Test the uint8 position limit."""
        account = UserAccount("alice", open_position_count=MAX_POSITIONS_PER_USER)

        with pytest.raises(PositionLimitError):
            account.with_position_opened()


class TestOraclePrice:
    """Test oracle input validation."""

    def test_should_reject_non_positive_price(self) -> None:
        """Test price > 0."""
        with pytest.raises(ValidationError, match="Oracle price must be positive"):
            OraclePrice(price=0)

    def test_should_reject_float_price(self) -> None:
        """Test integer unit requirement."""
        with pytest.raises(ValidationError, match="price must be an integer"):
            OraclePrice(price=100.5)  # type: ignore[arg-type]

    def test_should_compute_age(self) -> None:
        """Test age from timestamp."""
        assert OraclePrice(price=100, timestamp=1_000).age(1_030) == 30
        assert OraclePrice(price=100).age(1_030) is None


class TestTradeRecord:
    """Test audit record."""

    def test_should_default_timestamp_to_now(self) -> None:
        """Test automatic timestamp."""
        record = TradeRecord(
            kind=OperationKind.OPEN,
            user_id="alice",
            market_id="BTC-PERP",
            size_delta=10,
            price=100_000,
            margin_delta=200_000,
            realized_pnl=0,
            open_interest=1_000_000,
        )

        assert record.timestamp is not None
        assert record.timestamp.tzinfo == UTC
        assert record.notional_value() == 1_000_000

    def test_should_serialize_to_dict(self) -> None:
        """Test to_dict output."""
        record = TradeRecord(
            kind=OperationKind.CLOSE,
            user_id="alice",
            market_id="BTC-PERP",
            size_delta=-10,
            price=110_000,
            margin_delta=-200_000,
            realized_pnl=100_000,
            open_interest=0,
            collateral_returned=300_000,
            timestamp=datetime(2024, 1, 1, tzinfo=UTC),
        )

        data = record.to_dict()

        assert data["kind"] == "close"
        assert data["timestamp"] == "2024-01-01T00:00:00+00:00"
        assert data["collateral_returned"] == 300_000

    def test_should_reject_negative_bad_debt(self) -> None:
        """Test bad debt is a magnitude."""
        with pytest.raises(ValidationError, match="Bad debt"):
            TradeRecord(
                kind=OperationKind.CLOSE,
                user_id="alice",
                market_id="BTC-PERP",
                size_delta=-1,
                price=1,
                margin_delta=0,
                realized_pnl=0,
                open_interest=0,
                bad_debt=-1,
            )

    def test_should_carry_liquidation_charges(self) -> None:
        """Test liquidation amounts are serialized."""
        record = TradeRecord(
            kind=OperationKind.LIQUIDATION,
            user_id="alice",
            market_id="BTC-PERP",
            size_delta=-10,
            price=83_000,
            margin_delta=-200_000,
            realized_pnl=-170_000,
            open_interest=0,
            bad_debt=11_500,
            liquidation_fee=20_750,
            insurance_penalty=20_750,
            insurance_draw=11_500,
        )

        data = record.to_dict()

        assert data["liquidation_fee"] == 20_750
        assert data["insurance_penalty"] == 20_750
        assert data["insurance_draw"] == 11_500

    def test_should_reject_negative_liquidation_fee(self) -> None:
        """Test liquidation charges are magnitudes."""
        with pytest.raises(ValidationError, match="liquidation_fee"):
            TradeRecord(
                kind=OperationKind.LIQUIDATION,
                user_id="alice",
                market_id="BTC-PERP",
                size_delta=-1,
                price=1,
                margin_delta=0,
                realized_pnl=0,
                open_interest=0,
                liquidation_fee=-1,
            )

    def test_should_allow_market_level_record_without_user(self) -> None:
        """Test records of market events leave the user unset."""
        record = TradeRecord(
            kind=OperationKind.FUNDING_RATE_UPDATE,
            user_id=None,
            market_id="BTC-PERP",
            size_delta=0,
            price=0,
            margin_delta=0,
            realized_pnl=0,
            open_interest=0,
        )

        assert record.to_dict()["user_id"] is None


class TestEngineConfig:
    """Test engine configuration."""

    def test_should_default_to_active_without_staleness_bound(self) -> None:
        """Test defaults."""
        config = EngineConfig()

        assert config.paused is False
        assert config.is_price_fresh(None)

    def test_should_check_price_freshness(self) -> None:
        """Test staleness bound."""
        config = EngineConfig(max_price_age=60)

        assert config.is_price_fresh(60)
        assert not config.is_price_fresh(61)
        assert not config.is_price_fresh(None)

    def test_should_reject_negative_price_age(self) -> None:
        """Test validation."""
        with pytest.raises(ConfigurationError, match="max_price_age"):
            EngineConfig(max_price_age=-1)
