"""
Pydantic schemas for API request/response models.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from src.core.constants import (
    BPS_SCALE,
    DEFAULT_LIQUIDATION_FEE_BPS,
    DEFAULT_LIQUIDATION_PENALTY_BPS,
    DEFAULT_MAINTENANCE_MARGIN_BPS,
    DEFAULT_MAX_FUNDING_RATE,
    DEFAULT_MAX_LEVERAGE,
    INT64_MAX,
    INT64_MIN,
    UINT16_MAX,
    UINT64_MAX,
)
from src.core.enums import OperationKind, Side
from src.core.models.market import Market
from src.core.models.outcome import TradeOutcome
from src.core.models.position import Position
from src.core.models.trade_record import TradeRecord
from src.core.models.user_account import UserAccount


class CreateMarketRequest(BaseModel):
    """Request model for listing a market."""

    market_id: str = Field(..., min_length=1, description="Market identifier")
    max_leverage: int = Field(default=DEFAULT_MAX_LEVERAGE, ge=1, le=UINT16_MAX)
    maintenance_margin_bps: int = Field(
        default=DEFAULT_MAINTENANCE_MARGIN_BPS,
        ge=0,
        lt=BPS_SCALE,
        description="Maintenance margin in basis points (0-9999)",
    )
    max_funding_rate: int = Field(default=DEFAULT_MAX_FUNDING_RATE, ge=0, le=INT64_MAX)
    liquidation_fee_bps: int = Field(
        default=DEFAULT_LIQUIDATION_FEE_BPS,
        ge=0,
        lt=BPS_SCALE,
        description="Share of closed notional paid to the liquidator",
    )
    liquidation_penalty_bps: int = Field(
        default=DEFAULT_LIQUIDATION_PENALTY_BPS,
        ge=0,
        lt=BPS_SCALE,
        description="Share of closed notional paid into the insurance fund",
    )


class MarketResponse(BaseModel):
    """Response model for a market."""

    market_id: str
    max_leverage: int
    maintenance_margin_bps: int
    max_funding_rate: int
    funding_rate: int
    cumulative_funding: int
    last_funding_timestamp: int
    open_interest: int
    liquidation_fee_bps: int
    liquidation_penalty_bps: int
    insurance_fund: int
    emergency: bool

    @classmethod
    def from_market(cls, market: Market) -> "MarketResponse":
        return cls(**market.to_dict())


class SetPriceRequest(BaseModel):
    """Request model for publishing an oracle price."""

    price: int = Field(..., gt=0, le=INT64_MAX, description="Price in the collateral unit")
    timestamp: int | None = Field(default=None, description="Unix seconds of the reading")


class PriceResponse(BaseModel):
    """Response model for an oracle price."""

    market_id: str
    price: int
    timestamp: int | None


class FundingRateRequest(BaseModel):
    """Request model for installing a new funding rate."""

    rate: int = Field(..., ge=INT64_MIN, le=INT64_MAX, description="Funding per base unit per second")
    now: int | None = Field(default=None, description="Unix seconds to accrue to")


class CollateralRequest(BaseModel):
    """Request model for deposits and withdrawals."""

    amount: int = Field(..., gt=0, le=UINT64_MAX)


class AccountResponse(BaseModel):
    """Response model for a user account."""

    user_id: str
    free_collateral: int
    open_position_count: int

    @classmethod
    def from_account(cls, account: UserAccount) -> "AccountResponse":
        return cls(**account.to_dict())


class OpenPositionRequest(BaseModel):
    """Request model for opening or adding to a position."""

    user_id: str = Field(..., min_length=1)
    market_id: str = Field(..., min_length=1)
    side: Side = Field(..., description="long or short")
    size: int = Field(..., gt=0, le=INT64_MAX, description="Unsigned base size")
    leverage: int = Field(..., ge=1, le=UINT16_MAX)


class ClosePositionRequest(BaseModel):
    """Request model for reducing or closing a position."""

    user_id: str = Field(..., min_length=1)
    market_id: str = Field(..., min_length=1)
    amount: int | None = Field(default=None, gt=0, description="Size to close; omit to close all")


class LiquidateRequest(BaseModel):
    """Request model for a forced liquidation."""

    liquidator_id: str = Field(..., min_length=1)
    user_id: str = Field(..., min_length=1)
    market_id: str = Field(..., min_length=1)


class PositionResponse(BaseModel):
    """Response model for a position."""

    user_id: str
    market_id: str
    side: Side | None
    base_size: int
    entry_price: int
    collateral: int
    funding_index_snapshot: int

    @classmethod
    def from_position(cls, position: Position) -> "PositionResponse":
        return cls(**position.to_dict())


class TradeRecordResponse(BaseModel):
    """Response model for an audit record."""

    timestamp: datetime | None
    kind: OperationKind
    user_id: str | None
    market_id: str | None
    size_delta: int
    price: int
    margin_delta: int
    collateral_returned: int
    realized_pnl: int
    funding_payment: int
    bad_debt: int
    liquidation_fee: int
    insurance_penalty: int
    insurance_draw: int
    open_interest: int

    @classmethod
    def from_record(cls, record: TradeRecord) -> "TradeRecordResponse":
        return cls(**record.to_dict())


class TradeResponse(BaseModel):
    """Response model for any call that moves a position."""

    position: PositionResponse
    account: AccountResponse
    record: TradeRecordResponse

    @classmethod
    def from_outcome(cls, outcome: TradeOutcome) -> "TradeResponse":
        return cls(
            position=PositionResponse.from_position(outcome.position),
            account=AccountResponse.from_account(outcome.user),
            record=TradeRecordResponse.from_record(outcome.record),
        )


class LiquidationStatusResponse(BaseModel):
    """Response model for a liquidation check."""

    user_id: str
    market_id: str
    liquidatable: bool


class EventsResponse(BaseModel):
    """Response model for journal queries."""

    count: int
    events: list[TradeRecordResponse]


class ErrorResponse(BaseModel):
    """Body returned for rejected calls."""

    error: str
    detail: str
