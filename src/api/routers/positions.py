"""
Position API endpoints.
"""

from fastapi import APIRouter, Depends

from src.api.dependencies import get_exchange
from src.api.schemas.api_models import (
    ClosePositionRequest,
    LiquidateRequest,
    LiquidationStatusResponse,
    OpenPositionRequest,
    PositionResponse,
    TradeResponse,
)
from src.services.exchange import ExchangeService

router = APIRouter()


@router.post("/open")
def open_position(
    request: OpenPositionRequest, exchange: ExchangeService = Depends(get_exchange)
) -> TradeResponse:
    """Open, increase, reduce or flip a position at the oracle price."""
    outcome = exchange.open_position(
        request.user_id, request.market_id, request.side, request.size, request.leverage
    )
    return TradeResponse.from_outcome(outcome)


@router.post("/close")
def close_position(
    request: ClosePositionRequest, exchange: ExchangeService = Depends(get_exchange)
) -> TradeResponse:
    """Reduce or close a position at the oracle price."""
    outcome = exchange.close_position(request.user_id, request.market_id, request.amount)
    return TradeResponse.from_outcome(outcome)


@router.post("/liquidate")
def liquidate(
    request: LiquidateRequest, exchange: ExchangeService = Depends(get_exchange)
) -> TradeResponse:
    """Force-close an under-margined position."""
    outcome = exchange.liquidate(request.liquidator_id, request.user_id, request.market_id)
    return TradeResponse.from_outcome(outcome)


@router.post("/{user_id}/{market_id}/settle-funding")
def settle_funding(
    user_id: str, market_id: str, exchange: ExchangeService = Depends(get_exchange)
) -> TradeResponse:
    """Settle a position's funding."""
    return TradeResponse.from_outcome(exchange.settle_funding(user_id, market_id))


@router.get("/{user_id}/{market_id}")
def get_position(
    user_id: str, market_id: str, exchange: ExchangeService = Depends(get_exchange)
) -> PositionResponse:
    """Get a position (empty when never opened)."""
    return PositionResponse.from_position(exchange.get_position(user_id, market_id))


@router.get("/{user_id}/{market_id}/liquidatable")
def check_liquidation(
    user_id: str, market_id: str, exchange: ExchangeService = Depends(get_exchange)
) -> LiquidationStatusResponse:
    """Check if a position is below maintenance margin."""
    return LiquidationStatusResponse(
        user_id=user_id,
        market_id=market_id,
        liquidatable=exchange.check_liquidation(user_id, market_id),
    )
