"""
Market API endpoints.
"""

from fastapi import APIRouter, Depends, status

from src.api.dependencies import get_exchange
from src.api.schemas.api_models import (
    CollateralRequest,
    CreateMarketRequest,
    FundingRateRequest,
    MarketResponse,
    PriceResponse,
    SetPriceRequest,
)
from src.core.models.market import MarketParams
from src.services.exchange import ExchangeService

router = APIRouter()


@router.post("", status_code=status.HTTP_201_CREATED)
def create_market(
    request: CreateMarketRequest, exchange: ExchangeService = Depends(get_exchange)
) -> MarketResponse:
    """List a new market."""
    params = MarketParams(
        max_leverage=request.max_leverage,
        maintenance_margin_bps=request.maintenance_margin_bps,
        max_funding_rate=request.max_funding_rate,
        liquidation_fee_bps=request.liquidation_fee_bps,
        liquidation_penalty_bps=request.liquidation_penalty_bps,
    )
    return MarketResponse.from_market(exchange.create_market(request.market_id, params))


@router.get("")
def list_markets(exchange: ExchangeService = Depends(get_exchange)) -> list[MarketResponse]:
    """List all markets."""
    return [MarketResponse.from_market(market) for market in exchange.list_markets()]


@router.get("/{market_id}")
def get_market(market_id: str, exchange: ExchangeService = Depends(get_exchange)) -> MarketResponse:
    """Get market state."""
    return MarketResponse.from_market(exchange.get_market(market_id))


@router.put("/{market_id}/price")
def set_price(
    market_id: str, request: SetPriceRequest, exchange: ExchangeService = Depends(get_exchange)
) -> PriceResponse:
    """Publish an oracle price for the market."""
    reading = exchange.set_price(market_id, request.price, timestamp=request.timestamp)
    return PriceResponse(market_id=market_id, price=reading.price, timestamp=reading.timestamp)


@router.get("/{market_id}/price")
def get_price(market_id: str, exchange: ExchangeService = Depends(get_exchange)) -> PriceResponse:
    """Get the live oracle price for the market."""
    reading = exchange.get_price(market_id)
    return PriceResponse(market_id=market_id, price=reading.price, timestamp=reading.timestamp)


@router.put("/{market_id}/funding-rate")
def update_funding_rate(
    market_id: str, request: FundingRateRequest, exchange: ExchangeService = Depends(get_exchange)
) -> MarketResponse:
    """Install a new funding rate after accruing under the old one."""
    market = exchange.update_funding_rate(market_id, request.rate, now=request.now)
    return MarketResponse.from_market(market)


@router.post("/{market_id}/insurance")
def deposit_insurance(
    market_id: str, request: CollateralRequest, exchange: ExchangeService = Depends(get_exchange)
) -> MarketResponse:
    """Fund the market's insurance fund."""
    return MarketResponse.from_market(exchange.deposit_insurance(market_id, request.amount))
