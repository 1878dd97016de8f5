"""
Account API endpoints.
"""

from fastapi import APIRouter, Depends, status

from src.api.dependencies import get_exchange
from src.api.schemas.api_models import AccountResponse, CollateralRequest, PositionResponse
from src.services.exchange import ExchangeService

router = APIRouter()


@router.post("/{user_id}", status_code=status.HTTP_201_CREATED)
def register_user(user_id: str, exchange: ExchangeService = Depends(get_exchange)) -> AccountResponse:
    """Create an empty account."""
    return AccountResponse.from_account(exchange.register_user(user_id))


@router.get("/{user_id}")
def get_account(user_id: str, exchange: ExchangeService = Depends(get_exchange)) -> AccountResponse:
    """Get a user's free collateral and open position count."""
    return AccountResponse.from_account(exchange.get_account(user_id))


@router.get("/{user_id}/positions")
def list_positions(
    user_id: str, exchange: ExchangeService = Depends(get_exchange)
) -> list[PositionResponse]:
    """List a user's open positions."""
    return [PositionResponse.from_position(p) for p in exchange.list_positions(user_id)]


@router.post("/{user_id}/deposit")
def deposit(
    user_id: str, request: CollateralRequest, exchange: ExchangeService = Depends(get_exchange)
) -> AccountResponse:
    """Deposit collateral."""
    return AccountResponse.from_account(exchange.deposit(user_id, request.amount))


@router.post("/{user_id}/withdraw")
def withdraw(
    user_id: str, request: CollateralRequest, exchange: ExchangeService = Depends(get_exchange)
) -> AccountResponse:
    """Withdraw free collateral (only with no open positions)."""
    return AccountResponse.from_account(exchange.withdraw(user_id, request.amount))
