"""
Audit event API endpoints.
"""

from fastapi import APIRouter, Depends, Query

from src.api.dependencies import get_exchange
from src.api.schemas.api_models import EventsResponse, TradeRecordResponse
from src.core.enums import OperationKind
from src.services.exchange import ExchangeService

router = APIRouter()


@router.get("")
def list_events(
    user_id: str | None = None,
    market_id: str | None = None,
    kind: OperationKind | None = None,
    limit: int = Query(default=100, ge=1, le=1000),
    exchange: ExchangeService = Depends(get_exchange),
) -> EventsResponse:
    """List the most recent audit records, oldest first."""
    records = exchange.journal.records(user_id=user_id, market_id=market_id, kind=kind)[-limit:]
    return EventsResponse(
        count=len(records), events=[TradeRecordResponse.from_record(r) for r in records]
    )
