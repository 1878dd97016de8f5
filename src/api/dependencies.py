"""
FastAPI dependencies.
"""

from fastapi import Request

from src.services.exchange import ExchangeService


def get_exchange(request: Request) -> ExchangeService:
    """Exchange service attached to the running application."""
    return request.app.state.exchange
