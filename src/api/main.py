"""
FastAPI main application for the perpetual-futures margin engine.
"""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from src.api.schemas.api_models import ErrorResponse
from src.core.exceptions.engine import (
    AccountNotFoundError,
    ConfigurationError,
    EngineException,
    EnginePausedError,
    MarketNotFoundError,
    PositionError,
    PriceError,
    ValidationError,
)
from src.services.exchange import ExchangeService

from .routers import accounts, events, markets, positions


def status_for(error: EngineException) -> int:
    """HTTP status code for an engine rejection."""
    if isinstance(error, ValidationError | ConfigurationError):
        return 422
    if isinstance(error, MarketNotFoundError | AccountNotFoundError):
        return 404
    if isinstance(error, PositionError | PriceError):
        return 409
    if isinstance(error, EnginePausedError):
        return 503
    return 400


async def engine_exception_handler(request: Request, exc: EngineException) -> JSONResponse:
    """Render engine rejections as JSON errors."""
    code = status_for(exc)
    logger.info(f"{request.method} {request.url.path} rejected with {code}: {exc}")
    body = ErrorResponse(error=type(exc).__name__, detail=str(exc))
    return JSONResponse(status_code=code, content=body.model_dump())


def create_app(exchange: ExchangeService | None = None) -> FastAPI:
    """Build the application around an exchange service."""
    app = FastAPI(
        title="Perpetual Futures Margin API",
        version="1.0.0",
        description="API for perpetual-futures position and margin accounting",
    )
    app.state.exchange = exchange or ExchangeService()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[
            "http://localhost:3000",  # Development frontend
            "http://localhost:8080",  # Alternative development port
        ],
        allow_credentials=False,
        allow_methods=["GET", "POST", "PUT"],
        allow_headers=["Content-Type", "Authorization", "Accept", "Origin"],
    )
    app.add_exception_handler(EngineException, engine_exception_handler)

    app.include_router(markets.router, prefix="/api/markets", tags=["markets"])
    app.include_router(accounts.router, prefix="/api/accounts", tags=["accounts"])
    app.include_router(positions.router, prefix="/api/positions", tags=["positions"])
    app.include_router(events.router, prefix="/api/events", tags=["events"])

    @app.get("/")
    async def root() -> dict[str, str]:
        """Root endpoint returning API information."""
        return {"message": "Perpetual Futures Margin API", "version": "1.0.0", "status": "running"}

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Health check endpoint."""
        paused = app.state.exchange.config.paused
        return {"status": "paused" if paused else "healthy"}

    return app


app = create_app()
