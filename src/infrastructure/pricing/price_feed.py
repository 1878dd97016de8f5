"""
In-memory oracle price feed.

Readings expire after a fixed time-to-live; an expired reading is reported
as stale rather than silently reused.
"""

import time
from collections.abc import Callable
from threading import RLock

from cachetools import LRUCache, TTLCache
from loguru import logger

from src.core.constants import DEFAULT_PRICE_TTL_SECONDS, MAX_TRACKED_MARKETS
from src.core.exceptions.engine import PriceUnavailableError, StalePriceError, ValidationError
from src.core.interfaces.collaborators import IPriceResolver
from src.core.models.oracle import OraclePrice


class CachedPriceFeed(IPriceResolver):
    """Price resolver backed by a cachetools TTLCache."""

    def __init__(
        self,
        ttl: int = DEFAULT_PRICE_TTL_SECONDS,
        max_markets: int = MAX_TRACKED_MARKETS,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the feed.

        Args:
            ttl: Seconds a reading stays usable
            max_markets: Maximum number of markets tracked
            timer: Clock used for expiry (injectable for tests)
        """
        if ttl <= 0:
            raise ValidationError(f"Price TTL must be positive, got {ttl}")
        if max_markets <= 0:
            raise ValidationError(f"max_markets must be positive, got {max_markets}")

        self.ttl = ttl
        self._timer = timer
        self._prices: TTLCache[str, OraclePrice] = TTLCache(
            maxsize=max_markets, ttl=ttl, timer=timer
        )
        # Remembers when each market was last published, after the reading itself expires
        self._published_at: LRUCache[str, float] = LRUCache(maxsize=max_markets)
        self._lock = RLock()

    def set_price(self, market_id: str, price: OraclePrice) -> None:
        """Publish a new reading for a market."""
        if not isinstance(price, OraclePrice):
            raise ValidationError(f"price must be an OraclePrice, got {type(price).__name__}")
        with self._lock:
            self._prices[market_id] = price
            self._published_at[market_id] = self._timer()
        logger.debug(f"Price for {market_id} set to {price.price}")

    def get_price(self, market_id: str) -> OraclePrice:
        """Return the live reading for a market.

        Raises:
            StalePriceError: If the last reading has expired
            PriceUnavailableError: If no reading was ever published
        """
        with self._lock:
            price = self._prices.get(market_id)
            if price is not None:
                return price
            published_at = self._published_at.get(market_id)

        if published_at is None:
            raise PriceUnavailableError(market_id)

        age = int(self._timer() - published_at)
        logger.warning(f"Price for {market_id} expired ({age}s old, ttl {self.ttl}s)")
        raise StalePriceError(market_id, age, self.ttl)

    def has_price(self, market_id: str) -> bool:
        """Check if a live reading exists for the market."""
        with self._lock:
            return market_id in self._prices

    def clear(self) -> None:
        """Drop all readings."""
        with self._lock:
            self._prices.clear()
            self._published_at.clear()
