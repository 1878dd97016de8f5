"""
Unit tests for the cached oracle price feed.
"""

import pytest

from src.core.exceptions.engine import PriceUnavailableError, StalePriceError, ValidationError
from src.core.models.oracle import OraclePrice
from src.infrastructure.pricing import CachedPriceFeed


class FakeTimer:
    """Manually advanced clock."""

    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def timer() -> FakeTimer:
    """Create a fake timer starting at zero."""
    return FakeTimer()


@pytest.fixture
def feed(timer: FakeTimer) -> CachedPriceFeed:
    """Create a feed with a 60 second TTL."""
    return CachedPriceFeed(ttl=60, max_markets=10, timer=timer)


class TestCachedPriceFeed:
    """Test price publication and expiry."""

    def test_should_return_published_price(self, feed: CachedPriceFeed, timer: FakeTimer) -> None:
        """Test reading within the TTL."""
        feed.set_price("BTC-PERP", OraclePrice(100_000, timestamp=1_000))
        timer.now = 30

        price = feed.get_price("BTC-PERP")

        assert price.price == 100_000
        assert price.timestamp == 1_000
        assert feed.has_price("BTC-PERP")

    def test_should_raise_unavailable_for_unknown_market(self, feed: CachedPriceFeed) -> None:
        """Test missing market."""
        with pytest.raises(PriceUnavailableError, match="ETH-PERP"):
            feed.get_price("ETH-PERP")

    def test_should_raise_stale_after_ttl(self, feed: CachedPriceFeed, timer: FakeTimer) -> None:
        """Test that expired readings are reported as stale."""
        feed.set_price("BTC-PERP", OraclePrice(100_000))
        timer.now = 61

        with pytest.raises(StalePriceError) as exc_info:
            feed.get_price("BTC-PERP")

        assert exc_info.value.age == 61
        assert exc_info.value.max_age == 60
        assert not feed.has_price("BTC-PERP")

    def test_should_refresh_on_republish(self, feed: CachedPriceFeed, timer: FakeTimer) -> None:
        """Test that a new reading restarts the TTL."""
        feed.set_price("BTC-PERP", OraclePrice(100_000))
        timer.now = 50
        feed.set_price("BTC-PERP", OraclePrice(101_000))
        timer.now = 100

        assert feed.get_price("BTC-PERP").price == 101_000

    def test_should_reject_non_oracle_price(self, feed: CachedPriceFeed) -> None:
        """Test input type validation."""
        with pytest.raises(ValidationError, match="OraclePrice"):
            feed.set_price("BTC-PERP", 100_000)  # type: ignore[arg-type]

    def test_should_reject_invalid_ttl(self) -> None:
        """Test constructor validation."""
        with pytest.raises(ValidationError, match="TTL"):
            CachedPriceFeed(ttl=0)

    def test_should_clear_all_readings(self, feed: CachedPriceFeed) -> None:
        """Test clear."""
        feed.set_price("BTC-PERP", OraclePrice(100_000))

        feed.clear()

        with pytest.raises(PriceUnavailableError):
            feed.get_price("BTC-PERP")
