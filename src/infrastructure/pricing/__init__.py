"""
Oracle price infrastructure.

This module provides the in-memory price feed consumed by the host.
"""

from .price_feed import CachedPriceFeed

__all__ = ["CachedPriceFeed"]
