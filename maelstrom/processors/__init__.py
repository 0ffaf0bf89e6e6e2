"""
Derived pool figures: pure economics plus services that gather their inputs.
"""

from . import economics
from .history import (
    Activity,
    PriceChartLoader,
    PricePoint,
    build_activity_feed,
    build_price_series,
    price_statistics,
)
from .pool_analytics import PoolAnalytics

__all__ = [
    "economics",
    "Activity",
    "PriceChartLoader",
    "PricePoint",
    "build_activity_feed",
    "build_price_series",
    "price_statistics",
    "PoolAnalytics",
]
