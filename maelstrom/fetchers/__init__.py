"""
Historical data fetchers: block-time lookup and windowed event logs.
"""

from .base import DEFAULT_WINDOW_SPAN, BlockWindow, block_windows, window_before
from .block_locator import BlockTimeLocator, now_ms
from .event_logs import (
    LIQUIDITY_KINDS,
    TRADE_KINDS,
    EventLogAggregator,
    EventTimeline,
    HistoryCursor,
    merge_events,
)

__all__ = [
    "DEFAULT_WINDOW_SPAN",
    "BlockWindow",
    "block_windows",
    "window_before",
    "BlockTimeLocator",
    "now_ms",
    "LIQUIDITY_KINDS",
    "TRADE_KINDS",
    "EventLogAggregator",
    "EventTimeline",
    "HistoryCursor",
    "merge_events",
]
