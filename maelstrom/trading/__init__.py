"""
Trade previews, validation and submission.
"""

from .executor import TransactionExecutor
from .validator import (
    LiquidityQuote,
    ReserveLeg,
    TradeBuilder,
    TradeQuote,
    TradeValidator,
    base_for_tokens,
    tokens_for_base,
)

__all__ = [
    "TransactionExecutor",
    "LiquidityQuote",
    "ReserveLeg",
    "TradeBuilder",
    "TradeQuote",
    "TradeValidator",
    "base_for_tokens",
    "tokens_for_base",
]
