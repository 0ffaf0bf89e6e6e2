"""
maelstrom: client-side engine for auction-priced liquidity pools.

Reads pool state, reconstructs trade and liquidity history from event logs,
derives volume, yield and liquidity figures, and validates and submits trades.
"""

from .client import MaelstromClient

__version__ = "0.1.0"

__all__ = ["MaelstromClient", "__version__"]
