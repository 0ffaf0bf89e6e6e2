"""
Shared helpers: unit conversion and token lists.
"""

from .token_list import (
    TokenListCache,
    TokenListEntry,
    TokenListError,
    TokenListUnavailable,
    TokenSearchIndex,
    TokenSearchPage,
)
from .units import format_units, parse_units

__all__ = [
    "TokenListCache",
    "TokenListEntry",
    "TokenListError",
    "TokenListUnavailable",
    "TokenSearchIndex",
    "TokenSearchPage",
    "format_units",
    "parse_units",
]
