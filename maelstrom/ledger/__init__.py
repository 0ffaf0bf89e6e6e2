"""
Ledger access: contract ABIs, read wrappers and the error taxonomy.
"""

from .base import LedgerClient, checksum, load_contract_abi, to_hex_str, validate_range
from .errors import (
    ErrorHandler,
    EventFetchError,
    LedgerReadError,
    MaelstromError,
    TransactionError,
    ValidationError,
)
from .reader import LedgerReader

__all__ = [
    "LedgerClient",
    "LedgerReader",
    "checksum",
    "load_contract_abi",
    "to_hex_str",
    "validate_range",
    "ErrorHandler",
    "EventFetchError",
    "LedgerReadError",
    "MaelstromError",
    "TransactionError",
    "ValidationError",
]
