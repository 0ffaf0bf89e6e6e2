"""
Error types for ledger reads, log scans and trade submission.

Nothing here retries: errors are classified so they can be logged with the
right level, then propagated to the caller.
"""

import logging
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


class MaelstromError(Exception):
    """Base exception for the engine."""
    pass


class LedgerReadError(MaelstromError):
    """A read against the pool contract or a token contract failed."""

    def __init__(self, operation: str, cause: Optional[BaseException] = None):
        message = f"{operation}: {cause}" if cause is not None else operation
        super().__init__(message)
        self.operation = operation
        self.cause = cause


class EventFetchError(LedgerReadError):
    """A log query window failed; the whole scan is abandoned."""

    def __init__(self, operation: str, from_block: int, to_block: int, cause: Optional[BaseException] = None):
        super().__init__(f"{operation} [{from_block}-{to_block}]", cause)
        self.from_block = from_block
        self.to_block = to_block


class ValidationError(MaelstromError):
    """User intent violates a pre-trade invariant."""
    pass


class TransactionError(MaelstromError):
    """Approval or the main mutating call did not succeed."""

    def __init__(self, message: str, tx_hash: Optional[str] = None):
        super().__init__(message)
        self.tx_hash = tx_hash


class ErrorHandler:
    """
    Classifies and logs errors raised while talking to a node.

    Categories follow the wording nodes and providers actually use, e.g.
    ``429 Too Many Requests`` or ``execution reverted``.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)

    def classify_error(self, error: BaseException) -> str:
        """
        Classify an error into a category.

        Args:
            error: Exception to classify

        Returns:
            One of rate_limit, network, contract, validation or unknown
        """
        if isinstance(error, ValidationError):
            return 'validation'

        error_str = str(error).lower()

        if any(keyword in error_str for keyword in ['rate limit', 'too many requests', '429', 'limit exceeded']):
            return 'rate_limit'

        if any(keyword in error_str for keyword in ['connection', 'timeout', 'timed out', 'network', 'dns']):
            return 'network'

        if any(keyword in error_str for keyword in ['revert', 'execution reverted', 'out of gas', 'insufficient funds']):
            return 'contract'

        if any(keyword in error_str for keyword in ['invalid', 'bad request', '400']):
            return 'validation'

        return 'unknown'

    def log_error(self, error: BaseException, context: Dict[str, Any]):
        """
        Log an error with its category and caller context.

        Args:
            error: Exception to log
            context: Additional fields such as operation or token
        """
        error_category = self.classify_error(error)

        log_data = {
            'error_type': type(error).__name__,
            'error_category': error_category,
            'error_message': str(error),
            **context
        }

        if error_category == 'validation':
            self.logger.warning(f"Validation error: {error}", extra=log_data)
        elif error_category == 'contract':
            self.logger.error(f"Contract call reverted: {error}", extra=log_data)
        elif error_category == 'rate_limit':
            self.logger.warning(f"Rate limit encountered: {error}", extra=log_data)
        else:
            self.logger.error(f"Ledger operation failed: {error}", extra=log_data)
