"""
Custom exceptions for the price ingestion pipeline with structured error context.

Each exception carries a context dictionary for debugging and for the
ingestion run summary.

Exception Hierarchy:
    ETLException (base)
    ├── ExtractionError
    │   └── FetchError (retryable)
    ├── TransformationError
    │   └── DataQualityRejection (non-retryable, row is skipped)
    ├── LoadError
    │   └── StoreError (retryable)
    └── RetryableError / NonRetryableError (mixins)
"""

from typing import Optional, Dict, Any
from datetime import datetime, timezone


class ETLException(Exception):
    """
    Base exception for all ingestion-related errors.

    Attributes:
        message: Human-readable error message
        context: Additional context information (url, window, statement, etc.)
        original_exception: The original exception that was caught (if any)
    """

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None
    ):
        self.message = message
        self.context = context or {}
        self.original_exception = original_exception
        self.timestamp = datetime.now(timezone.utc)

        self.context["error_timestamp"] = self.timestamp.isoformat()

        super().__init__(message)
        if original_exception:
            self.__cause__ = original_exception

    def __str__(self) -> str:
        """Format error message with context."""
        base_msg = f"{self.__class__.__name__}: {self.message}"

        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            base_msg += f" | Context: {context_str}"

        if self.original_exception:
            base_msg += f" | Caused by: {type(self.original_exception).__name__}: {str(self.original_exception)}"

        return base_msg

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/storage."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
            "original_error": str(self.original_exception) if self.original_exception else None
        }


# ============================================================================
# Retry Strategy Mixins
# ============================================================================

class RetryableError(ETLException):
    """
    Mixin for errors the orchestrator retries with backoff.

    Use this for transient errors like:
    - Network timeouts
    - Non-success responses from the report source
    - Temporary database connection issues
    """
    pass


class NonRetryableError(ETLException):
    """Mixin for errors that must never be retried."""
    pass


# ============================================================================
# Extraction Errors
# ============================================================================

class ExtractionError(ETLException):
    """Base exception for data extraction failures."""
    pass


class FetchError(RetryableError, ExtractionError):
    """
    Raised when a report cannot be fetched or parsed.

    Context should include:
        - url: The endpoint that failed
        - status_code: HTTP status code (if a response was received)
        - response_body: Response body (truncated)
        - commodity_external_id: Commodity requested
    """
    pass


# ============================================================================
# Transformation Errors
# ============================================================================

class TransformationError(ETLException):
    """Base exception for data transformation failures."""
    pass


class DataQualityRejection(NonRetryableError, TransformationError):
    """
    Raised by the row normalizer when a raw row cannot become a price record.

    Not fatal: the orchestrator counts the rejection under ``reason`` and
    moves on to the next row.
    """

    INVALID_DATE = "invalid_date"
    INVALID_PRICE = "invalid_price"
    MALFORMED_ROW = "malformed_row"
    HEADER_ROW = "header_row"

    def __init__(
        self,
        reason: str,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        original_exception: Optional[Exception] = None
    ):
        super().__init__(message, context, original_exception)
        self.reason = reason
        self.context["reason"] = reason


# ============================================================================
# Load Errors
# ============================================================================

class LoadError(ETLException):
    """Base exception for data loading failures."""
    pass


class StoreError(RetryableError, LoadError):
    """
    Raised when the query executor reports a failure.

    Context should include:
        - statement: The SQL statement (truncated)
        - operation: SELECT / INSERT
        - table_name: Name of the table
    """
    pass
