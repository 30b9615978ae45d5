"""
Custom exceptions for the ingestion/checkpoint pipeline with structured error context.

Each exception carries a context dictionary so failures can be logged and
returned to webhook callers with enough detail to debug them.

Exception Hierarchy:
    SidecarException (base)
    ├── IngestionError
    │   └── RowProcessingError
    ├── FlushError
    ├── CatalogError
    ├── CheckpointError
    │   ├── CheckpointDisabledError
    │   ├── UploadError
    │   └── PointerUpdateError
    └── RetryableError / NonRetryableError (mixins)
"""

from typing import Optional, Dict, Any
from datetime import datetime, timezone


class SidecarException(Exception):
    """
    Base exception for all pipeline errors.

    Attributes:
        message: Human-readable error message
        context: Additional context information (table, transaction id, etc.)
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
            "retryable": isinstance(self, RetryableError),
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
            "original_error": str(self.original_exception) if self.original_exception else None
        }


# ============================================================================
# Retry Strategy Mixins
# ============================================================================

class RetryableError(SidecarException):
    """
    Mixin for errors where a later attempt may succeed.

    Use this for transient errors like:
    - Network timeouts
    - Gateway/bundler unavailable
    - Rate limiting (HTTP 429)
    """
    pass


class NonRetryableError(SidecarException):
    """
    Mixin for errors that must not be retried.

    Use this for permanent errors like:
    - Missing wallet / credentials
    - Malformed payloads
    """
    pass


# ============================================================================
# Ingestion Errors
# ============================================================================

class IngestionError(SidecarException):
    """Base exception for webhook ingestion failures."""
    pass


class RowProcessingError(IngestionError):
    """
    Raised when a single transaction cannot be turned into a table row.

    Context should include:
        - transaction_id: Transaction that failed
        - table_name: Target table (if classification succeeded)
    """
    pass


# ============================================================================
# Flush Errors
# ============================================================================

class FlushError(SidecarException):
    """
    Raised when buffered rows cannot be written to a table file.

    Context should include:
        - table_name: Table being flushed
        - rows: Number of rows in the failed write
        - file_path: Target parquet file
    """
    pass


# ============================================================================
# Catalog / Checkpoint Errors
# ============================================================================

class CatalogError(SidecarException):
    """Raised when a catalog manifest cannot be built from the table files."""
    pass


class CheckpointError(SidecarException):
    """
    Base exception for checkpoint failures.

    Context should include:
        - step: Pipeline step that failed (flush, build, upload, catalog, pointer)
        - files_count: Number of table files in the checkpoint
    """
    pass


class CheckpointDisabledError(NonRetryableError, CheckpointError):
    """Raised when a checkpoint is requested but no wallet is configured."""
    pass


class UploadError(RetryableError, CheckpointError):
    """
    Raised when an upload to Arweave fails.

    The next checkpoint attempt re-uploads everything from scratch.
    """
    pass


class PointerUpdateError(RetryableError, CheckpointError):
    """Raised when the ArNS name cannot be bound to the new catalog."""
    pass


class NetworkError(RetryableError):
    """Network-related errors that should be retried."""
    pass
