"""
Core utilities and configuration for the Parquet sidecar.

This package provides foundational components used throughout the pipeline:

Modules:
    config: Application configuration and environment variable management
    database: Async engine/session factories for checkpoint history
    exceptions: Custom exception hierarchy for error handling
    logging: Logging configuration and utilities

Usage:
    from core.config import settings
    from core.database import create_engine, create_session_maker
    from core.exceptions import CheckpointDisabledError, UploadError
    from core.logging import setup_logging
"""

__all__ = [
    "settings",
    "setup_logging",
    "create_engine",
    "create_session_maker",
    "init_db",
    # Exceptions
    "SidecarException",
    "IngestionError",
    "RowProcessingError",
    "FlushError",
    "CatalogError",
    "CheckpointError",
    "CheckpointDisabledError",
    "UploadError",
    "PointerUpdateError",
    "RetryableError",
    "NonRetryableError",
    "NetworkError",
]
