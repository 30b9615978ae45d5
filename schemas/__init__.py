"""
Pydantic schemas for data validation and serialization.

Schemas:
    webhook: Transaction and block payloads accepted by the webhook endpoints
    catalog: Catalog manifest uploaded with every checkpoint
    api: Response envelopes and endpoint response models

Usage:
    from schemas.webhook import TransactionEvent, BlockEvent
    from schemas.catalog import CatalogManifest, TableManifestEntry
    from schemas.api import APIResponse, ErrorResponse, TableStats

Validation:
    Webhook payloads failing validation raise pydantic.ValidationError,
    which the API maps to a 400 response with per-field details.
"""

__all__ = [
    "Tag",
    "TransactionEvent",
    "BlockEvent",
    "CatalogManifest",
    "TableManifestEntry",
    "APIResponse",
    "ErrorResponse",
    "TableStats",
]
