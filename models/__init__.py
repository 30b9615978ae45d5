"""
SQLAlchemy ORM models for database tables.

Models:
    base: Base declarative class and shared enums (CheckpointStatus, CheckpointTrigger)
    checkpoint: CheckpointRun audit trail of checkpoint attempts

Usage:
    from models.checkpoint import CheckpointRun
    from models.base import CheckpointStatus
"""

__all__ = [
    "Base",
    "CheckpointStatus",
    "CheckpointTrigger",
    "CheckpointRun",
]
