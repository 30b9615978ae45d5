from sqlalchemy import Column, BigInteger, Boolean, String, Enum, DateTime, Float, Integer, Text, Index, JSON
from datetime import datetime, timezone
import uuid
from models.base import Base, CheckpointStatus, CheckpointTrigger


def _utcnow():
    return datetime.now(timezone.utc)


class CheckpointRun(Base):
    """
    Tracks every checkpoint attempt.

    Purpose:
    - Audit trail of catalog uploads and their transaction ids
    - Failure tracking (uploads are never resumed, the next run starts over)
    - Backs the /harlequin/catalog/history endpoint
    """
    __tablename__ = "checkpoint_runs"

    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    run_id = Column(String(36), default=lambda: str(uuid.uuid4()), unique=True, nullable=False, index=True)

    trigger = Column(Enum(CheckpointTrigger), default=CheckpointTrigger.MANUAL, nullable=False)
    status = Column(Enum(CheckpointStatus), default=CheckpointStatus.RUNNING, nullable=False, index=True)

    # Timestamps
    started_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, index=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    duration_seconds = Column(Float, nullable=True)

    # Result
    files_count = Column(Integer, default=0)
    catalog_tx_id = Column(String(64), nullable=True)
    table_tx_ids = Column(JSON, nullable=True)  # table name -> transaction id
    arns_name = Column(String(100), nullable=True)
    pointer_updated = Column(Boolean, default=False)

    # Error tracking
    error_message = Column(Text, nullable=True)
    error_details = Column(JSON, nullable=True)

    __table_args__ = (
        Index("idx_checkpoint_run_status", "status", "started_at"),
    )
