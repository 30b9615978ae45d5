from sqlalchemy.orm import declarative_base
import enum

Base = declarative_base()


# ============================================================================
# ENUMS
# ============================================================================

class CheckpointStatus(str, enum.Enum):
    """Checkpoint run status"""
    RUNNING = "running"
    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED = "skipped"


class CheckpointTrigger(str, enum.Enum):
    """What started a checkpoint run"""
    SCHEDULED = "scheduled"
    MANUAL = "manual"
