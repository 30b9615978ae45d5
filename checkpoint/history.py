"""
Checkpoint run history stored with SQLAlchemy
"""

from datetime import datetime, timezone
from typing import List, Optional
import logging

from sqlalchemy import select, text
from sqlalchemy.ext.asyncio import async_sessionmaker

from models.checkpoint import CheckpointRun
from models.base import CheckpointStatus, CheckpointTrigger

logger = logging.getLogger(__name__)


class CheckpointHistory:
    """
    Audit trail of checkpoint attempts.

    Every attempt gets a row when it starts; the row is closed as success,
    failed or skipped (nothing to checkpoint) when the attempt ends.
    """

    def __init__(self, session_maker: async_sessionmaker):
        self.SessionLocal = session_maker

    async def start(self, trigger: CheckpointTrigger, arns_name: Optional[str] = None) -> str:
        run = CheckpointRun(
            trigger=trigger,
            status=CheckpointStatus.RUNNING,
            started_at=datetime.now(timezone.utc),
            arns_name=arns_name,
        )
        async with self.SessionLocal() as session:
            session.add(run)
            await session.commit()
            await session.refresh(run)
        return run.run_id

    async def _finish(self, run_id: str, status: CheckpointStatus, **fields) -> Optional[CheckpointRun]:
        async with self.SessionLocal() as session:
            result = await session.execute(
                select(CheckpointRun).where(CheckpointRun.run_id == run_id)
            )
            run = result.scalar_one_or_none()
            if run is None:
                logger.warning(f"Checkpoint run {run_id} not found in history")
                return None

            completed_at = datetime.now(timezone.utc)
            started_at = run.started_at
            if started_at.tzinfo is None:
                started_at = started_at.replace(tzinfo=timezone.utc)

            run.status = status
            run.completed_at = completed_at
            run.duration_seconds = (completed_at - started_at).total_seconds()
            for key, value in fields.items():
                setattr(run, key, value)

            await session.commit()
            return run

    async def complete(
        self,
        run_id: str,
        catalog_tx_id: Optional[str],
        table_tx_ids: dict,
        files_count: int,
        pointer_updated: bool
    ):
        status = CheckpointStatus.SUCCESS if catalog_tx_id else CheckpointStatus.SKIPPED
        await self._finish(
            run_id,
            status,
            catalog_tx_id=catalog_tx_id,
            table_tx_ids=table_tx_ids,
            files_count=files_count,
            pointer_updated=pointer_updated,
        )

    async def fail(self, run_id: str, error_message: str, error_details: Optional[dict] = None):
        await self._finish(
            run_id,
            CheckpointStatus.FAILED,
            error_message=error_message,
            error_details=error_details,
        )

    async def recent(self, limit: int = 10) -> List[CheckpointRun]:
        async with self.SessionLocal() as session:
            result = await session.execute(
                select(CheckpointRun)
                .order_by(CheckpointRun.started_at.desc(), CheckpointRun.id.desc())
                .limit(limit)
            )
            return list(result.scalars().all())

    async def last_success(self) -> Optional[CheckpointRun]:
        async with self.SessionLocal() as session:
            result = await session.execute(
                select(CheckpointRun)
                .where(CheckpointRun.status == CheckpointStatus.SUCCESS)
                .order_by(CheckpointRun.started_at.desc(), CheckpointRun.id.desc())
                .limit(1)
            )
            return result.scalar_one_or_none()

    async def ping(self) -> bool:
        """Check database connectivity"""
        try:
            async with self.SessionLocal() as session:
                await session.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.error(f"Database connection failed: {e}")
            return False
