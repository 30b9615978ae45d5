import logging
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from ingestion.flush import FlushCoordinator
from checkpoint.orchestrator import CheckpointOrchestrator
from models.base import CheckpointTrigger
from core.exceptions import CheckpointDisabledError, SidecarException

logger = logging.getLogger(__name__)


class PipelineScheduler:
    """Recurring flush and checkpoint jobs, sharing the HTTP triggers' instances"""

    def __init__(
        self,
        coordinator: FlushCoordinator,
        orchestrator: CheckpointOrchestrator,
        flush_interval: str = "*/5 * * * *",
        checkpoint_interval: str = "0 2 * * *"
    ):
        self.coordinator = coordinator
        self.orchestrator = orchestrator
        self.flush_interval = flush_interval
        self.checkpoint_interval = checkpoint_interval
        self.scheduler = AsyncIOScheduler(timezone="UTC")

    async def run_flush_job(self):
        """Job to flush every table buffer"""
        try:
            summary = await self.coordinator.flush_all()
            if summary.failed_tables:
                logger.error(f"Scheduler: flush failed for {', '.join(summary.failed_tables)}")
            else:
                logger.debug("Scheduler: flushed parquet buffers")
        except Exception as e:
            logger.error(f"Scheduler: flush job failed - {e}")

    async def run_checkpoint_job(self):
        """Job to create a checkpoint"""
        logger.info("Scheduler: starting checkpoint")
        try:
            result = await self.orchestrator.create_checkpoint(trigger=CheckpointTrigger.SCHEDULED)
            if result.catalog_tx_id:
                logger.info(f"Scheduler: checkpoint completed - {result.catalog_tx_id}")
        except CheckpointDisabledError as e:
            logger.warning(f"Scheduler: checkpoint skipped - {e.message}")
        except SidecarException as e:
            logger.error(f"Scheduler: checkpoint failed - {e.message}")
        except Exception as e:
            logger.error(f"Scheduler: checkpoint job failed - {e}")

    def start(self):
        """Start the scheduler"""
        self.scheduler.add_job(
            self.run_flush_job,
            trigger=CronTrigger.from_crontab(self.flush_interval, timezone="UTC"),
            id="flush_job",
            replace_existing=True,
            max_instances=1,
            coalesce=True
        )
        self.scheduler.add_job(
            self.run_checkpoint_job,
            trigger=CronTrigger.from_crontab(self.checkpoint_interval, timezone="UTC"),
            id="checkpoint_job",
            replace_existing=True,
            max_instances=1,
            coalesce=True
        )
        self.scheduler.start()
        logger.info(f"Scheduled checkpoint: {self.checkpoint_interval}")
        logger.info(f"Scheduled flush: {self.flush_interval}")

    def stop(self):
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
        logger.info("Pipeline scheduler stopped")
