"""
Service container shared by the HTTP routes and the scheduler.

Every pipeline object is built once per application and stored on
``app.state.services``; routes reach it through the ``get_services``
dependency, so tests can build an isolated container with fakes.
"""

from dataclasses import dataclass
from typing import Optional
import logging

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncEngine

from core.config import Settings
from core.database import create_engine, create_session_maker, init_db
from ingestion.buffer_store import TableBufferStore
from ingestion.flush import FlushCoordinator
from ingestion.gateway import WebhookIngestGateway
from ingestion.scheduler import PipelineScheduler
from ingestion.tables import table_names
from ingestion.writers.parquet_writer import ParquetFileWriter
from checkpoint.catalog import CatalogBuilder
from checkpoint.clients import load_uploader, load_pointer_updater
from checkpoint.history import CheckpointHistory
from checkpoint.orchestrator import CheckpointOrchestrator

logger = logging.getLogger(__name__)

_FROM_SETTINGS = object()


@dataclass
class PipelineServices:
    settings: Settings
    store: TableBufferStore
    writer: ParquetFileWriter
    coordinator: FlushCoordinator
    gateway: WebhookIngestGateway
    orchestrator: CheckpointOrchestrator
    history: CheckpointHistory
    engine: AsyncEngine
    scheduler: Optional[PipelineScheduler] = None

    async def startup(self):
        await init_db(self.engine)
        await self.coordinator.load_existing_files()

        if self.scheduler is not None:
            self.scheduler.start()

    async def shutdown(self):
        if self.scheduler is not None:
            self.scheduler.stop()

        # Buffered rows only live in memory
        summary = await self.coordinator.flush_all()
        if summary.failed_tables:
            logger.error(f"Unflushed tables at shutdown: {', '.join(summary.failed_tables)}")

        await self.engine.dispose()


def build_services(
    settings: Settings,
    uploader=_FROM_SETTINGS,
    pointer_updater=_FROM_SETTINGS,
    enable_scheduler: Optional[bool] = None
) -> PipelineServices:
    """
    Wire the pipeline.

    Args:
        settings: Application settings
        uploader: ImmutableUploader or None; loaded from the wallet when omitted
        pointer_updater: NamePointerUpdater; chosen from settings when omitted
        enable_scheduler: Override SCHEDULER_ENABLED
    """
    if uploader is _FROM_SETTINGS:
        uploader = load_uploader(settings)
    if pointer_updater is _FROM_SETTINGS:
        pointer_updater = load_pointer_updater(settings)

    store = TableBufferStore(table_names())
    writer = ParquetFileWriter(settings.DATA_DIR, compression=settings.PARQUET_COMPRESSION)
    coordinator = FlushCoordinator(store, writer)
    gateway = WebhookIngestGateway(store, coordinator, batch_size=settings.PARQUET_BATCH_SIZE)

    engine = create_engine(settings.DATABASE_URL)
    history = CheckpointHistory(create_session_maker(engine))

    orchestrator = CheckpointOrchestrator(
        coordinator=coordinator,
        builder=CatalogBuilder(
            service=settings.SERVICE_NAME,
            version=settings.CATALOG_VERSION,
            compression=settings.PARQUET_COMPRESSION,
        ),
        uploader=uploader,
        pointer_updater=pointer_updater,
        arns_name=settings.ARNS_NAME,
        auto_update_pointer=settings.AUTO_UPDATE_ARNS,
        history=history,
    )

    if enable_scheduler is None:
        enable_scheduler = settings.SCHEDULER_ENABLED
    scheduler = None
    if enable_scheduler:
        scheduler = PipelineScheduler(
            coordinator,
            orchestrator,
            flush_interval=settings.FLUSH_INTERVAL,
            checkpoint_interval=settings.CHECKPOINT_INTERVAL,
        )

    logger.info(f"Pipeline initialized with batch size: {settings.PARQUET_BATCH_SIZE}")
    logger.info(
        f"Checkpoints {'enabled' if orchestrator.enabled else 'disabled'}, ArNS name: {settings.ARNS_NAME}"
    )

    return PipelineServices(
        settings=settings,
        store=store,
        writer=writer,
        coordinator=coordinator,
        gateway=gateway,
        orchestrator=orchestrator,
        history=history,
        engine=engine,
        scheduler=scheduler,
    )


def get_services(request: Request) -> PipelineServices:
    return request.app.state.services
