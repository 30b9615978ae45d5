# ============================================================================
# File: checkpoint/orchestrator.py
# Description: Flush -> catalog -> upload -> pointer checkpoint pipeline
# ============================================================================
"""
Checkpoint Orchestrator - snapshots every table file to Arweave.

Pipeline (each step gates the next):
1. Require a wallet (CheckpointDisabledError otherwise, never retried)
2. Flush all buffers and enumerate the table files
3. Read each file once and build the catalog manifest from those bytes
4. Upload every table file concurrently
5. Fill each manifest entry's arweave_id by table name
6. Upload the manifest
7. Bind the ArNS name to the manifest (if enabled)

A failure in steps 4-6 aborts the checkpoint. Nothing is cleaned up; the
next attempt uploads everything again.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple
import asyncio
import logging

from ingestion.flush import FlushCoordinator
from ingestion.writers.parquet_writer import TableSnapshot, snapshot_file
from checkpoint.catalog import CatalogBuilder
from checkpoint.clients import ImmutableUploader, NamePointerUpdater
from checkpoint.history import CheckpointHistory
from models.base import CheckpointTrigger
from schemas.catalog import CatalogManifest
from core.exceptions import (
    SidecarException,
    CatalogError,
    CheckpointError,
    CheckpointDisabledError,
    UploadError,
)

logger = logging.getLogger(__name__)

TABLE_APP_NAME = "ArIO-Parquet"
CATALOG_APP_NAME = "ArIO-Catalog"


@dataclass
class CheckpointResult:
    """Outcome of one checkpoint; catalog_tx_id is None when nothing was uploaded"""
    catalog_tx_id: Optional[str] = None
    files: List[str] = field(default_factory=list)
    table_tx_ids: Dict[str, str] = field(default_factory=dict)
    pointer_updated: bool = False
    failed_flush_tables: List[str] = field(default_factory=list)
    manifest: Optional[CatalogManifest] = None
    run_id: Optional[str] = None

    @property
    def files_count(self) -> int:
        return len(self.files)


class CheckpointOrchestrator:
    """
    Composes flush, catalog build, uploads and the pointer update.

    Timer and HTTP triggers share one instance. Only one checkpoint runs at
    a time; a trigger that arrives while one is running joins it and gets
    the same result. The pointer step is optional: with automatic updates
    off, a checkpoint is complete once the catalog upload returns a
    transaction id.
    """

    def __init__(
        self,
        coordinator: FlushCoordinator,
        builder: CatalogBuilder,
        uploader: Optional[ImmutableUploader] = None,
        pointer_updater: Optional[NamePointerUpdater] = None,
        arns_name: Optional[str] = None,
        auto_update_pointer: bool = False,
        history: Optional[CheckpointHistory] = None
    ):
        self.coordinator = coordinator
        self.builder = builder
        self.uploader = uploader
        self.pointer_updater = pointer_updater
        self.arns_name = arns_name
        self.auto_update_pointer = auto_update_pointer
        self.history = history
        self._in_flight: Optional[asyncio.Task] = None

    @property
    def enabled(self) -> bool:
        return self.uploader is not None

    @property
    def in_progress(self) -> bool:
        return self._in_flight is not None

    async def create_checkpoint(
        self,
        trigger: CheckpointTrigger = CheckpointTrigger.MANUAL
    ) -> CheckpointResult:
        """
        Run the full checkpoint pipeline, or join the one already running.

        Returns:
            CheckpointResult (files_count == 0 when there was nothing to upload)

        Raises:
            CheckpointDisabledError: If no wallet is configured
            UploadError: If a table file or the catalog could not be uploaded
            PointerUpdateError: If the ArNS name could not be bound
        """
        if not self.enabled:
            raise CheckpointDisabledError(
                "No wallet available for checkpoint deployment",
                context={"step": "precondition"}
            )

        task = self._in_flight
        if task is None:
            task = asyncio.ensure_future(self._run_checkpoint(trigger))
            self._in_flight = task
        else:
            logger.info(f"Checkpoint already in progress, {trigger.value} trigger joins it")

        return await asyncio.shield(task)

    async def _run_checkpoint(self, trigger: CheckpointTrigger) -> CheckpointResult:
        try:
            return await self._checkpoint(trigger)
        finally:
            if self._in_flight is asyncio.current_task():
                self._in_flight = None

    async def _checkpoint(self, trigger: CheckpointTrigger) -> CheckpointResult:
        run_id = await self._record_start(trigger)

        try:
            result = await self._run()
        except SidecarException as e:
            logger.error(
                f"Checkpoint failed: {e.message}",
                extra={"error_context": e.to_dict()}
            )
            await self._record("fail", run_id, e.message, e.to_dict())
            raise
        except Exception as e:
            logger.exception("Unexpected error during checkpoint")
            await self._record("fail", run_id, str(e))
            raise CheckpointError(
                "Unexpected error during checkpoint",
                original_exception=e
            )

        result.run_id = run_id
        await self._record(
            "complete",
            run_id,
            catalog_tx_id=result.catalog_tx_id,
            table_tx_ids=result.table_tx_ids,
            files_count=result.files_count,
            pointer_updated=result.pointer_updated,
        )
        return result

    async def _record_start(self, trigger: CheckpointTrigger) -> Optional[str]:
        if self.history is None:
            return None
        try:
            return await self.history.start(trigger, arns_name=self.arns_name)
        except Exception as e:
            logger.error(
                f"Could not record checkpoint start, continuing without history: {e}",
                extra={"error_context": {"step": "history", "operation": "start", "error": str(e)}}
            )
            return None

    async def _record(self, operation: str, run_id: Optional[str], *args, **kwargs):
        # The audit trail never changes a checkpoint's outcome
        if run_id is None:
            return
        try:
            await getattr(self.history, operation)(run_id, *args, **kwargs)
        except Exception as e:
            logger.error(
                f"Could not record checkpoint {operation} for run {run_id}: {e}",
                extra={"error_context": {
                    "step": "history",
                    "operation": operation,
                    "run_id": run_id,
                    "error": str(e),
                }}
            )

    async def _run(self) -> CheckpointResult:
        # Flush all pending data first
        summary = await self.coordinator.flush_all()
        if summary.failed_tables:
            logger.warning(
                f"Checkpointing last flushed files for tables that failed to flush: "
                f"{', '.join(summary.failed_tables)}"
            )

        files = await asyncio.to_thread(self.coordinator.list_table_files)
        if not files:
            logger.warning("No parquet files to checkpoint")
            return CheckpointResult(failed_flush_tables=summary.failed_tables)

        snapshots = await asyncio.to_thread(self._take_snapshots, files)
        manifest = self.builder.build_from_infos([s.info for s in snapshots])

        table_tx_ids = await self._upload_tables(snapshots, manifest)
        for name, entry in manifest.tables.items():
            entry.arweave_id = table_tx_ids.get(name, "")

        missing = manifest.missing_uploads()
        if missing:
            raise UploadError(
                "Catalog has tables without an uploaded file",
                context={"step": "upload", "missing_tables": missing}
            )

        catalog_tx_id = await self._upload_catalog(manifest)

        pointer_updated = False
        if self.auto_update_pointer and self.pointer_updater is not None:
            pointer_updated = await self.pointer_updater.bind(self.arns_name, catalog_tx_id)

        logger.info(f"Checkpoint created successfully: {catalog_tx_id}")
        return CheckpointResult(
            catalog_tx_id=catalog_tx_id,
            files=[s.info.path.name for s in snapshots],
            table_tx_ids=table_tx_ids,
            pointer_updated=pointer_updated,
            failed_flush_tables=summary.failed_tables,
            manifest=manifest,
        )

    @staticmethod
    def _take_snapshots(files: List[Path]) -> List[TableSnapshot]:
        snapshots = []
        for path in files:
            path = Path(path)
            try:
                snapshots.append(snapshot_file(path))
            except OSError as e:
                raise CatalogError(
                    f"Cannot read table file {path.name}",
                    context={"step": "catalog", "file_path": str(path)},
                    original_exception=e
                )
        return snapshots

    async def _upload_tables(self, snapshots: List[TableSnapshot], manifest: CatalogManifest) -> Dict[str, str]:
        outcomes = await asyncio.gather(
            *(self._upload_table(snapshot, manifest) for snapshot in snapshots),
            return_exceptions=True
        )

        table_tx_ids: Dict[str, str] = {}
        errors = []
        for snapshot, outcome in zip(snapshots, outcomes):
            if isinstance(outcome, BaseException):
                errors.append((snapshot.info.path.name, outcome))
            else:
                name, tx_id = outcome
                table_tx_ids[name] = tx_id

        if errors:
            file_name, first = errors[0]
            if isinstance(first, UploadError):
                first.context["failed_files"] = [name for name, _ in errors]
                raise first
            raise UploadError(
                f"Failed to upload {file_name}",
                context={"step": "upload", "failed_files": [name for name, _ in errors]},
                original_exception=first
            )

        return table_tx_ids

    async def _upload_table(self, snapshot: TableSnapshot, manifest: CatalogManifest) -> Tuple[str, str]:
        table_name = snapshot.info.table_name
        data = snapshot.data

        tags = {
            "Content-Type": "application/octet-stream",
            "App-Name": TABLE_APP_NAME,
            "Table-Name": table_name,
            "Data-Format": "parquet",
            "Service": manifest.service,
            "Version": manifest.version,
            "Created-At": manifest.created_at,
        }
        tx_id = await self.uploader.upload(data, tags)
        return table_name, tx_id

    async def _upload_catalog(self, manifest: CatalogManifest) -> str:
        data = manifest.to_json().encode("utf-8")
        tags = {
            "Content-Type": "application/json",
            "App-Name": CATALOG_APP_NAME,
            "Data-Type": "catalog",
            "Service": manifest.service,
            "Version": manifest.version,
            "Created-At": manifest.created_at,
            "Table-Count": str(manifest.table_count),
        }

        try:
            return await self.uploader.upload(data, tags)
        except UploadError:
            raise
        except Exception as e:
            raise UploadError(
                "Failed to upload catalog",
                context={"step": "catalog", "bytes": len(data)},
                original_exception=e
            )

    def describe(self) -> Dict[str, Any]:
        return {
            "enabled": self.enabled,
            "in_progress": self.in_progress,
            "arns_name": self.arns_name,
            "auto_update_arns": self.auto_update_pointer,
        }
