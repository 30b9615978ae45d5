"""
Flush coordinator - turns buffered rows into Parquet files.

This module provides:
- Per-table single-flight flushing (timer and manual triggers share one flush)
- Partial failure isolation in flush_all (one broken table never blocks others)
- No data loss on write failure (drained rows go back into the buffer)
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from pathlib import Path
import asyncio
import logging

from ingestion.buffer_store import TableBufferStore
from ingestion.writers.parquet_writer import ParquetFileWriter, TableFileInfo, describe_file
from ingestion.tables import table_name_from_file
from core.exceptions import FlushError, SidecarException

logger = logging.getLogger(__name__)


@dataclass
class TableFlushResult:
    table: str
    ok: bool
    rows_written: int = 0
    skipped: bool = False
    error: Optional[str] = None
    file_info: Optional[TableFileInfo] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ok": self.ok,
            "rows_written": self.rows_written,
            "skipped": self.skipped,
            "error": self.error,
        }


@dataclass
class FlushSummary:
    results: Dict[str, TableFlushResult] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return all(r.ok for r in self.results.values())

    @property
    def failed_tables(self) -> List[str]:
        return [name for name, r in self.results.items() if not r.ok]

    @property
    def rows_written(self) -> int:
        return sum(r.rows_written for r in self.results.values())

    def to_dict(self) -> Dict[str, Any]:
        return {name: r.to_dict() for name, r in self.results.items()}


class FlushCoordinator:
    """
    Materializes table buffers through the Parquet writer.

    Only one flush per table runs at a time. A flush requested while another
    one for the same table is in flight joins it and gets the same result;
    rows appended after the in-flight drain wait for the next flush.
    """

    def __init__(self, store: TableBufferStore, writer: ParquetFileWriter):
        self.store = store
        self.writer = writer
        self._in_flight: Dict[str, asyncio.Task] = {}

    async def load_existing_files(self) -> int:
        """Pick up table files left on disk by a previous run"""
        paths = await asyncio.to_thread(self.writer.list_files)
        for path in paths:
            info = await asyncio.to_thread(describe_file, path)
            self.store.record_file(table_name_from_file(path), info)
        if paths:
            logger.info(f"Found {len(paths)} existing table files in {self.writer.data_dir}")
        return len(paths)

    def is_flushing(self, table: str) -> bool:
        return table in self._in_flight

    async def flush(self, table: str) -> TableFlushResult:
        """
        Flush one table.

        Returns:
            TableFlushResult (skipped=True when the buffer was empty)

        Raises:
            FlushError: If the rows could not be written
        """
        task = self._in_flight.get(table)
        if task is None:
            task = asyncio.ensure_future(self._run_flush(table))
            self._in_flight[table] = task
        else:
            logger.debug(f"Flush already in flight for {table}, joining it")

        return await asyncio.shield(task)

    async def _run_flush(self, table: str) -> TableFlushResult:
        try:
            return await self._flush_table(table)
        finally:
            if self._in_flight.get(table) is asyncio.current_task():
                del self._in_flight[table]

    async def _flush_table(self, table: str) -> TableFlushResult:
        rows = self.store.drain(table)
        if not rows:
            return TableFlushResult(table=table, ok=True, skipped=True)

        try:
            file_info = await asyncio.to_thread(
                self.writer.append_rows, table, [row.values for row in rows]
            )
        except Exception as e:
            self.store.restore(table, rows)
            raise FlushError(
                f"Failed to flush {table}",
                context={
                    "table_name": table,
                    "rows": len(rows),
                    "file_path": str(self.writer.path_for(table)),
                },
                original_exception=e
            )

        self.store.record_flush(table, len(rows), file_info)
        return TableFlushResult(
            table=table,
            ok=True,
            rows_written=len(rows),
            file_info=file_info,
        )

    async def flush_all(self) -> FlushSummary:
        """Flush every known table independently"""
        tables = self.store.tables()
        outcomes = await asyncio.gather(
            *(self.flush(table) for table in tables),
            return_exceptions=True
        )

        summary = FlushSummary()
        for table, outcome in zip(tables, outcomes):
            if isinstance(outcome, BaseException):
                if isinstance(outcome, SidecarException):
                    logger.error(
                        f"Flush failed for {table}: {outcome.message}",
                        extra={"error_context": outcome.to_dict()}
                    )
                else:
                    logger.error(f"Flush failed for {table}: {outcome}")
                summary.results[table] = TableFlushResult(
                    table=table, ok=False, error=str(outcome)
                )
            else:
                summary.results[table] = outcome

        if summary.rows_written or summary.failed_tables:
            logger.info(
                f"Flush complete: {summary.rows_written} rows written, "
                f"{len(summary.failed_tables)} tables failed"
            )
        return summary

    def list_table_files(self) -> List[Path]:
        return self.writer.list_files()
