"""
In-memory per-table row buffers.

The store is the only mutable state shared between webhook requests, the
flush scheduler and manual flush/checkpoint requests. Every method is
synchronous, so on the asyncio event loop an append and a drain for the same
table can never interleave.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional
import logging

from ingestion.writers.parquet_writer import TableFileInfo
from schemas.api import TableStats

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Row:
    """One table row; read-only once created"""
    table: str
    values: Mapping[str, Any]

    def __post_init__(self):
        object.__setattr__(self, "values", MappingProxyType(dict(self.values)))


@dataclass
class TableBuffer:
    rows: List[Row] = field(default_factory=list)
    rows_flushed: int = 0
    file_info: Optional[TableFileInfo] = None


class TableBufferStore:
    """
    One append buffer per table name.

    Responsibilities:
    - Accept rows without backpressure
    - Hand the complete buffer to the flush coordinator (drain)
    - Combine buffer size with the last known on-disk file facts (stats)
    """

    def __init__(self, table_names: Optional[List[str]] = None):
        self._buffers: Dict[str, TableBuffer] = {}
        for name in table_names or []:
            self._buffers[name] = TableBuffer()

    def _buffer(self, table: str) -> TableBuffer:
        buffer = self._buffers.get(table)
        if buffer is None:
            buffer = TableBuffer()
            self._buffers[table] = buffer
            logger.debug(f"Created buffer for table {table}")
        return buffer

    def append(self, table: str, row: Row) -> int:
        """Buffer a row; returns the table's buffered count"""
        if row.table != table:
            raise ValueError(f"Row for table {row.table!r} appended to {table!r}")
        buffer = self._buffer(table)
        buffer.rows.append(row)
        return len(buffer.rows)

    def drain(self, table: str) -> List[Row]:
        """Remove and return every buffered row for a table"""
        buffer = self._buffer(table)
        rows, buffer.rows = buffer.rows, []
        return rows

    def restore(self, table: str, rows: List[Row]):
        """Put rows from a failed flush back in front of newer rows"""
        if not rows:
            return
        buffer = self._buffer(table)
        buffer.rows[:0] = rows
        logger.warning(f"Restored {len(rows)} unflushed rows to {table}")

    def record_flush(self, table: str, rows_written: int, file_info: TableFileInfo):
        buffer = self._buffer(table)
        buffer.rows_flushed += rows_written
        buffer.file_info = file_info

    def record_file(self, table: str, file_info: Optional[TableFileInfo]):
        self._buffer(table).file_info = file_info

    def buffered_count(self, table: str) -> int:
        buffer = self._buffers.get(table)
        return len(buffer.rows) if buffer else 0

    def rows_flushed(self, table: str) -> int:
        buffer = self._buffers.get(table)
        return buffer.rows_flushed if buffer else 0

    def tables(self) -> List[str]:
        return list(self._buffers.keys())

    def stats(self, table: str) -> TableStats:
        buffer = self._buffers.get(table) or TableBuffer()
        info = buffer.file_info

        if info is None:
            return TableStats(
                buffer_count=len(buffer.rows),
                rows_flushed=buffer.rows_flushed,
                file_size=0,
                row_count=0,
                last_modified=None,
                file_exists=False,
            )

        return TableStats(
            buffer_count=len(buffer.rows),
            rows_flushed=buffer.rows_flushed,
            file_size=info.file_size,
            row_count=info.row_count,
            last_modified=info.last_modified,
            file_exists=True,
        )

    def all_stats(self) -> Dict[str, TableStats]:
        return {table: self.stats(table) for table in self.tables()}
