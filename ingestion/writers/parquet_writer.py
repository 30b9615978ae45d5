"""
Write buffered rows to per-table Parquet files with pyarrow.

Parquet files cannot be appended to in place, so every write reads the
existing table, concatenates the new rows after it and atomically replaces
the file. All methods are blocking; async callers run them in a worker thread.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional
import os
import logging

import pyarrow as pa
import pyarrow.parquet as pq

from ingestion.tables import TABLE_SCHEMAS, PARQUET_EXTENSION, file_name, table_name_from_file

logger = logging.getLogger(__name__)

# Bytes-per-row guess used only when a file's footer cannot be read
ESTIMATED_ROW_SIZE = 100


@dataclass(frozen=True)
class TableFileInfo:
    """On-disk facts about one table file"""
    table_name: str
    path: Path
    file_size: int
    row_count: int
    last_modified: datetime
    created_at: datetime
    row_count_estimated: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "table_name": self.table_name,
            "file_name": self.path.name,
            "file_size": self.file_size,
            "row_count": self.row_count,
            "last_modified": self.last_modified.isoformat(),
            "created_at": self.created_at.isoformat(),
            "row_count_estimated": self.row_count_estimated,
        }


def read_row_count(source) -> Optional[int]:
    """Exact row count from the Parquet footer, None if unreadable"""
    try:
        return pq.read_metadata(source).num_rows
    except (OSError, pa.ArrowException) as e:
        logger.warning(f"Could not read parquet metadata for {source}: {e}")
        return None


def _file_info(path: Path, stat: os.stat_result, row_count: Optional[int]) -> TableFileInfo:
    estimated = row_count is None
    if estimated:
        row_count = stat.st_size // ESTIMATED_ROW_SIZE
        logger.warning(
            f"Estimating row count for {path.name} from file size: {row_count} rows"
        )

    return TableFileInfo(
        table_name=table_name_from_file(path),
        path=path,
        file_size=stat.st_size,
        row_count=row_count,
        last_modified=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
        created_at=datetime.fromtimestamp(stat.st_ctime, tz=timezone.utc),
        row_count_estimated=estimated,
    )


def describe_file(path: Path) -> TableFileInfo:
    """Stat a table file and read its row count"""
    return _file_info(path, path.stat(), read_row_count(path))


@dataclass(frozen=True)
class TableSnapshot:
    """A table file's bytes together with the facts read from those bytes"""
    info: TableFileInfo
    data: bytes


def snapshot_file(path: Path) -> TableSnapshot:
    """
    Read a table file once.

    Flushes replace files with os.replace, so the open handle keeps seeing
    one version; size and row count come from the same bytes that get
    uploaded.
    """
    path = Path(path)
    with open(path, "rb") as fh:
        stat = os.fstat(fh.fileno())
        data = fh.read()

    row_count = read_row_count(pa.BufferReader(data))
    return TableSnapshot(info=_file_info(path, stat, row_count), data=data)


class ParquetFileWriter:
    """
    Columnar writer for table buffers.

    Ensures:
    - One file per table, named after the table
    - Row order of previous flushes is preserved, new rows go last
    - A failed write leaves the previous file untouched
    """

    def __init__(self, data_dir: str, compression: str = "gzip"):
        self.data_dir = Path(data_dir)
        self.compression = compression
        self.data_dir.mkdir(parents=True, exist_ok=True)

    def path_for(self, table_name: str) -> Path:
        return self.data_dir / file_name(table_name)

    def append_rows(self, table_name: str, rows: List[Mapping[str, Any]]) -> TableFileInfo:
        """
        Extend a table's file with rows.

        Args:
            table_name: Target table
            rows: Column mappings in insertion order

        Returns:
            Fresh on-disk facts for the table file
        """
        path = self.path_for(table_name)
        schema = TABLE_SCHEMAS.get(table_name)

        new_table = pa.Table.from_pylist([dict(r) for r in rows], schema=schema)

        if path.exists():
            existing = pq.read_table(path)
            if schema is None:
                schema = existing.schema
                new_table = new_table.cast(schema)
            combined = pa.concat_tables([existing.cast(schema), new_table])
        else:
            combined = new_table

        tmp_path = path.with_name(path.name + ".tmp")
        try:
            pq.write_table(combined, tmp_path, compression=self.compression)
            os.replace(tmp_path, path)
        finally:
            if tmp_path.exists():
                tmp_path.unlink()

        logger.info(
            f"Flushed {len(rows)} records to {path.name} (total: {combined.num_rows})"
        )
        return describe_file(path)

    def file_info(self, table_name: str) -> Optional[TableFileInfo]:
        path = self.path_for(table_name)
        if not path.is_file():
            return None
        return describe_file(path)

    def list_files(self) -> List[Path]:
        """Every table file currently on disk, sorted by name"""
        return sorted(
            p for p in self.data_dir.glob(f"*{PARQUET_EXTENSION}") if p.is_file()
        )

    def read_rows(self, table_name: str) -> List[Dict[str, Any]]:
        path = self.path_for(table_name)
        if not path.exists():
            return []
        return pq.read_table(path).to_pylist()

    def read_schema(self, table_name: str) -> Optional[List[Dict[str, str]]]:
        """Column names and Arrow types of a table file, None if it does not exist"""
        path = self.path_for(table_name)
        if not path.is_file():
            return None
        schema = pq.read_schema(path)
        return [{"name": field.name, "type": str(field.type)} for field in schema]
