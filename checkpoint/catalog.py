"""
Build the catalog manifest describing every table file in a checkpoint
"""

from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, List, Optional
import time
import logging

from ingestion.writers.parquet_writer import TableFileInfo, describe_file
from schemas.catalog import CatalogManifest, TableManifestEntry
from core.exceptions import CatalogError

logger = logging.getLogger(__name__)


class CatalogBuilder:
    """
    Turns a set of table files into a CatalogManifest.

    Entries are created with an empty arweave_id; the checkpoint
    orchestrator fills them in once each file has been uploaded. The clock
    is injectable so identical file stats give identical manifests.
    """

    def __init__(
        self,
        service: str,
        version: str = "1.0.0",
        schema_version: str = "1.0.0",
        compression: str = "gzip",
        clock: Optional[Callable[[], float]] = None
    ):
        self.service = service
        self.version = version
        self.schema_version = schema_version
        self.compression = compression
        self.clock = clock or time.time

    def build(self, table_files: List[Path]) -> CatalogManifest:
        infos = []
        for path in table_files:
            path = Path(path)
            try:
                infos.append(describe_file(path))
            except OSError as e:
                raise CatalogError(
                    f"Cannot read table file {path.name}",
                    context={"file_path": str(path)},
                    original_exception=e
                )
        return self.build_from_infos(infos)

    def build_from_infos(self, infos: List[TableFileInfo]) -> CatalogManifest:
        """Manifest for file facts that were already read, e.g. from snapshots"""
        now = self.clock()
        epoch_seconds = int(now)

        manifest = CatalogManifest(
            version=self.version,
            created_at=datetime.fromtimestamp(now, tz=timezone.utc).isoformat(),
            last_updated=epoch_seconds,
            service=self.service,
        )

        for info in infos:
            if info.table_name in manifest.tables:
                raise CatalogError(
                    f"Duplicate table {info.table_name} in checkpoint",
                    context={"file_path": str(info.path)}
                )

            manifest.tables[info.table_name] = TableManifestEntry(
                name=info.table_name,
                arweave_id="",
                schema_version=self.schema_version,
                row_count=info.row_count,
                file_size=info.file_size,
                last_checkpoint=epoch_seconds,
                created_at=info.created_at.isoformat(),
                updated_at=info.last_modified.isoformat(),
                partitions=[],
                compression=self.compression,
                format="parquet",
            )

        logger.info(f"Built catalog with {manifest.table_count} tables")
        return manifest
