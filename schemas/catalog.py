"""
Pydantic schemas for the catalog manifest uploaded with every checkpoint
"""

from pydantic import BaseModel, Field
from typing import Dict, List


class TableManifestEntry(BaseModel):
    """One table's uploaded Parquet file"""
    name: str
    arweave_id: str = ""
    schema_version: str = "1.0.0"
    row_count: int = Field(..., ge=0)
    file_size: int = Field(..., ge=0)
    last_checkpoint: int = Field(..., description="Epoch seconds")
    created_at: str
    updated_at: str
    partitions: List[str] = Field(default_factory=list)
    compression: str = "gzip"
    format: str = "parquet"


class CatalogManifest(BaseModel):
    """Versioned index of every table in a checkpoint"""
    version: str
    created_at: str = Field(..., description="ISO 8601 build time")
    last_updated: int = Field(..., description="Build time in epoch seconds")
    service: str
    tables: Dict[str, TableManifestEntry] = Field(default_factory=dict)

    @property
    def table_count(self) -> int:
        return len(self.tables)

    def missing_uploads(self) -> List[str]:
        """Tables whose file has no transaction id yet"""
        return [name for name, entry in self.tables.items() if not entry.arweave_id]

    @property
    def is_complete(self) -> bool:
        return not self.missing_uploads()

    def to_json(self) -> str:
        return self.model_dump_json(indent=2)

    class Config:
        json_schema_extra = {
            "example": {
                "version": "1.0.0",
                "created_at": "2024-01-15T02:00:00+00:00",
                "last_updated": 1705284000,
                "service": "ario-parquet-sidecar",
                "tables": {
                    "transactions": {
                        "name": "transactions",
                        "arweave_id": "",
                        "schema_version": "1.0.0",
                        "row_count": 1,
                        "file_size": 2048,
                        "last_checkpoint": 1705284000,
                        "created_at": "2024-01-15T01:55:00+00:00",
                        "updated_at": "2024-01-15T01:55:00+00:00",
                        "partitions": [],
                        "compression": "gzip",
                        "format": "parquet"
                    }
                }
            }
        }
