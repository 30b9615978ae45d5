"""
Table file endpoints: listing, download, metadata and schema
"""

from fastapi import APIRouter, Depends, Path as PathParam
from fastapi.responses import FileResponse
from datetime import datetime, timezone
import asyncio
import logging

from api.dependencies import PipelineServices, get_services
from api.errors import error_response
from ingestion.tables import table_name_from_file

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/harlequin", tags=["Tables"])

TABLE_NAME_PATTERN = r"^[A-Za-z0-9_\-]+$"


def _available_tables(services: PipelineServices):
    return [table_name_from_file(p) for p in services.writer.list_files()]


@router.get("/tables")
async def list_tables(services: PipelineServices = Depends(get_services)):
    """List every table with buffer and file stats"""
    try:
        stats = services.store.all_stats()
    except Exception as e:
        logger.exception("Failed to get table stats")
        return error_response(500, "Failed to get table stats", message=str(e))

    return {
        "ok": True,
        "response": {
            "tables": {name: s.model_dump(mode="json") for name, s in stats.items()},
            "total_tables": len(stats),
            "total_size": sum(s.file_size for s in stats.values()),
            "last_updated": datetime.now(timezone.utc).isoformat(),
        }
    }


@router.get("/parquet/{table}")
async def download_table(
    table: str = PathParam(..., pattern=TABLE_NAME_PATTERN),
    services: PipelineServices = Depends(get_services)
):
    """Serve a table's parquet file"""
    path = services.writer.path_for(table)

    if not path.is_file():
        logger.warning(f"Parquet file not found: {table}")
        return error_response(
            404,
            f"Table '{table}' not found",
            available_tables=_available_tables(services)
        )

    logger.info(f"Served parquet: {table} ({path.stat().st_size} bytes)")
    return FileResponse(
        path,
        media_type="application/octet-stream",
        filename=path.name,
        headers={"Cache-Control": "public, max-age=3600"}
    )


@router.get("/metadata/{table}")
async def table_metadata(
    table: str = PathParam(..., pattern=TABLE_NAME_PATTERN),
    services: PipelineServices = Depends(get_services)
):
    """File facts for one table without downloading it"""
    try:
        info = await asyncio.to_thread(services.writer.file_info, table)
    except Exception as e:
        logger.exception(f"Failed to get metadata for table {table}")
        return error_response(500, "Failed to get table metadata", message=str(e))

    if info is None:
        return error_response(404, f"Table '{table}' not found")

    response = info.to_dict()
    response["table"] = table
    response["buffer_count"] = services.store.buffered_count(table) if table in services.store.tables() else 0
    return {"ok": True, "response": response}


@router.get("/schema/{table}")
async def table_schema(
    table: str = PathParam(..., pattern=TABLE_NAME_PATTERN),
    services: PipelineServices = Depends(get_services)
):
    """Column names and types of a table file"""
    try:
        columns = await asyncio.to_thread(services.writer.read_schema, table)
    except Exception as e:
        logger.exception(f"Failed to get schema for table {table}")
        return error_response(500, "Failed to get table schema", message=str(e))

    if columns is None:
        return error_response(404, f"Table '{table}' not found")

    return {
        "ok": True,
        "response": {
            "table": table,
            "schema": columns,
            "file_path": str(services.writer.path_for(table)),
        }
    }


@router.get("/download/all")
async def list_downloads(services: PipelineServices = Depends(get_services)):
    """Every table file with its download URL"""
    files = services.writer.list_files()
    if not files:
        return error_response(404, "No parquet files available")

    return {
        "ok": True,
        "response": {
            "message": "Available files for download",
            "files": [
                {
                    "name": p.name,
                    "table": table_name_from_file(p),
                    "download_url": f"/harlequin/parquet/{table_name_from_file(p)}",
                }
                for p in files
            ],
            "total_files": len(files),
        }
    }
