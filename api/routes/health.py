"""
Health check endpoint with process and table status
"""

from fastapi import APIRouter, Depends
from datetime import datetime, timezone
import logging

from api.dependencies import PipelineServices, get_services
from api.process_info import uptime_seconds, memory_usage
from schemas.api import APIResponse, HealthCheckResponse

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Health"])


@router.get("/health", response_model=APIResponse[HealthCheckResponse])
async def health_check(services: PipelineServices = Depends(get_services)):
    """
    Health check endpoint.

    Returns:
    - Process uptime and memory usage
    - Buffer and file stats for every table
    - Checkpoint history database connectivity
    """
    db_connected = await services.history.ping()

    return APIResponse(response=HealthCheckResponse(
        status="healthy" if db_connected else "degraded",
        timestamp=datetime.now(timezone.utc),
        uptime=uptime_seconds(),
        memory=memory_usage(),
        tables=services.store.all_stats(),
        database_connected=db_connected,
    ))
