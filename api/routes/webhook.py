"""
Webhook ingestion, manual flush and manual checkpoint endpoints
"""

from fastapi import APIRouter, Depends, Request
from pydantic import ValidationError
import json
import logging

from api.dependencies import PipelineServices, get_services
from api.errors import error_response
from api.process_info import uptime_seconds, memory_usage
from schemas.api import (
    APIResponse,
    TransactionAck,
    BlockAck,
    FlushResponse,
    CheckpointResponse,
    StatusResponse,
)
from schemas.webhook import validation_details
from core.exceptions import CheckpointDisabledError, RowProcessingError, SidecarException

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Webhook"])

ENDPOINTS = {
    "transaction": "/webhook/transaction",
    "block": "/webhook/block",
    "checkpoint": "/checkpoint",
    "flush": "/flush",
}


@router.post("/webhook/transaction", response_model=APIResponse[TransactionAck])
async def ingest_transaction(request: Request, services: PipelineServices = Depends(get_services)):
    """Ingest a single transaction"""
    try:
        payload = await request.json()
        ack = await services.gateway.ingest_transaction(payload)

    except ValidationError as e:
        logger.error(f"Rejected transaction: {e.error_count()} validation errors")
        return error_response(400, "Invalid transaction format", details=validation_details(e))

    except RowProcessingError as e:
        logger.error(f"Rejected transaction: {e.message}", extra={"error_context": e.to_dict()})
        return error_response(400, "Invalid transaction format", message=str(e.original_exception or e.message))

    except json.JSONDecodeError as e:
        return error_response(400, "Invalid transaction format", message=f"Malformed JSON: {e}")

    except Exception as e:
        logger.exception("Failed to process transaction")
        return error_response(500, "Internal server error", message=str(e))

    return APIResponse(response=ack)


@router.post("/webhook/block", response_model=APIResponse[BlockAck])
async def ingest_block(request: Request, services: PipelineServices = Depends(get_services)):
    """
    Ingest a block with nested transactions.

    Per-transaction failures are counted in transactions_failed; the block
    call itself still succeeds.
    """
    try:
        payload = await request.json()
        result = await services.gateway.ingest_block(payload)

    except ValidationError as e:
        logger.error(f"Rejected block: {e.error_count()} validation errors")
        return error_response(400, "Invalid block format", details=validation_details(e))

    except json.JSONDecodeError as e:
        return error_response(400, "Invalid block format", message=f"Malformed JSON: {e}")

    except Exception as e:
        logger.exception("Failed to process block")
        return error_response(500, "Failed to process block", message=str(e))

    return APIResponse(response=result.to_ack())


@router.post("/webhook/test")
async def ingest_test_transaction(services: PipelineServices = Depends(get_services)):
    """Push a synthetic transaction through the pipeline (development aid)"""
    try:
        tx = await services.gateway.ingest_test_transaction()
    except Exception as e:
        logger.exception("Failed to process test transaction")
        return error_response(500, "Failed to process test transaction", message=str(e))

    return APIResponse(response={
        "message": "Test transaction processed successfully",
        "test_transaction": tx.model_dump(),
    })


@router.post("/checkpoint", response_model=APIResponse[CheckpointResponse])
async def create_checkpoint(services: PipelineServices = Depends(get_services)):
    """Flush every buffer and checkpoint all table files to Arweave"""
    logger.info("Manual checkpoint triggered")

    try:
        result = await services.orchestrator.create_checkpoint()

    except CheckpointDisabledError as e:
        logger.warning(f"Checkpoint rejected: {e.message}")
        return error_response(500, "Checkpoint disabled", message=e.message)

    except SidecarException as e:
        return error_response(500, "Failed to create checkpoint", message=e.message)

    except Exception as e:
        logger.exception("Failed to create checkpoint")
        return error_response(500, "Failed to create checkpoint", message=str(e))

    if result.files_count == 0:
        return APIResponse(response=CheckpointResponse(
            message="No parquet files to checkpoint",
            files_count=0,
        ))

    return APIResponse(response=CheckpointResponse(
        message="Checkpoint created successfully",
        files_count=result.files_count,
        files=result.files,
        catalog_tx_id=result.catalog_tx_id,
        table_tx_ids=result.table_tx_ids,
        pointer_updated=result.pointer_updated,
    ))


@router.post("/flush", response_model=APIResponse[FlushResponse])
async def flush_buffers(services: PipelineServices = Depends(get_services)):
    """Flush every table buffer to its parquet file"""
    logger.info("Manual flush triggered")

    try:
        summary = await services.coordinator.flush_all()
    except Exception as e:
        logger.exception("Failed to flush buffers")
        return error_response(500, "Failed to flush buffers", message=str(e))

    if summary.failed_tables:
        return error_response(
            500,
            "Failed to flush buffers",
            message=f"Flush failed for: {', '.join(summary.failed_tables)}",
            details=[
                {"path": table, "message": summary.results[table].error}
                for table in summary.failed_tables
            ],
        )

    return APIResponse(response=FlushResponse(
        message="All buffers flushed successfully",
        tables=services.store.all_stats(),
        results=summary.to_dict(),
    ))


@router.get("/webhook/status", response_model=APIResponse[StatusResponse])
async def webhook_status(services: PipelineServices = Depends(get_services)):
    """Liveness plus buffer/file stats for every table"""
    try:
        status = StatusResponse(
            status="active",
            uptime=uptime_seconds(),
            memory=memory_usage(),
            tables=services.store.all_stats(),
            endpoints=ENDPOINTS,
            checkpoint=services.orchestrator.describe(),
        )
    except Exception as e:
        logger.exception("Failed to get webhook status")
        return error_response(500, "Failed to get status", message=str(e))

    return APIResponse(response=status)
