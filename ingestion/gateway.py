"""
Webhook ingest gateway - validates payloads and routes rows to table buffers.

Request lifecycle:
    Received -> Validated -> Routed -> Acknowledged
    Received -> Rejected (schema violation, nothing buffered)

Block payloads are processed entry by entry: a broken entry is counted and
logged while the remaining entries are still buffered.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
import time
import logging

from pydantic import ValidationError

from ingestion.buffer_store import TableBufferStore
from ingestion.flush import FlushCoordinator
from ingestion.transformers.classifier import TransactionClassifier
from schemas.webhook import TransactionEvent, BlockEvent, validation_details
from schemas.api import TransactionAck, BlockAck
from core.exceptions import SidecarException

logger = logging.getLogger(__name__)


@dataclass
class BlockIngestResult:
    block_height: int
    total_transactions: int = 0
    transactions_processed: int = 0
    transactions_failed: int = 0
    error_details: List[Dict[str, Any]] = field(default_factory=list)

    def to_ack(self) -> BlockAck:
        return BlockAck(
            block_height=self.block_height,
            transactions_processed=self.transactions_processed,
            transactions_failed=self.transactions_failed,
            total_transactions=self.total_transactions,
        )


class WebhookIngestGateway:
    """
    Entry point for transaction and block events.

    Responsibilities:
    - Validate payloads against the transaction contract
    - Classify and append rows to the buffer store
    - Flush a table early once its buffer reaches the batch size
    - Isolate per-entry failures inside block batches
    """

    def __init__(
        self,
        store: TableBufferStore,
        coordinator: FlushCoordinator,
        classifier: Optional[TransactionClassifier] = None,
        batch_size: int = 1000
    ):
        self.store = store
        self.coordinator = coordinator
        self.classifier = classifier or TransactionClassifier()
        self.batch_size = batch_size

    async def process_transaction(self, tx: TransactionEvent) -> str:
        """
        Route one validated transaction.

        Returns:
            Name of the table the row was appended to
        """
        row = self.classifier.to_row(tx)
        buffered = self.store.append(row.table, row)

        if self.batch_size and buffered >= self.batch_size:
            logger.info(f"Buffer for {row.table} reached {buffered} rows, flushing")
            try:
                await self.coordinator.flush(row.table)
            except SidecarException as e:
                # Rows stay buffered for the scheduled flush
                logger.error(
                    f"Batch flush failed for {row.table}: {e.message}",
                    extra={"error_context": e.to_dict()}
                )

        return row.table

    async def ingest_transaction(self, payload: Any) -> TransactionAck:
        """
        Validate and route a transaction webhook payload.

        Raises:
            pydantic.ValidationError: If the payload violates the contract
        """
        tx = TransactionEvent.model_validate(payload)

        logger.info(
            f"Processing transaction: {tx.transaction_id} (block: {tx.block_height})"
        )
        table = await self.process_transaction(tx)

        return TransactionAck(
            transaction_id=tx.transaction_id,
            block_height=tx.block_height,
            table=table,
        )

    async def ingest_block(self, payload: Any) -> BlockIngestResult:
        """
        Validate a block and route each of its transactions independently.

        Raises:
            pydantic.ValidationError: If the block header is invalid
        """
        block = BlockEvent.model_validate(payload)
        entries = block.transactions or []

        logger.info(
            f"Processing block: {block.block_height} with {len(entries)} transactions"
        )

        result = BlockIngestResult(
            block_height=block.block_height,
            total_transactions=len(entries),
        )

        for index, entry in enumerate(entries):
            tx_id = entry.get("transaction_id") if isinstance(entry, dict) else None
            try:
                if not isinstance(entry, dict):
                    raise TypeError(f"expected an object, got {type(entry).__name__}")

                tx = TransactionEvent.model_validate({
                    **entry,
                    "block_height": block.block_height,
                    "block_timestamp": block.block_timestamp,
                })
                await self.process_transaction(tx)
                result.transactions_processed += 1

            except Exception as e:
                result.transactions_failed += 1

                error_detail = {
                    "index": index,
                    "transaction_id": tx_id,
                    "error_type": type(e).__name__,
                    "error_message": str(e),
                }
                if isinstance(e, ValidationError):
                    error_detail["details"] = validation_details(e)
                result.error_details.append(error_detail)

                logger.error(
                    f"Failed to process transaction {tx_id} in block {block.block_height}: {e}",
                    extra={"error_context": error_detail}
                )

        if result.transactions_failed:
            logger.warning(
                f"Block {block.block_height}: {result.transactions_processed} processed, "
                f"{result.transactions_failed} failed"
            )
        return result

    async def ingest_test_transaction(self) -> TransactionEvent:
        """Push a synthetic transaction through the pipeline"""
        now = int(time.time())
        tx = TransactionEvent(
            transaction_id=f"test_{int(time.time() * 1000)}",
            owner="test_owner_address",
            target="test_target_address",
            tags=[
                {"name": "App-Name", "value": "ArIO-Sidecar-Test"},
                {"name": "Action", "value": "Test-Transaction"},
            ],
            data_size=1024,
            block_height=1000000,
            block_timestamp=now,
            fee=1000000,
        )
        await self.process_transaction(tx)
        return tx
