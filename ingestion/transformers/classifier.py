"""
Route validated transactions to table rows based on their tags
"""

from typing import Dict, Any, Optional
from datetime import datetime, timezone
import json
import logging

from ingestion.buffer_store import Row
from ingestion.tables import (
    TRANSACTIONS,
    ARNS_NAMES,
    ARNS_RECORDS,
    ANT_REGISTRY,
    AO_PROCESSES,
    AO_MESSAGES,
)
from schemas.webhook import TransactionEvent, MAX_INT64
from core.exceptions import RowProcessingError

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 3600
DEFAULT_RECORD_TYPE = "A"
DEFAULT_ANT_VERSION = "1.0.0"


class TransactionClassifier:
    """
    Turn transactions into rows for the right table.

    Handles:
    - Tag based classification (ArNS, ANT registry, AO processes/messages)
    - Type conversion (block seconds -> UTC timestamps, TTL strings -> ints)
    - Defaults for optional tags
    Anything unrecognised lands in the general transactions table.
    """

    def classify(self, tx: TransactionEvent) -> str:
        """Name of the table a transaction belongs to"""
        tags = tx.tag_map()
        action = tags.get("Action")

        if action == "Buy-Record":
            return ARNS_NAMES
        if action == "Set-Record":
            return ARNS_RECORDS
        if action == "Register":
            return ANT_REGISTRY

        if tags.get("Data-Protocol") == "ao":
            if tags.get("Type") == "Process":
                return AO_PROCESSES
            if tags.get("Type") == "Message":
                return AO_MESSAGES

        return TRANSACTIONS

    def to_row(self, tx: TransactionEvent) -> Row:
        """
        Build the table row for a transaction.

        Raises:
            RowProcessingError: If a tag value cannot be converted
        """
        table = self.classify(tx)
        try:
            values = self._build_values(table, tx)
        except (TypeError, ValueError, OverflowError, OSError) as e:
            raise RowProcessingError(
                f"Cannot build {table} row",
                context={"transaction_id": tx.transaction_id, "table_name": table},
                original_exception=e
            )
        return Row(table=table, values=values)

    def _build_values(self, table: str, tx: TransactionEvent) -> Dict[str, Any]:
        tags = tx.tag_map()
        block_time = self._block_time(tx.block_timestamp)

        if table == ARNS_NAMES:
            return {
                "name": tags.get("Name"),
                "owner": tx.owner,
                "target": tags.get("Target-Id"),
                "ttl_seconds": self._parse_int(tags.get("TTL-Seconds"), DEFAULT_TTL_SECONDS),
                "created_at": block_time,
                "updated_at": block_time,
                "block_height": tx.block_height,
                "transaction_id": tx.transaction_id,
            }

        if table == ARNS_RECORDS:
            return {
                "name": tags.get("Name"),
                "record_type": tags.get("Record-Type") or DEFAULT_RECORD_TYPE,
                "value": tags.get("Value"),
                "ttl": self._parse_int(tags.get("TTL"), DEFAULT_TTL_SECONDS),
                "created_at": block_time,
                "updated_at": block_time,
                "transaction_id": tx.transaction_id,
            }

        if table == ANT_REGISTRY:
            return {
                "process_id": tags.get("Process-Id"),
                "name": tags.get("Name"),
                "owner": tx.owner,
                "version": tags.get("Version") or DEFAULT_ANT_VERSION,
                "registered_at": block_time,
                "transaction_id": tx.transaction_id,
            }

        if table == AO_PROCESSES:
            return {
                "process_id": tags.get("Process") or tx.transaction_id,
                "owner": tx.owner,
                "module_id": tags.get("Module"),
                "scheduler": tags.get("Scheduler"),
                "spawned_at": block_time,
                "block_height": tx.block_height,
                "transaction_id": tx.transaction_id,
            }

        if table == AO_MESSAGES:
            return {
                "message_id": tx.transaction_id,
                "process_id": tags.get("Target"),
                "sender": tx.owner,
                "action": tags.get("Action"),
                "data_size": tx.data_size,
                "created_at": block_time,
                "block_height": tx.block_height,
                "transaction_id": tx.transaction_id,
            }

        return {
            "id": tx.transaction_id,
            "owner": tx.owner,
            "target": tx.target,
            "data_size": tx.data_size,
            "block_height": tx.block_height,
            "block_timestamp": block_time,
            "fee": tx.fee or 0,
            "tags": json.dumps([tag.model_dump() for tag in tx.tags]),
            "app_name": tags.get("App-Name"),
        }

    @staticmethod
    def _block_time(seconds: int) -> datetime:
        return datetime.fromtimestamp(seconds, tz=timezone.utc)

    @staticmethod
    def _parse_int(value: Optional[str], default: int) -> int:
        if value is None or value == "":
            return default
        parsed = int(value)
        if not -MAX_INT64 - 1 <= parsed <= MAX_INT64:
            raise ValueError(f"{value} does not fit in an int64 column")
        return parsed
