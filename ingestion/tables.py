"""
Parquet schemas for every table the sidecar maintains.

Each table is materialized as ``<DATA_DIR>/<table>.parquet``. Timestamps are
stored as UTC millisecond timestamps; tags on general transactions are stored
as a JSON string.
"""

from typing import Dict, List
import pyarrow as pa

TIMESTAMP = pa.timestamp("ms", tz="UTC")

TRANSACTIONS = "transactions"
ARNS_NAMES = "arns_names"
ARNS_RECORDS = "arns_records"
ANT_REGISTRY = "ant_registry"
AO_PROCESSES = "ao_processes"
AO_MESSAGES = "ao_messages"

PARQUET_EXTENSION = ".parquet"

TABLE_SCHEMAS: Dict[str, pa.Schema] = {
    ARNS_NAMES: pa.schema([
        pa.field("name", pa.string()),
        pa.field("owner", pa.string()),
        pa.field("target", pa.string()),
        pa.field("ttl_seconds", pa.int64()),
        pa.field("created_at", TIMESTAMP),
        pa.field("updated_at", TIMESTAMP),
        pa.field("block_height", pa.int64()),
        pa.field("transaction_id", pa.string()),
    ]),
    TRANSACTIONS: pa.schema([
        pa.field("id", pa.string()),
        pa.field("owner", pa.string()),
        pa.field("target", pa.string(), nullable=True),
        pa.field("data_size", pa.int64()),
        pa.field("block_height", pa.int64()),
        pa.field("block_timestamp", TIMESTAMP),
        pa.field("fee", pa.int64()),
        pa.field("tags", pa.string()),
        pa.field("app_name", pa.string(), nullable=True),
    ]),
    ANT_REGISTRY: pa.schema([
        pa.field("process_id", pa.string()),
        pa.field("name", pa.string()),
        pa.field("owner", pa.string()),
        pa.field("version", pa.string()),
        pa.field("registered_at", TIMESTAMP),
        pa.field("transaction_id", pa.string()),
    ]),
    ARNS_RECORDS: pa.schema([
        pa.field("name", pa.string()),
        pa.field("record_type", pa.string()),
        pa.field("value", pa.string()),
        pa.field("ttl", pa.int64()),
        pa.field("created_at", TIMESTAMP),
        pa.field("updated_at", TIMESTAMP),
        pa.field("transaction_id", pa.string()),
    ]),
    AO_PROCESSES: pa.schema([
        pa.field("process_id", pa.string()),
        pa.field("owner", pa.string()),
        pa.field("module_id", pa.string()),
        pa.field("scheduler", pa.string()),
        pa.field("spawned_at", TIMESTAMP),
        pa.field("block_height", pa.int64()),
        pa.field("transaction_id", pa.string()),
    ]),
    AO_MESSAGES: pa.schema([
        pa.field("message_id", pa.string()),
        pa.field("process_id", pa.string()),
        pa.field("sender", pa.string()),
        pa.field("action", pa.string(), nullable=True),
        pa.field("data_size", pa.int64()),
        pa.field("created_at", TIMESTAMP),
        pa.field("block_height", pa.int64()),
        pa.field("transaction_id", pa.string()),
    ]),
}


def table_names() -> List[str]:
    return list(TABLE_SCHEMAS.keys())


def file_name(table_name: str) -> str:
    return f"{table_name}{PARQUET_EXTENSION}"


def table_name_from_file(file_path) -> str:
    """``data/transactions.parquet`` -> ``transactions``"""
    name = str(file_path).replace("\\", "/").rsplit("/", 1)[-1]
    if name.endswith(PARQUET_EXTENSION):
        name = name[: -len(PARQUET_EXTENSION)]
    return name
