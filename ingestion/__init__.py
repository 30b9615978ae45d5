"""
Ingestion pipeline components: webhook intake, table buffers and Parquet flushes.

Modules:
    tables: Table names and their Arrow schemas
    buffer_store: Per-table in-memory row buffers
    flush: FlushCoordinator moving buffered rows into Parquet files
    gateway: WebhookIngestGateway validating and routing webhook payloads
    scheduler: APScheduler integration for recurring flushes and checkpoints

Subpackages:
    transformers: Tag-based transaction classification into table rows
    writers: Parquet file writer

Architecture:
    Rows move through three stages:

    1. Ingest - Validate a transaction and classify it into a table row
    2. Buffer - Append the row to its table's buffer
    3. Flush - Drain the buffer into the table's Parquet file

    A table flushes early once its buffer reaches PARQUET_BATCH_SIZE, and
    every table flushes on the FLUSH_INTERVAL schedule.

Usage:
    from ingestion.buffer_store import TableBufferStore
    from ingestion.flush import FlushCoordinator
    from ingestion.gateway import WebhookIngestGateway
    from ingestion.writers.parquet_writer import ParquetFileWriter

Example:
    store = TableBufferStore(table_names())
    coordinator = FlushCoordinator(store, ParquetFileWriter("./data"))
    gateway = WebhookIngestGateway(store, coordinator)

    ack = await gateway.ingest_transaction(payload)
    summary = await coordinator.flush_all()

    print(f"Flushed {summary.rows_written} rows")

Error Handling:
    Flush failures raise FlushError from core.exceptions after the drained
    rows are put back in the buffer, so the next flush retries them.
"""

__all__ = [
    "TableBufferStore",
    "FlushCoordinator",
    "WebhookIngestGateway",
    "PipelineScheduler",
    "ParquetFileWriter",
    "TransactionClassifier",
]
