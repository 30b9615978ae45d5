"""
End-to-end tests: webhook payloads -> parquet files -> catalog -> uploads
"""

import json

import pytest

from checkpoint.orchestrator import CheckpointOrchestrator
from core.exceptions import UploadError
from ingestion.gateway import WebhookIngestGateway


@pytest.fixture
def gateway(store, coordinator):
    return WebhookIngestGateway(store, coordinator, batch_size=1000)


@pytest.mark.asyncio
async def test_single_transaction_to_catalog(gateway, coordinator, writer, catalog_builder, fake_uploader):
    """One transaction flushes to a one-row file and ends up in the uploaded catalog"""
    await gateway.ingest_transaction({
        "transaction_id": "tx1",
        "owner": "addrA",
        "tags": [],
        "data_size": 100,
        "block_height": 10,
        "block_timestamp": 1000,
    })

    result = await coordinator.flush("transactions")
    assert result.file_info.row_count == 1

    manifest = catalog_builder.build(writer.list_files())
    assert manifest.tables["transactions"].row_count == 1
    assert manifest.tables["transactions"].arweave_id == ""

    orchestrator = CheckpointOrchestrator(
        coordinator=coordinator,
        builder=catalog_builder,
        uploader=fake_uploader,
        arns_name="test-arns",
    )
    checkpoint = await orchestrator.create_checkpoint()

    catalog = json.loads(fake_uploader.uploads_with("Data-Type", "catalog")[0][0])
    assert catalog["tables"]["transactions"]["row_count"] == 1
    assert catalog["tables"]["transactions"]["arweave_id"] != ""
    assert catalog["tables"]["transactions"]["arweave_id"] == checkpoint.table_tx_ids["transactions"]


@pytest.mark.asyncio
@pytest.mark.parametrize("batches", [[1], [5, 3], [2, 0, 7]])
async def test_row_count_grows_by_appended_rows(gateway, coordinator, writer, store, make_transaction, batches):
    expected = 0
    counter = 0

    for size in batches:
        for _ in range(size):
            counter += 1
            await gateway.ingest_transaction(make_transaction(f"tx{counter}"))

        await coordinator.flush_all()
        expected += size

        assert store.buffered_count("transactions") == 0
        info = writer.file_info("transactions")
        assert (info.row_count if info else 0) == expected


@pytest.mark.asyncio
async def test_failed_checkpoint_retries_from_scratch(
    gateway, coordinator, catalog_builder, uploader_factory, make_transaction
):
    await gateway.ingest_transaction(make_transaction("tx1"))
    await gateway.ingest_transaction(make_transaction(
        "buy1", tags=[{"name": "Action", "value": "Buy-Record"}, {"name": "Name", "value": "x"}]
    ))

    uploader = uploader_factory(fail_catalog=True)
    orchestrator = CheckpointOrchestrator(
        coordinator=coordinator,
        builder=catalog_builder,
        uploader=uploader,
        arns_name="test-arns",
    )

    with pytest.raises(UploadError):
        await orchestrator.create_checkpoint()
    assert len(uploader.uploads) == 2

    uploader.fail_catalog = False
    result = await orchestrator.create_checkpoint()

    # Both tables uploaded again, then the catalog
    assert len(uploader.uploads) == 5
    assert result.files_count == 2
    assert result.catalog_tx_id == "tx-catalog-5"


@pytest.mark.asyncio
async def test_block_then_checkpoint(gateway, coordinator, catalog_builder, fake_uploader):
    block = {
        "block_height": 42,
        "block_timestamp": 4200,
        "transactions": [
            {"transaction_id": "p1", "owner": "a", "data_size": 1,
             "tags": [{"name": "Data-Protocol", "value": "ao"}, {"name": "Type", "value": "Process"}]},
            {"transaction_id": "m1", "owner": "a", "data_size": 1,
             "tags": [{"name": "Data-Protocol", "value": "ao"}, {"name": "Type", "value": "Message"},
                      {"name": "Target", "value": "p1"}]},
            {"transaction_id": "bad", "owner": "a", "tags": []},
        ],
    }

    result = await gateway.ingest_block(block)
    assert (result.transactions_processed, result.transactions_failed) == (2, 1)

    orchestrator = CheckpointOrchestrator(
        coordinator=coordinator,
        builder=catalog_builder,
        uploader=fake_uploader,
        arns_name="test-arns",
    )
    checkpoint = await orchestrator.create_checkpoint()

    assert sorted(checkpoint.table_tx_ids) == ["ao_messages", "ao_processes"]
    assert checkpoint.manifest.table_count == 2
