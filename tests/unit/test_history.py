"""
Unit tests for the checkpoint run history
"""

import pytest

from models.base import CheckpointStatus, CheckpointTrigger


class TestCheckpointHistory:

    @pytest.mark.asyncio
    async def test_start_creates_running_row(self, history):
        run_id = await history.start(CheckpointTrigger.MANUAL, arns_name="test-arns")

        runs = await history.recent()
        assert len(runs) == 1
        assert runs[0].run_id == run_id
        assert runs[0].status == CheckpointStatus.RUNNING
        assert runs[0].arns_name == "test-arns"

    @pytest.mark.asyncio
    async def test_complete_with_catalog_is_success(self, history):
        run_id = await history.start(CheckpointTrigger.SCHEDULED)

        await history.complete(
            run_id,
            catalog_tx_id="catalog-tx",
            table_tx_ids={"transactions": "tx-1"},
            files_count=1,
            pointer_updated=True,
        )

        run = await history.last_success()
        assert run.run_id == run_id
        assert run.table_tx_ids == {"transactions": "tx-1"}
        assert run.pointer_updated is True
        assert run.completed_at is not None
        assert run.duration_seconds >= 0

    @pytest.mark.asyncio
    async def test_complete_without_catalog_is_skipped(self, history):
        run_id = await history.start(CheckpointTrigger.MANUAL)

        await history.complete(run_id, catalog_tx_id=None, table_tx_ids={}, files_count=0, pointer_updated=False)

        runs = await history.recent()
        assert runs[0].status == CheckpointStatus.SKIPPED
        assert await history.last_success() is None

    @pytest.mark.asyncio
    async def test_fail_records_error(self, history):
        run_id = await history.start(CheckpointTrigger.MANUAL)

        await history.fail(run_id, "Failed to upload catalog", {"error_type": "UploadError"})

        run = (await history.recent())[0]
        assert run.status == CheckpointStatus.FAILED
        assert run.error_message == "Failed to upload catalog"
        assert run.error_details == {"error_type": "UploadError"}

    @pytest.mark.asyncio
    async def test_recent_is_newest_first_and_limited(self, history):
        ids = [await history.start(CheckpointTrigger.MANUAL) for _ in range(3)]

        runs = await history.recent(limit=2)

        assert [r.run_id for r in runs] == [ids[2], ids[1]]

    @pytest.mark.asyncio
    async def test_unknown_run_is_ignored(self, history):
        await history.fail("does-not-exist", "boom")

        assert await history.recent() == []

    @pytest.mark.asyncio
    async def test_ping(self, history):
        assert await history.ping() is True
