"""
Unit tests for the Parquet file writer
"""

from datetime import datetime, timezone
from unittest.mock import patch

import pytest
import pyarrow as pa

from ingestion.tables import TRANSACTIONS, ARNS_NAMES, table_name_from_file
from ingestion.writers.parquet_writer import (
    ParquetFileWriter,
    describe_file,
    snapshot_file,
    ESTIMATED_ROW_SIZE,
)


def tx_row(n: int):
    return {
        "id": f"tx{n}",
        "owner": "addrA",
        "target": None,
        "data_size": 100,
        "block_height": 10,
        "block_timestamp": datetime.fromtimestamp(1000, tz=timezone.utc),
        "fee": 0,
        "tags": "[]",
        "app_name": "ArDrive",
    }


class TestParquetFileWriter:

    def test_append_creates_file_named_after_table(self, writer):
        info = writer.append_rows(TRANSACTIONS, [tx_row(1)])

        assert info.path.name == "transactions.parquet"
        assert info.table_name == TRANSACTIONS
        assert info.row_count == 1
        assert info.row_count_estimated is False
        assert info.file_size > 0

    def test_append_preserves_previous_rows(self, writer):
        writer.append_rows(TRANSACTIONS, [tx_row(1), tx_row(2)])
        info = writer.append_rows(TRANSACTIONS, [tx_row(3)])

        assert info.row_count == 3
        assert [r["id"] for r in writer.read_rows(TRANSACTIONS)] == ["tx1", "tx2", "tx3"]

    def test_failed_write_keeps_previous_file(self, writer):
        writer.append_rows(TRANSACTIONS, [tx_row(1)])

        with patch("ingestion.writers.parquet_writer.pq.write_table", side_effect=OSError("disk full")):
            with pytest.raises(OSError):
                writer.append_rows(TRANSACTIONS, [tx_row(2)])

        assert [r["id"] for r in writer.read_rows(TRANSACTIONS)] == ["tx1"]
        assert not (writer.data_dir / "transactions.parquet.tmp").exists()

    def test_rows_not_matching_schema_are_rejected(self, writer):
        with pytest.raises((pa.ArrowException, TypeError, ValueError)):
            writer.append_rows(ARNS_NAMES, [{"name": "x", "ttl_seconds": "not-a-number"}])

    def test_list_files_only_returns_parquet(self, writer, data_dir):
        writer.append_rows(TRANSACTIONS, [tx_row(1)])
        (data_dir / "notes.txt").write_text("hello")

        files = writer.list_files()

        assert [f.name for f in files] == ["transactions.parquet"]

    def test_file_info_missing_table(self, writer):
        assert writer.file_info("ao_messages") is None
        assert writer.read_rows("ao_messages") == []
        assert writer.read_schema("ao_messages") is None

    def test_read_schema_lists_columns(self, writer):
        writer.append_rows(TRANSACTIONS, [tx_row(1)])

        columns = writer.read_schema(TRANSACTIONS)

        assert [c["name"] for c in columns][:2] == ["id", "owner"]


class TestDescribeFile:

    def test_unreadable_footer_falls_back_to_estimate(self, data_dir):
        path = data_dir / "broken.parquet"
        path.write_bytes(b"x" * (ESTIMATED_ROW_SIZE * 7))

        info = describe_file(path)

        assert info.row_count == 7
        assert info.row_count_estimated is True
        assert info.table_name == "broken"


class TestSnapshotFile:

    def test_snapshot_stats_come_from_read_bytes(self, writer):
        info = writer.append_rows(TRANSACTIONS, [tx_row(1), tx_row(2)])

        snapshot = snapshot_file(info.path)
        writer.append_rows(TRANSACTIONS, [tx_row(3)])

        assert snapshot.info.row_count == 2
        assert snapshot.info.file_size == len(snapshot.data) == info.file_size
        assert snapshot.data[:4] == b"PAR1"
        assert writer.file_info(TRANSACTIONS).row_count == 3

    def test_snapshot_of_unreadable_footer_estimates(self, data_dir):
        path = data_dir / "broken.parquet"
        path.write_bytes(b"x" * (ESTIMATED_ROW_SIZE * 3))

        snapshot = snapshot_file(path)

        assert snapshot.info.row_count == 3
        assert snapshot.info.row_count_estimated is True


def test_table_name_from_file():
    assert table_name_from_file("data/transactions.parquet") == "transactions"
    assert table_name_from_file("C:\\data\\ao_messages.parquet") == "ao_messages"
