"""
API endpoint tests
"""

from unittest.mock import AsyncMock, patch


class TestWebhookEndpoints:

    def test_transaction_accepted(self, client, make_transaction):
        response = client.post("/webhook/transaction", json=make_transaction("tx1"))

        assert response.status_code == 200
        data = response.json()
        assert data["ok"] is True
        assert data["response"]["transaction_id"] == "tx1"
        assert data["response"]["block_height"] == 10
        assert data["response"]["table"] == "transactions"

    def test_transaction_schema_violation(self, client, make_transaction):
        response = client.post("/webhook/transaction", json=make_transaction("tx1", data_size=-1))

        assert response.status_code == 400
        data = response.json()
        assert data["ok"] is False
        assert data["error"] == "Invalid transaction format"
        assert data["details"][0]["path"] == "data_size"
        assert data["details"][0]["received"] == -1

    def test_transaction_outside_int64_rejected(self, client, make_transaction):
        response = client.post("/webhook/transaction", json=make_transaction("big", data_size=2 ** 63))

        assert response.status_code == 400
        assert response.json()["details"][0]["path"] == "data_size"

    def test_transaction_with_unconvertible_tag_rejected(self, client, make_transaction):
        tags = [{"name": "Action", "value": "Buy-Record"}, {"name": "TTL-Seconds", "value": str(2 ** 63)}]

        response = client.post("/webhook/transaction", json=make_transaction("big", tags=tags))

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid transaction format"
        assert client.app.state.services.store.buffered_count("arns_names") == 0

    def test_transaction_malformed_json(self, client):
        response = client.post(
            "/webhook/transaction",
            content=b"{not json",
            headers={"Content-Type": "application/json"}
        )

        assert response.status_code == 400
        assert response.json()["ok"] is False

    def test_block_counts(self, client):
        payload = {
            "block_height": 20,
            "block_timestamp": 2000,
            "transactions": [
                {"transaction_id": "t1", "owner": "a", "tags": [], "data_size": 1},
                {"transaction_id": "t2", "owner": "b", "tags": []},
            ],
        }

        response = client.post("/webhook/block", json=payload)

        assert response.status_code == 200
        body = response.json()["response"]
        assert body["block_height"] == 20
        assert body["total_transactions"] == 2
        assert body["transactions_processed"] == 1
        assert body["transactions_failed"] == 1

    def test_block_header_violation(self, client):
        response = client.post("/webhook/block", json={"block_height": -1, "block_timestamp": 1})

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid block format"

    def test_test_transaction(self, client):
        response = client.post("/webhook/test")

        assert response.status_code == 200
        assert response.json()["response"]["test_transaction"]["transaction_id"].startswith("test_")

    def test_status_reports_buffers(self, client, make_transaction):
        client.post("/webhook/transaction", json=make_transaction("tx1"))

        response = client.get("/webhook/status")

        assert response.status_code == 200
        body = response.json()["response"]
        assert body["status"] == "active"
        assert body["tables"]["transactions"]["buffer_count"] == 1
        assert "rss" in body["memory"]
        assert body["endpoints"]["flush"] == "/flush"

    def test_request_headers(self, client):
        response = client.get("/webhook/status")

        assert "X-Request-ID" in response.headers
        assert "X-API-Latency-ms" in response.headers


class TestFlushEndpoint:

    def test_flush_writes_files(self, client, make_transaction, data_dir):
        client.post("/webhook/transaction", json=make_transaction("tx1"))

        response = client.post("/flush")

        assert response.status_code == 200
        body = response.json()["response"]
        assert body["tables"]["transactions"]["buffer_count"] == 0
        assert body["tables"]["transactions"]["row_count"] == 1
        assert (data_dir / "transactions.parquet").exists()

    def test_flush_failure_returns_500(self, client, make_transaction):
        client.post("/webhook/transaction", json=make_transaction("tx1"))
        writer = client.app.state.services.writer

        with patch.object(writer, "append_rows", side_effect=OSError("disk full")):
            response = client.post("/flush")

        assert response.status_code == 500
        data = response.json()
        assert data["ok"] is False
        assert "transactions" in data["message"]


class TestCheckpointEndpoint:

    def test_checkpoint_uploads(self, client, fake_uploader, make_transaction):
        client.post("/webhook/transaction", json=make_transaction("tx1"))

        response = client.post("/checkpoint")

        assert response.status_code == 200
        body = response.json()["response"]
        assert body["files_count"] == 1
        assert body["files"] == ["transactions.parquet"]
        assert body["catalog_tx_id"] == "tx-catalog-2"
        assert body["pointer_updated"] is False
        assert len(fake_uploader.uploads) == 2

    def test_checkpoint_with_nothing_to_upload(self, client, fake_uploader):
        response = client.post("/checkpoint")

        assert response.status_code == 200
        assert response.json()["response"]["files_count"] == 0
        assert fake_uploader.uploads == []

    def test_checkpoint_disabled_without_wallet(self, client_factory):
        client = client_factory(uploader=None)

        response = client.post("/checkpoint")

        assert response.status_code == 500
        assert response.json()["error"] == "Checkpoint disabled"

    def test_checkpoint_upload_failure(self, client_factory, uploader_factory, make_transaction):
        client = client_factory(uploader=uploader_factory(fail_catalog=True))
        client.post("/webhook/transaction", json=make_transaction("tx1"))

        response = client.post("/checkpoint")

        assert response.status_code == 500
        assert response.json()["error"] == "Failed to create checkpoint"


class TestHealthEndpoint:

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        body = response.json()["response"]
        assert body["status"] == "healthy"
        assert body["database_connected"] is True
        assert set(body["tables"]) >= {"transactions", "arns_names", "ao_messages"}

    def test_health_degraded_without_database(self, client):
        history = client.app.state.services.history
        with patch.object(history, "ping", AsyncMock(return_value=False)):
            response = client.get("/health")

        assert response.json()["response"]["status"] == "degraded"

    def test_root(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert response.json()["response"]["endpoints"]["checkpoint"] == "/checkpoint"


class TestTableEndpoints:

    def test_tables_listing(self, client, make_transaction):
        client.post("/webhook/transaction", json=make_transaction("tx1"))
        client.post("/flush")

        response = client.get("/harlequin/tables")

        body = response.json()["response"]
        assert body["total_tables"] == 6
        assert body["total_size"] > 0

    def test_download_table(self, client, make_transaction):
        client.post("/webhook/transaction", json=make_transaction("tx1"))
        client.post("/flush")

        response = client.get("/harlequin/parquet/transactions")

        assert response.status_code == 200
        assert response.content[:4] == b"PAR1"
        assert response.headers["content-type"] == "application/octet-stream"

    def test_download_missing_table_lists_available(self, client, make_transaction):
        client.post("/webhook/transaction", json=make_transaction("tx1"))
        client.post("/flush")

        response = client.get("/harlequin/parquet/ao_messages")

        assert response.status_code == 404
        assert response.json()["available_tables"] == ["transactions"]

    def test_download_rejects_path_characters(self, client):
        response = client.get("/harlequin/parquet/..%2Fsecrets")

        assert response.status_code in (400, 404)
        assert response.json()["ok"] is False

    def test_metadata_and_schema(self, client, make_transaction):
        client.post("/webhook/transaction", json=make_transaction("tx1"))
        client.post("/flush")

        metadata = client.get("/harlequin/metadata/transactions").json()["response"]
        schema = client.get("/harlequin/schema/transactions").json()["response"]

        assert metadata["row_count"] == 1
        assert metadata["file_name"] == "transactions.parquet"
        assert any(column["name"] == "block_height" for column in schema["schema"])

    def test_metadata_missing_table(self, client):
        response = client.get("/harlequin/metadata/transactions")

        assert response.status_code == 404

    def test_download_all(self, client, make_transaction):
        assert client.get("/harlequin/download/all").status_code == 404

        client.post("/webhook/transaction", json=make_transaction("tx1"))
        client.post("/flush")

        body = client.get("/harlequin/download/all").json()["response"]
        assert body["total_files"] == 1
        assert body["files"][0]["download_url"] == "/harlequin/parquet/transactions"


class TestCatalogEndpoints:

    def test_catalog_info(self, client):
        body = client.get("/harlequin/catalog").json()["response"]

        assert body["arns_name"] == "test-arns"
        assert body["wallet_loaded"] is True
        assert body["wallet_address"] == "test-wallet-address"

    def test_balance(self, client):
        body = client.get("/harlequin/catalog/balance").json()["response"]

        assert body == {"address": "test-wallet-address", "balance": 1.5}

    def test_balance_without_wallet(self, client_factory):
        client = client_factory(uploader=None)

        assert client.get("/harlequin/catalog/balance").status_code == 404

    def test_validate_ready(self, client):
        body = client.get("/harlequin/catalog/validate").json()["response"]

        assert body["validation"]["ready_for_deployment"] is True
        assert body["recommendations"] == ["Configuration is valid for deployment"]

    def test_validate_without_wallet(self, client_factory):
        client = client_factory(uploader=None)

        body = client.get("/harlequin/catalog/validate").json()["response"]

        assert body["validation"]["ready_for_deployment"] is False
        assert "Configure wallet at ARWEAVE_WALLET_PATH" in body["recommendations"]

    def test_history_after_checkpoint(self, client, make_transaction):
        client.post("/webhook/transaction", json=make_transaction("tx1"))
        client.post("/checkpoint")

        body = client.get("/harlequin/catalog/history").json()["response"]

        assert body["total_deployments"] == 1
        assert body["deployments"][0]["status"] == "success"
        assert body["deployments"][0]["trigger"] == "manual"
        assert body["last_deployment"]["catalog_tx_id"] == "tx-catalog-2"


def test_status_reports_checkpoint_state(client_factory):
    client = client_factory(uploader=None)

    body = client.get("/webhook/status").json()["response"]

    assert body["checkpoint"]["enabled"] is False
    assert body["checkpoint"]["in_progress"] is False
    assert body["checkpoint"]["arns_name"] == "test-arns"
