"""
Pytest configuration and fixtures
"""

import os
import tempfile

# Keep the module-level app in api.main away from ./data
_TEST_ROOT = tempfile.mkdtemp(prefix="sidecar-tests-")
os.environ.setdefault("DATA_DIR", os.path.join(_TEST_ROOT, "data"))
os.environ.setdefault("DATABASE_URL", f"sqlite+aiosqlite:///{_TEST_ROOT}/sidecar.db")
os.environ.setdefault("SCHEDULER_ENABLED", "false")
os.environ.setdefault("ARWEAVE_WALLET_PATH", os.path.join(_TEST_ROOT, "missing-wallet.json"))
os.environ.setdefault("ENVIRONMENT", "test")

import pytest
import pytest_asyncio
from typing import Dict, List, Optional, Set, Tuple
from fastapi.testclient import TestClient

from core.config import Settings
from core.database import create_engine, create_session_maker, init_db
from core.exceptions import UploadError
from checkpoint.catalog import CatalogBuilder
from checkpoint.history import CheckpointHistory
from ingestion.buffer_store import TableBufferStore
from ingestion.flush import FlushCoordinator
from ingestion.tables import table_names
from ingestion.writers.parquet_writer import ParquetFileWriter

FIXED_NOW = 1705284000.0


class FakeUploader:
    """In-memory uploader recording every payload it receives"""

    def __init__(self, fail_tables: Optional[Set[str]] = None, fail_catalog: bool = False):
        self.fail_tables = fail_tables or set()
        self.fail_catalog = fail_catalog
        self.uploads: List[Tuple[bytes, Dict[str, str]]] = []
        self.address = "test-wallet-address"
        self.balance = 1.5

    async def upload(self, data: bytes, tags: Dict[str, str]) -> str:
        table = tags.get("Table-Name")
        if table in self.fail_tables:
            raise UploadError(f"Failed to upload {table} to Arweave", context={"label": table})
        if tags.get("Data-Type") == "catalog" and self.fail_catalog:
            raise UploadError("Failed to upload catalog to Arweave", context={"label": "catalog"})

        self.uploads.append((data, dict(tags)))
        label = table or tags.get("Data-Type", "payload")
        return f"tx-{label}-{len(self.uploads)}"

    async def get_balance(self) -> float:
        return self.balance

    def uploads_with(self, tag: str, value: str) -> List[Tuple[bytes, Dict[str, str]]]:
        return [u for u in self.uploads if u[1].get(tag) == value]


class FakePointerUpdater:
    """Records name -> target bindings"""

    def __init__(self, result: bool = True, error: Optional[Exception] = None):
        self.result = result
        self.error = error
        self.bindings: List[Tuple[str, str]] = []

    async def bind(self, name: str, target_id: str) -> bool:
        if self.error is not None:
            raise self.error
        self.bindings.append((name, target_id))
        return self.result


@pytest.fixture
def data_dir(tmp_path):
    path = tmp_path / "data"
    path.mkdir()
    return path


@pytest.fixture
def writer(data_dir):
    return ParquetFileWriter(str(data_dir), compression="gzip")


@pytest.fixture
def store():
    return TableBufferStore(table_names())


@pytest.fixture
def coordinator(store, writer):
    return FlushCoordinator(store, writer)


@pytest.fixture
def catalog_builder():
    return CatalogBuilder(service="test-sidecar", version="1.0.0", clock=lambda: FIXED_NOW)


@pytest.fixture
def fake_uploader():
    return FakeUploader()


@pytest.fixture
def fake_pointer():
    return FakePointerUpdater()


@pytest_asyncio.fixture
async def session_maker(tmp_path):
    """SQLite-backed session factory with the checkpoint tables created"""
    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path}/history.db")
    await init_db(engine)
    yield create_session_maker(engine)
    await engine.dispose()


@pytest_asyncio.fixture
async def history(session_maker):
    return CheckpointHistory(session_maker)


@pytest.fixture
def test_settings(tmp_path, data_dir):
    return Settings(
        DATA_DIR=str(data_dir),
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path}/api.db",
        SCHEDULER_ENABLED=False,
        ENVIRONMENT="test",
        ARNS_NAME="test-arns",
        PARQUET_BATCH_SIZE=1000,
        ARWEAVE_WALLET_PATH=None,
    )


@pytest.fixture
def make_transaction():
    """Factory for transaction webhook payloads"""

    def _make(tx_id: str = "tx1", tags: Optional[List[Dict[str, str]]] = None, **overrides):
        payload = {
            "transaction_id": tx_id,
            "owner": "addrA",
            "target": None,
            "tags": tags if tags is not None else [{"name": "App-Name", "value": "ArDrive"}],
            "data_size": 100,
            "block_height": 10,
            "block_timestamp": 1000,
            "fee": 0,
        }
        payload.update(overrides)
        return payload

    return _make


@pytest.fixture
def client_factory(test_settings):
    """Build a TestClient around services wired with fakes"""
    from api.dependencies import build_services
    from api.main import create_app

    clients = []

    def _make(uploader=None, pointer_updater=None, **setting_overrides):
        settings = test_settings.model_copy(update=setting_overrides)
        services = build_services(
            settings,
            uploader=uploader,
            pointer_updater=pointer_updater or FakePointerUpdater(result=False),
            enable_scheduler=False,
        )
        client = TestClient(create_app(services))
        client.__enter__()
        clients.append(client)
        return client

    yield _make

    for client in clients:
        client.__exit__(None, None, None)


@pytest.fixture
def client(client_factory, fake_uploader):
    return client_factory(uploader=fake_uploader)


@pytest.fixture
def uploader_factory():
    return FakeUploader


@pytest.fixture
def pointer_factory():
    return FakePointerUpdater
