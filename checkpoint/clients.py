"""
Capability interfaces for the external Arweave and ArNS collaborators.

Each interface has one job so tests can swap in in-memory fakes without
touching network code.
"""

from pathlib import Path
from typing import Dict, Optional, Protocol, runtime_checkable
import logging

from core.config import Settings

logger = logging.getLogger(__name__)


@runtime_checkable
class ImmutableUploader(Protocol):
    """Uploads an opaque payload with tags and returns its transaction id"""

    async def upload(self, data: bytes, tags: Dict[str, str]) -> str:
        ...


@runtime_checkable
class WalletInfo(Protocol):
    """Optional wallet introspection offered by real uploaders"""

    @property
    def address(self) -> str:
        ...

    async def get_balance(self) -> float:
        ...


@runtime_checkable
class NamePointerUpdater(Protocol):
    """Binds a human readable name to a transaction id"""

    async def bind(self, name: str, target_id: str) -> bool:
        ...


def load_uploader(settings: Settings) -> Optional[ImmutableUploader]:
    """
    Build the Arweave uploader if a wallet file is configured.

    Returns None when no wallet is found; checkpoints are then disabled
    while ingestion and flushing keep working.
    """
    wallet_path = settings.ARWEAVE_WALLET_PATH
    if not wallet_path or not Path(wallet_path).is_file():
        logger.warning("No wallet found, checkpoint deployment will be disabled")
        logger.warning(f"Expected wallet at: {wallet_path}")
        return None

    # The Arweave SDK is only needed once a wallet exists
    from checkpoint.arweave_uploader import ArweaveUploader

    uploader = ArweaveUploader(wallet_path, gateway_url=settings.ARWEAVE_GATEWAY_URL)
    logger.info(f"Loaded wallet: {uploader.address}")
    return uploader


def load_pointer_updater(settings: Settings) -> NamePointerUpdater:
    from checkpoint.pointer import HttpPointerUpdater, LoggingPointerUpdater

    if settings.ARNS_UPDATE_URL:
        return HttpPointerUpdater(
            settings.ARNS_UPDATE_URL,
            ttl_seconds=settings.ARNS_TTL_SECONDS,
            max_retries=settings.MAX_RETRIES,
        )
    return LoggingPointerUpdater()
