"""
Arweave uploader backed by arweave-python-client.

The SDK is synchronous (requests under the hood), so signing and posting run
in a worker thread to keep the event loop free.
"""

from typing import Dict
import asyncio
import logging
import os
import tempfile

import arweave
from arweave.arweave_lib import Transaction
from arweave.transaction_uploader import get_uploader

from core.exceptions import UploadError

logger = logging.getLogger(__name__)

# Payloads above this go through chunked upload instead of a single POST /tx
CHUNKED_UPLOAD_THRESHOLD = 10 * 1024 * 1024


class ArweaveUploader:
    """Signs and posts data transactions with a JWK wallet"""

    def __init__(self, wallet_path: str, gateway_url: str = "https://arweave.net"):
        self.wallet_path = wallet_path
        self.gateway_url = gateway_url.rstrip("/")
        self.wallet = arweave.Wallet(wallet_path)
        self.wallet.api_url = self.gateway_url

    @property
    def address(self) -> str:
        return self.wallet.address

    def _post(self, data: bytes, tags: Dict[str, str]) -> str:
        if len(data) > CHUNKED_UPLOAD_THRESHOLD:
            return self._post_chunked(data, tags)

        tx = Transaction(self.wallet, data=data)
        for name, value in tags.items():
            tx.add_tag(name, value)
        tx.sign()
        tx.send()
        return tx.id

    def _post_chunked(self, data: bytes, tags: Dict[str, str]) -> str:
        """Upload through the SDK's chunk uploader, which streams from a file"""
        with tempfile.TemporaryDirectory() as tmp_dir:
            file_path = os.path.join(tmp_dir, "payload")
            with open(file_path, "wb") as fh:
                fh.write(data)

            with open(file_path, "rb", buffering=0) as file_handler:
                tx = Transaction(self.wallet, file_handler=file_handler, file_path=file_path)
                for name, value in tags.items():
                    tx.add_tag(name, value)
                tx.sign()

                uploader = get_uploader(tx, file_handler)
                chunks = 0
                while not uploader.is_complete:
                    uploader.upload_chunk()
                    chunks += 1
                    logger.debug(f"Uploaded chunk {chunks} of {tx.id}")
        return tx.id

    async def upload(self, data: bytes, tags: Dict[str, str]) -> str:
        label = tags.get("Table-Name") or tags.get("Data-Type") or "payload"
        logger.info(f"Uploading {label} to Arweave ({len(data)} bytes)...")

        try:
            tx_id = await asyncio.to_thread(self._post, data, tags)
        except Exception as e:
            raise UploadError(
                f"Failed to upload {label} to Arweave",
                context={
                    "label": label,
                    "bytes": len(data),
                    "gateway": self.gateway_url,
                },
                original_exception=e
            )

        logger.info(f"Uploaded {label}: {tx_id}")
        return tx_id

    async def get_balance(self) -> float:
        return await asyncio.to_thread(lambda: float(self.wallet.balance))
