"""
ArNS pointer updaters.

HttpPointerUpdater hands the name -> catalog binding to an ArNS update
service over HTTP, retrying transient failures with exponential backoff.
LoggingPointerUpdater only records the intended binding and is used when no
update service is configured.
"""

from typing import Any, Dict, Optional
import asyncio
import logging

import httpx

from core.exceptions import PointerUpdateError, NetworkError

logger = logging.getLogger(__name__)


class HttpPointerUpdater:
    """
    Bind an ArNS name through an HTTP update service.

    Attributes:
        max_retries: Maximum number of attempts (default: 3)
        retry_delay: Initial retry delay in seconds (default: 1.0)
        timeout: Request timeout in seconds (default: 30.0)
    """

    def __init__(
        self,
        update_url: str,
        ttl_seconds: int = 3600,
        max_retries: int = 3,
        retry_delay: float = 1.0,
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None
    ):
        self.update_url = update_url
        self.ttl_seconds = ttl_seconds
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.timeout = timeout
        self._client = client

    async def bind(self, name: str, target_id: str) -> bool:
        payload = {
            "name": name,
            "target_id": target_id,
            "ttl_seconds": self.ttl_seconds,
        }
        logger.info(f"Updating ArNS name {name} -> {target_id}")

        if self._client is not None:
            await self._post_with_retry(self._client, payload)
        else:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                await self._post_with_retry(client, payload)

        logger.info(f"ArNS name {name} now points to {target_id}")
        return True

    async def _post_with_retry(self, client: httpx.AsyncClient, payload: Dict[str, Any]) -> httpx.Response:
        last_exception = None

        for attempt in range(self.max_retries):
            try:
                response = await client.post(self.update_url, json=payload, timeout=self.timeout)

                if response.status_code >= 500 or response.status_code == 429:
                    raise NetworkError(
                        f"ArNS update service returned {response.status_code}",
                        context={
                            "status_code": response.status_code,
                            "update_url": self.update_url,
                            "response_body": response.text[:500],
                        }
                    )

                if response.status_code >= 400:
                    # Client errors will not go away on retry
                    raise PointerUpdateError(
                        f"ArNS update rejected for {payload['name']}",
                        context={
                            "status_code": response.status_code,
                            "update_url": self.update_url,
                            "response_body": response.text[:500],
                        }
                    )

                return response

            except PointerUpdateError:
                raise

            except (httpx.TimeoutException, httpx.NetworkError, NetworkError) as e:
                last_exception = e
                if attempt < self.max_retries - 1:
                    delay = self.retry_delay * (2 ** attempt)
                    logger.warning(
                        f"ArNS update failed ({e}). Retrying in {delay} seconds "
                        f"(attempt {attempt + 1}/{self.max_retries})"
                    )
                    await asyncio.sleep(delay)

        raise PointerUpdateError(
            f"ArNS update failed after {self.max_retries} retries",
            context={"update_url": self.update_url, "name": payload["name"]},
            original_exception=last_exception
        )


class LoggingPointerUpdater:
    """Records the binding that would be made; nothing is sent"""

    async def bind(self, name: str, target_id: str) -> bool:
        logger.info(f"Would update ArNS name {name} -> {target_id} (no update service configured)")
        return False
