"""HTTP client for the external content store holding file bytes."""

import asyncio
from typing import Optional

import aiohttp

from common.logging_config import get_logger
from docstore.config import (
    CONTENT_STORE_MAX_RETRIES,
    CONTENT_STORE_TIMEOUT_SECONDS,
    CONTENT_STORE_URL,
)
from docstore.exceptions import ContentStoreError
from docstore.utils import guess_content_type

logger = get_logger(__name__)


class _TransientStoreError(Exception):
    """A response worth retrying (5xx from the store)."""


class ContentStoreClient:
    """
    aiohttp client for the object store.

    Objects are addressed by key (``files/<node_id><ext>``); ``put`` returns
    the locator under which the object can later be fetched.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
        max_retries: Optional[int] = None,
    ):
        self._base_url = (base_url or CONTENT_STORE_URL).rstrip('/')
        self._timeout = aiohttp.ClientTimeout(total=timeout_seconds or CONTENT_STORE_TIMEOUT_SECONDS)
        self._max_retries = max_retries if max_retries is not None else CONTENT_STORE_MAX_RETRIES
        self._session: Optional[aiohttp.ClientSession] = None

    def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
            logger.info(f"Opened content store session to {self._base_url}")
        return self._session

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    def locator_for(self, key: str) -> str:
        return f"{self._base_url}/{key}"

    async def _retry_with_backoff(self, operation, *args, **kwargs):
        """
        Retry operation with exponential backoff for transient failures.

        Raises:
            ContentStoreError: when retries are exhausted or the store rejects the request
        """
        last_exception: Optional[Exception] = None

        for attempt in range(self._max_retries):
            try:
                return await operation(*args, **kwargs)
            except (aiohttp.ClientConnectionError, asyncio.TimeoutError, _TransientStoreError) as e:
                last_exception = e
                if attempt < self._max_retries - 1:
                    delay = 2 ** attempt
                    logger.warning(
                        f"Transient content store failure, retrying in {delay}s "
                        f"(attempt {attempt + 1}/{self._max_retries}): {e!r}"
                    )
                    await asyncio.sleep(delay)
            except aiohttp.ClientError as e:
                raise ContentStoreError(f"Content store request failed: {e}") from e

        raise ContentStoreError(
            f"Content store unavailable after {self._max_retries} attempts: {last_exception!r}"
        ) from last_exception

    async def put(self, key: str, data: bytes) -> str:
        """
        Store bytes under key, replacing any previous object.

        Returns:
            Locator of the stored object
        """
        url = self.locator_for(key)

        async def _put() -> str:
            session = self._ensure_session()
            async with session.put(
                url,
                data=data,
                headers={"Content-Type": guess_content_type(key)},
            ) as resp:
                if resp.status >= 500:
                    raise _TransientStoreError(f"store returned {resp.status}")
                if resp.status not in (200, 201, 204):
                    body = await resp.text()
                    raise ContentStoreError(f"Content store rejected put of {key}: {resp.status} {body[:200]}")
                if resp.content_type == "application/json":
                    body = await resp.json()
                    return body.get("location") or url
                return url

        locator = await self._retry_with_backoff(_put)
        logger.info(f"Stored {len(data)} bytes at {key}")
        return locator

    async def delete(self, key: str) -> None:
        """
        Delete the object stored under key. A missing object counts as deleted.
        """
        url = self.locator_for(key)

        async def _delete() -> None:
            session = self._ensure_session()
            async with session.delete(url) as resp:
                if resp.status >= 500:
                    raise _TransientStoreError(f"store returned {resp.status}")
                if resp.status not in (200, 202, 204, 404):
                    raise ContentStoreError(f"Content store rejected delete of {key}: {resp.status}")

        await self._retry_with_backoff(_delete)
        logger.info(f"Deleted content object {key}")

    async def ping(self) -> bool:
        try:
            session = self._ensure_session()
            async with session.head(self._base_url) as resp:
                return resp.status < 500
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning(f"Content store ping failed: {e!r}")
            return False
