"""HTTP client for the real-time collaboration transport."""

import asyncio
from typing import Any, Dict, Optional

import aiohttp

from common.logging_config import get_logger
from docstore.config import NOTIFY_TIMEOUT_SECONDS, WS_CONTROL_URL
from docstore.exceptions import NotificationDeliveryError

logger = get_logger(__name__)


class RealtimeTransportClient:
    """
    Pushes event messages to the real-time server's control endpoint.

    Every call is bounded by a total timeout so that a slow or unreachable
    transport cannot hold up the request that produced the event.
    """

    def __init__(self, url: Optional[str] = None, timeout_seconds: Optional[float] = None):
        self.url = url or WS_CONTROL_URL
        self._timeout = aiohttp.ClientTimeout(total=timeout_seconds or NOTIFY_TIMEOUT_SECONDS)
        self._session: Optional[aiohttp.ClientSession] = None

    def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
        return self._session

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    async def send(self, message: Dict[str, Any]) -> None:
        """
        Post one event message.

        Raises:
            NotificationDeliveryError: on timeout, connection failure or non-2xx reply
        """
        try:
            session = self._ensure_session()
            async with session.post(self.url, json=message) as resp:
                if resp.status >= 300:
                    body = await resp.text()
                    raise NotificationDeliveryError(
                        f"Transport returned {resp.status} for {message.get('event_type')}: {body[:200]}"
                    )
        except asyncio.TimeoutError as e:
            raise NotificationDeliveryError(f"Transport timed out after {self._timeout.total}s") from e
        except aiohttp.ClientError as e:
            raise NotificationDeliveryError(f"Transport unreachable: {e}") from e
