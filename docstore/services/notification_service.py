"""Notification emitter: outbox writes and delivery to the real-time transport."""

import asyncio
import sqlite3
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from common.logging_config import get_logger
from docstore.config import NOTIFY_BATCH_SIZE, NOTIFY_DISPATCH_INTERVAL_SECONDS, NOTIFY_MAX_ATTEMPTS
from docstore.exceptions import NotificationDeliveryError
from docstore.realtime_client import RealtimeTransportClient
from docstore.repositories.event_repository import EventRepository, OutboundEvent
from docstore.repositories.node_repository import Node
from docstore.types import EventStatus, EventType
from docstore.utils import generate_uuid

logger = get_logger(__name__)


class NotificationEmitter:
    """
    Turns committed mutations into one event per affected node.

    ``enqueue`` writes the event into the outbox using the caller's
    connection, so it commits or rolls back with the mutation it describes.
    ``dispatch`` then pushes the events concurrently; an event that cannot
    be delivered stays pending for the background dispatcher.
    """

    def __init__(
        self,
        transport: Optional[RealtimeTransportClient] = None,
        max_attempts: int = NOTIFY_MAX_ATTEMPTS,
    ):
        self.transport = transport or RealtimeTransportClient()
        self.max_attempts = max_attempts

    def enqueue(
        self,
        node: Node,
        event_type: EventType,
        payload: Dict[str, Any],
        conn: sqlite3.Connection,
    ) -> str:
        """
        Record an event addressed to node's owner and collaborators.

        Args:
            node: Node whose audience receives the event; pass a pre-deletion
                snapshot when the node no longer exists
            event_type: Event name understood by the transport
            payload: Event-specific fields
            conn: Connection of the transaction performing the mutation

        Returns:
            Event ID (UUID)
        """
        event_id = generate_uuid()
        body = dict(payload)
        body["document_id"] = node.node_id
        body["recipients"] = node.recipients()

        EventRepository.insert_event(
            event_id=event_id,
            target_id=node.node_id,
            event_type=event_type.value,
            payload=body,
            created_at=datetime.utcnow(),
            conn=conn,
        )
        return event_id

    async def dispatch(self, event_ids: Iterable[str]) -> int:
        """
        Deliver the given events concurrently. Never raises.

        Returns:
            Number of events delivered
        """
        ids = list(event_ids)
        if not ids:
            return 0

        try:
            events = [e for e in EventRepository.get_by_ids(ids) if e.status is EventStatus.PENDING]
        except sqlite3.Error as e:
            logger.error(f"Could not load {len(ids)} events for dispatch: {e}", exc_info=True)
            return 0

        return await self._deliver_all(events)

    async def dispatch_pending(self, limit: int = NOTIFY_BATCH_SIZE) -> int:
        events = EventRepository.get_pending(limit)
        if not events:
            return 0
        logger.info(f"Retrying {len(events)} pending events")
        return await self._deliver_all(events)

    async def _deliver_all(self, events: List[OutboundEvent]) -> int:
        results = await asyncio.gather(*(self._deliver(event) for event in events))
        delivered = sum(1 for ok in results if ok)
        if delivered < len(events):
            logger.warning(f"Delivered {delivered}/{len(events)} events; the rest stay queued")
        return delivered

    async def _deliver(self, event: OutboundEvent) -> bool:
        try:
            await self.transport.send(event.to_message())
        except NotificationDeliveryError as e:
            attempts = EventRepository.record_failure(event.event_id, str(e), self.max_attempts)
            logger.warning(
                f"Event {event.event_type} not delivered (attempt {attempts}/{self.max_attempts}) "
                f"[event_id={event.event_id}, target_id={event.target_id}]: {e}"
            )
            return False
        except Exception as e:
            logger.error(
                f"Unexpected error delivering event [event_id={event.event_id}]: {e}",
                exc_info=True
            )
            return False

        EventRepository.mark_delivered(event.event_id, datetime.utcnow())
        logger.debug(f"Delivered {event.event_type} [event_id={event.event_id}, target_id={event.target_id}]")
        return True

    async def close(self) -> None:
        await self.transport.close()


class NotificationDispatcher:
    """
    Background task that periodically retries undelivered events.
    """

    def __init__(self, emitter: NotificationEmitter, interval_seconds: int = NOTIFY_DISPATCH_INTERVAL_SECONDS):
        self.emitter = emitter
        self.interval_seconds = interval_seconds
        self._running = False
        self._task: Optional[asyncio.Task] = None

    async def start(self) -> None:
        if self._running:
            logger.warning("Notification dispatcher already running")
            return

        self._running = True
        self._task = asyncio.create_task(self._run())
        logger.info(f"Started notification dispatcher (interval: {self.interval_seconds}s)")

    async def stop(self) -> None:
        if not self._running:
            return

        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        logger.info("Stopped notification dispatcher")

    async def _run(self) -> None:
        while self._running:
            try:
                await asyncio.sleep(self.interval_seconds)
                if not self._running:
                    break
                await self.emitter.dispatch_pending()
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"Error in notification dispatcher: {e}", exc_info=True)
