"""Outbound event log (notification outbox) for the real-time transport."""

import json
import sqlite3
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from common.logging_config import get_logger
from docstore.database import connection_scope
from docstore.types import EventStatus

logger = get_logger(__name__)

_EVENT_COLUMNS = (
    "event_id, target_id, event_type, payload, status, attempts, last_error, created_at, delivered_at"
)


@dataclass
class OutboundEvent:
    event_id: str
    target_id: str
    event_type: str
    payload: Dict[str, Any]
    status: EventStatus
    attempts: int
    created_at: datetime
    last_error: Optional[str] = None
    delivered_at: Optional[datetime] = None

    def to_message(self) -> Dict[str, Any]:
        """Wire format posted to the real-time transport."""
        return {
            "event_id": self.event_id,
            "target_id": self.target_id,
            "event_type": self.event_type,
            "payload": self.payload,
        }


def _row_to_event(row: sqlite3.Row) -> OutboundEvent:
    return OutboundEvent(
        event_id=row["event_id"],
        target_id=row["target_id"],
        event_type=row["event_type"],
        payload=json.loads(row["payload"]),
        status=EventStatus(row["status"]),
        attempts=row["attempts"],
        last_error=row["last_error"],
        created_at=datetime.fromisoformat(row["created_at"]),
        delivered_at=datetime.fromisoformat(row["delivered_at"]) if row["delivered_at"] else None,
    )


class EventRepository:
    @staticmethod
    def insert_event(
        event_id: str,
        target_id: str,
        event_type: str,
        payload: Dict[str, Any],
        created_at: datetime,
        conn: Optional[sqlite3.Connection] = None
    ) -> None:
        with connection_scope(conn) as c:
            c.execute(
                """
                INSERT INTO outbound_events (event_id, target_id, event_type, payload, status, attempts, created_at)
                VALUES (?, ?, ?, ?, ?, 0, ?)
                """,
                (event_id, target_id, event_type, json.dumps(payload, default=str),
                 EventStatus.PENDING.value, created_at.isoformat())
            )
        logger.debug(f"Queued event {event_type} [event_id={event_id}, target_id={target_id}]")

    @staticmethod
    def get_by_ids(event_ids: Sequence[str]) -> List[OutboundEvent]:
        ids = list(event_ids)
        if not ids:
            return []
        placeholders = ','.join('?' for _ in ids)
        with connection_scope() as c:
            rows = c.execute(
                f"SELECT {_EVENT_COLUMNS} FROM outbound_events WHERE event_id IN ({placeholders}) ORDER BY created_at",
                ids
            ).fetchall()
        return [_row_to_event(row) for row in rows]

    @staticmethod
    def get_pending(limit: int = 100) -> List[OutboundEvent]:
        with connection_scope() as c:
            rows = c.execute(
                f"""
                SELECT {_EVENT_COLUMNS} FROM outbound_events
                WHERE status = ?
                ORDER BY created_at
                LIMIT ?
                """,
                (EventStatus.PENDING.value, limit)
            ).fetchall()
        return [_row_to_event(row) for row in rows]

    @staticmethod
    def mark_delivered(event_id: str, delivered_at: datetime) -> None:
        with connection_scope() as c:
            c.execute(
                """
                UPDATE outbound_events
                SET status = ?, attempts = attempts + 1, delivered_at = ?, last_error = NULL
                WHERE event_id = ?
                """,
                (EventStatus.DELIVERED.value, delivered_at.isoformat(), event_id)
            )

    @staticmethod
    def record_failure(event_id: str, error: str, max_attempts: int) -> int:
        """
        Count a failed delivery attempt; the event becomes 'failed' once it
        has used max_attempts.

        Returns:
            Number of attempts made so far
        """
        with connection_scope() as c:
            c.execute(
                """
                UPDATE outbound_events
                SET attempts = attempts + 1,
                    last_error = ?,
                    status = CASE WHEN attempts + 1 >= ? THEN ? ELSE status END
                WHERE event_id = ?
                """,
                (error[:500], max_attempts, EventStatus.FAILED.value, event_id)
            )
            row = c.execute(
                "SELECT attempts FROM outbound_events WHERE event_id = ?", (event_id,)
            ).fetchone()
        return row["attempts"] if row else 0

    @staticmethod
    def count_by_status() -> Dict[str, int]:
        with connection_scope() as c:
            rows = c.execute(
                "SELECT status, COUNT(*) AS total FROM outbound_events GROUP BY status"
            ).fetchall()
        counts = {status.value: 0 for status in EventStatus}
        counts.update({row["status"]: row["total"] for row in rows})
        return counts
