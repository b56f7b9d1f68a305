"""User repository: identity replica and per-user storage counters."""

import sqlite3
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, Optional

from common.logging_config import get_logger
from docstore.database import connection_scope

logger = get_logger(__name__)

_USER_COLUMNS = "user_id, name, email, api_key, storage_used, storage_limit, created_at"


@dataclass
class User:
    user_id: str
    name: str
    email: str
    api_key: Optional[str]
    storage_used: int
    storage_limit: int
    created_at: datetime


def _row_to_user(row: sqlite3.Row) -> User:
    return User(
        user_id=row["user_id"],
        name=row["name"],
        email=row["email"],
        api_key=row["api_key"],
        storage_used=row["storage_used"],
        storage_limit=row["storage_limit"],
        created_at=datetime.fromisoformat(row["created_at"]),
    )


class UserRepository:
    @staticmethod
    def create_user(
        user_id: str,
        name: str,
        email: str,
        api_key: Optional[str],
        storage_limit: int,
        created_at: datetime,
        conn: Optional[sqlite3.Connection] = None,
    ) -> User:
        logger.debug(f"Creating user: {email} [user_id={user_id}]")

        with connection_scope(conn) as c:
            c.execute(
                f"""
                INSERT INTO users ({_USER_COLUMNS})
                VALUES (?, ?, ?, ?, 0, ?, ?)
                """,
                (user_id, name, email, api_key, storage_limit, created_at.isoformat())
            )

        logger.info(f"User created successfully: {email} [user_id={user_id}]")
        return User(
            user_id=user_id,
            name=name,
            email=email,
            api_key=api_key,
            storage_used=0,
            storage_limit=storage_limit,
            created_at=created_at,
        )

    @staticmethod
    def _fetch_one(column: str, value: str, conn: Optional[sqlite3.Connection] = None) -> Optional[User]:
        with connection_scope(conn) as c:
            row = c.execute(
                f"SELECT {_USER_COLUMNS} FROM users WHERE {column} = ?",
                (value,)
            ).fetchone()
        return _row_to_user(row) if row is not None else None

    @staticmethod
    def get_by_user_id(user_id: str, conn: Optional[sqlite3.Connection] = None) -> Optional[User]:
        return UserRepository._fetch_one("user_id", user_id, conn=conn)

    @staticmethod
    def get_by_email(email: str) -> Optional[User]:
        return UserRepository._fetch_one("email", email.strip().lower())

    @staticmethod
    def get_by_api_key(api_key: str) -> Optional[User]:
        logger.debug("Fetching user by API key")
        return UserRepository._fetch_one("api_key", api_key)

    @staticmethod
    def get_many(user_ids: Iterable[str]) -> Dict[str, User]:
        """
        Fetch several users at once, keyed by user_id. Unknown ids are skipped.
        """
        ids = list(dict.fromkeys(user_ids))
        if not ids:
            return {}

        placeholders = ','.join('?' for _ in ids)
        with connection_scope() as c:
            rows = c.execute(
                f"SELECT {_USER_COLUMNS} FROM users WHERE user_id IN ({placeholders})",
                ids
            ).fetchall()
        return {row["user_id"]: _row_to_user(row) for row in rows}

    @staticmethod
    def try_increment_storage(user_id: str, delta: int, conn: Optional[sqlite3.Connection] = None) -> bool:
        """
        Atomically add delta bytes to storage_used if the result stays within storage_limit.

        Returns:
            True if the row was updated, False if the quota would be exceeded
            or the user does not exist
        """
        with connection_scope(conn) as c:
            cursor = c.execute(
                """
                UPDATE users
                SET storage_used = storage_used + ?
                WHERE user_id = ? AND storage_used + ? <= storage_limit
                """,
                (delta, user_id, delta)
            )
            return cursor.rowcount == 1

    @staticmethod
    def decrement_storage(user_id: str, amount: int, conn: Optional[sqlite3.Connection] = None) -> bool:
        """
        Subtract amount bytes from storage_used, never going below zero.
        """
        with connection_scope(conn) as c:
            cursor = c.execute(
                "UPDATE users SET storage_used = MAX(storage_used - ?, 0) WHERE user_id = ?",
                (amount, user_id)
            )
            return cursor.rowcount == 1
