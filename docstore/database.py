"""Database schema and connection management for SQLite."""

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Generator, Optional

from docstore.config import DATABASE_PATH


def init_database() -> None:
    """
    Initialize database and create tables if they don't exist.
    """
    db_path = Path(DATABASE_PATH)
    db_path.parent.mkdir(parents=True, exist_ok=True)

    with get_db_connection() as conn:
        cursor = conn.cursor()

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS users (
                user_id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                email TEXT UNIQUE NOT NULL,
                api_key TEXT UNIQUE,
                storage_used INTEGER NOT NULL DEFAULT 0,
                storage_limit INTEGER NOT NULL,
                created_at TEXT NOT NULL,
                CHECK (storage_used >= 0)
            )
        """)

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS nodes (
                node_id TEXT PRIMARY KEY,
                title TEXT NOT NULL,
                node_type TEXT NOT NULL CHECK (node_type IN ('file', 'folder')),
                owner_id TEXT NOT NULL,
                parent_id TEXT,
                content_ref TEXT,
                content_key TEXT,
                content_size INTEGER NOT NULL DEFAULT 0,
                created_at TEXT NOT NULL,
                last_modified TEXT NOT NULL,
                last_modified_by TEXT,
                FOREIGN KEY(owner_id) REFERENCES users(user_id)
            )
        """)

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS collaborators (
                node_id TEXT NOT NULL,
                user_id TEXT NOT NULL,
                permission TEXT NOT NULL CHECK (permission IN ('view', 'edit')),
                added_at TEXT NOT NULL,
                added_by TEXT,
                PRIMARY KEY(node_id, user_id),
                FOREIGN KEY(node_id) REFERENCES nodes(node_id) ON DELETE CASCADE
            )
        """)

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS outbound_events (
                event_id TEXT PRIMARY KEY,
                target_id TEXT NOT NULL,
                event_type TEXT NOT NULL,
                payload TEXT NOT NULL,
                status TEXT NOT NULL DEFAULT 'pending',
                attempts INTEGER NOT NULL DEFAULT 0,
                last_error TEXT,
                created_at TEXT NOT NULL,
                delivered_at TEXT
            )
        """)

        cursor.execute("""
            CREATE INDEX IF NOT EXISTS idx_nodes_parent ON nodes(parent_id)
        """)

        cursor.execute("""
            CREATE INDEX IF NOT EXISTS idx_nodes_owner ON nodes(owner_id)
        """)

        cursor.execute("""
            CREATE INDEX IF NOT EXISTS idx_collaborators_user ON collaborators(user_id)
        """)

        cursor.execute("""
            CREATE INDEX IF NOT EXISTS idx_events_status ON outbound_events(status, created_at)
        """)

        conn.commit()


@contextmanager
def get_db_connection() -> Generator[sqlite3.Connection, None, None]:
    """
    Context manager for database connections.
    """
    conn = sqlite3.connect(DATABASE_PATH)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    try:
        yield conn
    finally:
        conn.close()


@contextmanager
def connection_scope(conn: Optional[sqlite3.Connection] = None) -> Generator[sqlite3.Connection, None, None]:
    """
    Reuse the caller's connection, or open one that commits on success.

    Repositories take an optional connection so that services can group
    several writes into one transaction; the caller then owns the commit.
    """
    if conn is not None:
        yield conn
        return

    with get_db_connection() as own_conn:
        try:
            yield own_conn
            own_conn.commit()
        except Exception:
            own_conn.rollback()
            raise


def row_to_dict(row: Optional[sqlite3.Row]) -> Optional[Dict[str, Any]]:
    """
    Convert a sqlite3.Row into a plain dict, passing None through.
    """
    if row is None:
        return None
    return {key: row[key] for key in row.keys()}
