"""Collaborator repository for per-node access grants."""

import sqlite3
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from common.logging_config import get_logger
from docstore.database import connection_scope
from docstore.types import Permission

logger = get_logger(__name__)


@dataclass
class Collaborator:
    user_id: str
    permission: Permission
    added_at: datetime
    added_by: Optional[str]


def _row_to_collaborator(row: sqlite3.Row) -> Collaborator:
    return Collaborator(
        user_id=row["user_id"],
        permission=Permission(row["permission"]),
        added_at=datetime.fromisoformat(row["added_at"]),
        added_by=row["added_by"],
    )


class CollaboratorRepository:
    @staticmethod
    def get_for_node(node_id: str, conn: Optional[sqlite3.Connection] = None) -> Dict[str, Collaborator]:
        with connection_scope(conn) as c:
            rows = c.execute(
                """
                SELECT user_id, permission, added_at, added_by
                FROM collaborators WHERE node_id = ?
                ORDER BY added_at, user_id
                """,
                (node_id,)
            ).fetchall()
        return {row["user_id"]: _row_to_collaborator(row) for row in rows}

    @staticmethod
    def get_for_nodes(
        node_ids: Iterable[str],
        conn: Optional[sqlite3.Connection] = None
    ) -> Dict[str, Dict[str, Collaborator]]:
        """
        Load collaborator maps for many nodes in one query.

        Returns:
            Mapping node_id -> {user_id: Collaborator}; every requested id is present
        """
        ids = list(dict.fromkeys(node_ids))
        result: Dict[str, Dict[str, Collaborator]] = {node_id: {} for node_id in ids}
        if not ids:
            return result

        placeholders = ','.join('?' for _ in ids)
        with connection_scope(conn) as c:
            rows = c.execute(
                f"""
                SELECT node_id, user_id, permission, added_at, added_by
                FROM collaborators WHERE node_id IN ({placeholders})
                ORDER BY added_at, user_id
                """,
                ids
            ).fetchall()

        for row in rows:
            result[row["node_id"]][row["user_id"]] = _row_to_collaborator(row)
        return result

    @staticmethod
    def insert_many(
        node_id: str,
        collaborators: List[Collaborator],
        conn: Optional[sqlite3.Connection] = None
    ) -> None:
        if not collaborators:
            return
        with connection_scope(conn) as c:
            c.executemany(
                """
                INSERT INTO collaborators (node_id, user_id, permission, added_at, added_by)
                VALUES (?, ?, ?, ?, ?)
                """,
                [
                    (node_id, collab.user_id, collab.permission.value,
                     collab.added_at.isoformat(), collab.added_by)
                    for collab in collaborators
                ]
            )

    @staticmethod
    def insert_if_absent(
        node_id: str,
        collaborator: Collaborator,
        conn: Optional[sqlite3.Connection] = None
    ) -> bool:
        """
        Insert a grant unless the user already has one on this node.

        Returns:
            True if a row was inserted
        """
        with connection_scope(conn) as c:
            cursor = c.execute(
                """
                INSERT OR IGNORE INTO collaborators (node_id, user_id, permission, added_at, added_by)
                VALUES (?, ?, ?, ?, ?)
                """,
                (node_id, collaborator.user_id, collaborator.permission.value,
                 collaborator.added_at.isoformat(), collaborator.added_by)
            )
            inserted = cursor.rowcount == 1

        if inserted:
            logger.debug(f"Collaborator {collaborator.user_id} added [node_id={node_id}]")
        return inserted

    @staticmethod
    def update_permission(
        node_id: str,
        user_id: str,
        permission: Permission,
        conn: Optional[sqlite3.Connection] = None
    ) -> bool:
        """
        Overwrite the permission of an existing grant.

        Returns:
            True if the node had a grant for user_id
        """
        with connection_scope(conn) as c:
            cursor = c.execute(
                "UPDATE collaborators SET permission = ? WHERE node_id = ? AND user_id = ?",
                (permission.value, node_id, user_id)
            )
            return cursor.rowcount == 1

    @staticmethod
    def remove(node_id: str, user_id: str, conn: Optional[sqlite3.Connection] = None) -> bool:
        """
        Delete a grant if present.

        Returns:
            True if a grant was removed
        """
        with connection_scope(conn) as c:
            cursor = c.execute(
                "DELETE FROM collaborators WHERE node_id = ? AND user_id = ?",
                (node_id, user_id)
            )
            return cursor.rowcount == 1
