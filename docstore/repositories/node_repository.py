"""Node repository for file and folder records."""

import sqlite3
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from common.logging_config import get_logger
from docstore.database import connection_scope
from docstore.repositories.collaborator_repository import Collaborator, CollaboratorRepository
from docstore.types import NodeType

logger = get_logger(__name__)

_NODE_COLUMNS = (
    "node_id, title, node_type, owner_id, parent_id, content_ref, content_key, "
    "content_size, created_at, last_modified, last_modified_by"
)


@dataclass
class Node:
    node_id: str
    title: str
    node_type: NodeType
    owner_id: str
    parent_id: Optional[str]
    created_at: datetime
    last_modified: datetime
    last_modified_by: Optional[str] = None
    content_ref: Optional[str] = None
    content_key: Optional[str] = None
    content_size: int = 0
    collaborators: Dict[str, Collaborator] = field(default_factory=dict)

    @property
    def is_folder(self) -> bool:
        return self.node_type is NodeType.FOLDER

    @property
    def is_file(self) -> bool:
        return self.node_type is NodeType.FILE

    def recipients(self) -> List[str]:
        """Owner plus every current collaborator."""
        return [self.owner_id] + [user_id for user_id in self.collaborators if user_id != self.owner_id]


def _row_to_node(row: sqlite3.Row, collaborators: Optional[Dict[str, Collaborator]] = None) -> Node:
    return Node(
        node_id=row["node_id"],
        title=row["title"],
        node_type=NodeType(row["node_type"]),
        owner_id=row["owner_id"],
        parent_id=row["parent_id"],
        content_ref=row["content_ref"],
        content_key=row["content_key"],
        content_size=row["content_size"],
        created_at=datetime.fromisoformat(row["created_at"]),
        last_modified=datetime.fromisoformat(row["last_modified"]),
        last_modified_by=row["last_modified_by"],
        collaborators=collaborators or {},
    )


class NodeRepository:
    @staticmethod
    def create_node(node: Node, conn: Optional[sqlite3.Connection] = None) -> Node:
        """
        Insert a node together with its initial collaborator list.
        """
        logger.debug(f"Creating {node.node_type.value} '{node.title}' [node_id={node.node_id}]")

        with connection_scope(conn) as c:
            c.execute(
                f"""
                INSERT INTO nodes ({_NODE_COLUMNS})
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    node.node_id,
                    node.title,
                    node.node_type.value,
                    node.owner_id,
                    node.parent_id,
                    node.content_ref,
                    node.content_key,
                    node.content_size,
                    node.created_at.isoformat(),
                    node.last_modified.isoformat(),
                    node.last_modified_by,
                )
            )
            CollaboratorRepository.insert_many(node.node_id, list(node.collaborators.values()), conn=c)

        return node

    @staticmethod
    def get_by_id(node_id: str, conn: Optional[sqlite3.Connection] = None) -> Optional[Node]:
        with connection_scope(conn) as c:
            row = c.execute(
                f"SELECT {_NODE_COLUMNS} FROM nodes WHERE node_id = ?",
                (node_id,)
            ).fetchone()
            if row is None:
                return None
            collaborators = CollaboratorRepository.get_for_node(node_id, conn=c)

        return _row_to_node(row, collaborators)

    @staticmethod
    def list_children(parent_ids: Sequence[str], conn: Optional[sqlite3.Connection] = None) -> List[Node]:
        """
        Return the direct children of every given folder, with collaborators loaded.
        """
        ids = list(parent_ids)
        if not ids:
            return []

        placeholders = ','.join('?' for _ in ids)
        with connection_scope(conn) as c:
            rows = c.execute(
                f"SELECT {_NODE_COLUMNS} FROM nodes WHERE parent_id IN ({placeholders})",
                ids
            ).fetchall()
            collaborators = CollaboratorRepository.get_for_nodes(
                [row["node_id"] for row in rows], conn=c
            )

        return [_row_to_node(row, collaborators[row["node_id"]]) for row in rows]

    @staticmethod
    def list_visible_children(parent_id: Optional[str], user_id: str) -> List[Node]:
        """
        Children of a folder (or root-level nodes when parent_id is None) that
        user_id owns or collaborates on. Folders first, then by title.
        """
        parent_clause = "n.parent_id IS NULL" if parent_id is None else "n.parent_id = ?"
        params: List[str] = [] if parent_id is None else [parent_id]

        with connection_scope() as c:
            rows = c.execute(
                f"""
                SELECT {', '.join('n.' + col.strip() for col in _NODE_COLUMNS.split(','))}
                FROM nodes n
                WHERE {parent_clause}
                AND (
                    n.owner_id = ?
                    OR EXISTS (
                        SELECT 1 FROM collaborators c
                        WHERE c.node_id = n.node_id AND c.user_id = ?
                    )
                )
                ORDER BY n.node_type DESC, n.title COLLATE NOCASE ASC
                """,
                params + [user_id, user_id]
            ).fetchall()
            collaborators = CollaboratorRepository.get_for_nodes(
                [row["node_id"] for row in rows], conn=c
            )

        return [_row_to_node(row, collaborators[row["node_id"]]) for row in rows]

    @staticmethod
    def update_title(
        node_id: str,
        title: str,
        modified_by: str,
        modified_at: datetime,
        conn: Optional[sqlite3.Connection] = None
    ) -> None:
        with connection_scope(conn) as c:
            c.execute(
                "UPDATE nodes SET title = ?, last_modified = ?, last_modified_by = ? WHERE node_id = ?",
                (title, modified_at.isoformat(), modified_by, node_id)
            )

    @staticmethod
    def update_content(
        node_id: str,
        content_ref: str,
        content_key: str,
        content_size: int,
        modified_by: str,
        modified_at: datetime,
        conn: Optional[sqlite3.Connection] = None
    ) -> None:
        with connection_scope(conn) as c:
            c.execute(
                """
                UPDATE nodes
                SET content_ref = ?, content_key = ?, content_size = ?,
                    last_modified = ?, last_modified_by = ?
                WHERE node_id = ?
                """,
                (content_ref, content_key, content_size, modified_at.isoformat(), modified_by, node_id)
            )

    @staticmethod
    def touch(
        node_id: str,
        modified_by: str,
        modified_at: datetime,
        conn: Optional[sqlite3.Connection] = None
    ) -> None:
        with connection_scope(conn) as c:
            c.execute(
                "UPDATE nodes SET last_modified = ?, last_modified_by = ? WHERE node_id = ?",
                (modified_at.isoformat(), modified_by, node_id)
            )

    @staticmethod
    def delete_node(node_id: str, conn: Optional[sqlite3.Connection] = None) -> bool:
        """
        Delete a single node record. Children are not touched.
        """
        with connection_scope(conn) as c:
            cursor = c.execute("DELETE FROM nodes WHERE node_id = ?", (node_id,))
            deleted = cursor.rowcount == 1

        logger.debug(f"Node record deleted={deleted} [node_id={node_id}]")
        return deleted
