"""Document tree: node hierarchy, validation and subtree traversal."""

import sqlite3
from datetime import datetime
from typing import Dict, Iterator, List, Optional

from common.logging_config import get_logger
from docstore.exceptions import NodeNotFoundError, ValidationError
from docstore.repositories.node_repository import Node, NodeRepository
from docstore.types import NodeType

logger = get_logger(__name__)

MAX_TITLE_LENGTH = 255


class DocumentTree:
    def __init__(self):
        self.node_repo = NodeRepository()

    @staticmethod
    def validate_title(title: Optional[str]) -> str:
        """
        Normalize a display title.

        Raises:
            ValidationError: If the title is missing, blank or too long
        """
        if title is None or not title.strip():
            raise ValidationError("Title must not be empty")
        title = title.strip()
        if len(title) > MAX_TITLE_LENGTH:
            raise ValidationError(f"Title must be at most {MAX_TITLE_LENGTH} characters")
        return title

    def get(self, node_id: str, conn: Optional[sqlite3.Connection] = None) -> Node:
        node = self.node_repo.get_by_id(node_id, conn=conn)
        if node is None:
            raise NodeNotFoundError(f"Document '{node_id}' not found")
        return node

    def get_folder(self, folder_id: str, conn: Optional[sqlite3.Connection] = None) -> Node:
        """
        Fetch a node that must be a folder.

        Raises:
            NodeNotFoundError: If the node does not exist
            ValidationError: If the node is a file
        """
        node = self.get(folder_id, conn=conn)
        if not node.is_folder:
            raise ValidationError(f"'{node.title}' is not a folder")
        return node

    def create(self, node: Node, conn: Optional[sqlite3.Connection] = None) -> Node:
        """
        Insert a node and its seeded collaborators.

        Raises:
            ValidationError: On a blank title, missing owner, unknown type or
                a parent that is not a folder
            NodeNotFoundError: If the parent does not exist
        """
        node.title = self.validate_title(node.title)
        if not node.owner_id:
            raise ValidationError("Owner is required")
        if not isinstance(node.node_type, NodeType):
            raise ValidationError("Type must be 'file' or 'folder'")
        if node.parent_id is not None:
            self.get_folder(node.parent_id, conn=conn)
        node.collaborators.pop(node.owner_id, None)

        self.node_repo.create_node(node, conn=conn)
        logger.info(f"Created {node.node_type.value} '{node.title}' [node_id={node.node_id}, owner_id={node.owner_id}]")
        return node

    def list_children(self, folder_id: str, conn: Optional[sqlite3.Connection] = None) -> List[Node]:
        return self.node_repo.list_children([folder_id], conn=conn)

    def list_visible_children(self, folder_id: Optional[str], user_id: str) -> List[Node]:
        return self.node_repo.list_visible_children(folder_id, user_id)

    def rename(
        self,
        node: Node,
        title: str,
        modified_by: str,
        conn: Optional[sqlite3.Connection] = None
    ) -> Node:
        node.title = self.validate_title(title)
        node.last_modified = datetime.utcnow()
        node.last_modified_by = modified_by
        self.node_repo.update_title(node.node_id, node.title, modified_by, node.last_modified, conn=conn)
        return node

    def update_content(
        self,
        node: Node,
        content_ref: str,
        content_key: str,
        content_size: int,
        modified_by: str,
        conn: Optional[sqlite3.Connection] = None
    ) -> Node:
        node.content_ref = content_ref
        node.content_key = content_key
        node.content_size = content_size
        node.last_modified = datetime.utcnow()
        node.last_modified_by = modified_by
        self.node_repo.update_content(
            node.node_id, content_ref, content_key, content_size,
            modified_by, node.last_modified, conn=conn
        )
        return node

    def walk(self, folder_id: str, conn: Optional[sqlite3.Connection] = None) -> Iterator[Node]:
        """
        Yield every file transitively under folder_id.

        The walk keeps a worklist of folders and fetches one tree level per
        query. A folder already visited is skipped with a warning, so a
        corrupted parent chain cannot loop forever.
        """
        visited = {folder_id}
        frontier = [folder_id]

        while frontier:
            next_frontier: List[str] = []
            for child in self.node_repo.list_children(frontier, conn=conn):
                if child.is_file:
                    yield child
                elif child.node_id in visited:
                    logger.warning(f"Cycle detected under folder {folder_id}, skipping [node_id={child.node_id}]")
                else:
                    visited.add(child.node_id)
                    next_frontier.append(child.node_id)
            frontier = next_frontier

    def find_descendant_files(self, folder_id: str, conn: Optional[sqlite3.Connection] = None) -> List[Node]:
        return list(self.walk(folder_id, conn=conn))

    def subtree_post_order(self, root: Node, conn: Optional[sqlite3.Connection] = None) -> List[Node]:
        """
        Every node of root's subtree in deletion order: within each folder
        its files first, then its subfolders depth-first, the folder last.
        """
        if root.is_file:
            return [root]

        children_by_parent: Dict[str, List[Node]] = {}
        visited = {root.node_id}
        frontier = [root.node_id]
        while frontier:
            next_frontier: List[str] = []
            for child in self.node_repo.list_children(frontier, conn=conn):
                if child.is_folder:
                    if child.node_id in visited:
                        logger.warning(f"Cycle detected under folder {root.node_id}, skipping [node_id={child.node_id}]")
                        continue
                    visited.add(child.node_id)
                    next_frontier.append(child.node_id)
                children_by_parent.setdefault(child.parent_id, []).append(child)
            frontier = next_frontier

        order: List[Node] = []
        stack = [(root, False)]
        while stack:
            node, expanded = stack.pop()
            if expanded:
                order.append(node)
                continue

            stack.append((node, True))
            children = sorted(children_by_parent.get(node.node_id, []), key=lambda n: n.title.lower())
            for folder in reversed([c for c in children if c.is_folder]):
                stack.append((folder, False))
            for file_node in reversed([c for c in children if c.is_file]):
                stack.append((file_node, True))

        return order

    def delete(self, node_id: str, conn: Optional[sqlite3.Connection] = None) -> bool:
        """
        Delete one node record and its collaborator rows. Children are not touched.
        """
        return self.node_repo.delete_node(node_id, conn=conn)
