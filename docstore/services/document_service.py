"""Document service for business logic."""

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from common.logging_config import get_logger
from docstore import service_locator
from docstore.content_store_client import ContentStoreClient
from docstore.database import connection_scope
from docstore.exceptions import ContentStoreError, ValidationError
from docstore.repositories.node_repository import Node, NodeRepository
from docstore.repositories.user_repository import User
from docstore.services.collaboration_service import CollaborationService
from docstore.services.document_tree import DocumentTree
from docstore.services.notification_service import NotificationEmitter
from docstore.services.permission_service import PermissionResolver
from docstore.services.storage_ledger import StorageLedger
from docstore.types import EffectivePermission, EventType, NodeType
from docstore.utils import content_key_for, generate_uuid

logger = get_logger(__name__)


@dataclass
class DeletionResult:
    node_id: str
    deleted_node_ids: List[str] = field(default_factory=list)
    reclaimed_bytes: int = 0
    content_failures: List[str] = field(default_factory=list)


def _node_payload(node: Node) -> Dict[str, Any]:
    return {
        "node_id": node.node_id,
        "title": node.title,
        "type": node.node_type.value,
        "owner_id": node.owner_id,
        "parent_id": node.parent_id,
    }


def _actor_payload(user: User) -> Dict[str, str]:
    return {"user_id": user.user_id, "name": user.name, "email": user.email}


class DocumentService:
    def __init__(
        self,
        content_store: Optional[ContentStoreClient] = None,
        emitter: Optional[NotificationEmitter] = None,
    ):
        self.tree = DocumentTree()
        self.resolver = PermissionResolver()
        self.ledger = StorageLedger()
        self.node_repo = NodeRepository()
        self.content_store = content_store or service_locator.get_content_store()
        self.emitter = emitter or service_locator.get_notification_emitter()

    def _writable_parent(self, parent_folder_id: Optional[str], actor: User) -> Optional[Node]:
        if not parent_folder_id:
            return None
        parent = self.tree.get_folder(parent_folder_id)
        self.resolver.require_write(parent, actor.user_id)
        return parent

    async def create_file(
        self,
        actor: User,
        title: str,
        content: Optional[str] = None,
        parent_folder_id: Optional[str] = None,
    ) -> Node:
        """
        Create a file owned by actor, store its content and charge its size.

        The quota is reserved before the content is written. If the write or
        the record insert fails, the reservation is released and no node is
        left behind.

        Raises:
            ValidationError: On a blank title or a parent that is not a folder
            NodeNotFoundError: If the parent folder does not exist
            AccessDeniedError: If actor cannot write into the parent folder
            QuotaExceededError: If the content does not fit in actor's quota
            ContentStoreError: If the content could not be stored
        """
        title = self.tree.validate_title(title)
        parent = self._writable_parent(parent_folder_id, actor)

        data = (content or "").encode("utf-8")
        node_id = generate_uuid()
        content_key = content_key_for(node_id, title)
        now = datetime.utcnow()

        reservation = self.ledger.check_and_reserve(actor.user_id, len(data))

        try:
            content_ref = await self.content_store.put(content_key, data)
        except ContentStoreError:
            logger.error(f"Content upload failed, aborting create of '{title}' [node_id={node_id}]")
            self.ledger.release(reservation)
            raise

        node = Node(
            node_id=node_id,
            title=title,
            node_type=NodeType.FILE,
            owner_id=actor.user_id,
            parent_id=parent.node_id if parent else None,
            created_at=now,
            last_modified=now,
            last_modified_by=actor.user_id,
            content_ref=content_ref,
            content_key=content_key,
            content_size=len(data),
            collaborators=CollaborationService.inherit_collaborators(parent, actor.user_id, now) if parent else {},
        )

        event_ids = []
        try:
            with connection_scope() as conn:
                self.tree.create(node, conn=conn)
                if parent is not None:
                    event_ids.append(self.emitter.enqueue(
                        parent,
                        EventType.DOCUMENT_CREATED,
                        {"document": _node_payload(node), "created_by": _actor_payload(actor)},
                        conn,
                    ))
        except Exception:
            logger.error(f"Failed to record file '{title}', rolling back upload [node_id={node_id}]", exc_info=True)
            self.ledger.release(reservation)
            await self._discard_content(content_key)
            raise

        self.ledger.commit(reservation)
        await self.emitter.dispatch(event_ids)
        return node

    async def create_folder(self, actor: User, title: str, parent_folder_id: Optional[str] = None) -> Node:
        """
        Create an empty folder. Folders start without collaborators.
        """
        title = self.tree.validate_title(title)
        parent = self._writable_parent(parent_folder_id, actor)
        now = datetime.utcnow()

        node = Node(
            node_id=generate_uuid(),
            title=title,
            node_type=NodeType.FOLDER,
            owner_id=actor.user_id,
            parent_id=parent.node_id if parent else None,
            created_at=now,
            last_modified=now,
            last_modified_by=actor.user_id,
        )

        event_ids = []
        with connection_scope() as conn:
            self.tree.create(node, conn=conn)
            if parent is not None:
                event_ids.append(self.emitter.enqueue(
                    parent,
                    EventType.DOCUMENT_CREATED,
                    {"document": _node_payload(node), "created_by": _actor_payload(actor)},
                    conn,
                ))

        await self.emitter.dispatch(event_ids)
        return node

    def list_documents(self, actor: User, folder_id: Optional[str] = None) -> List[Tuple[Node, EffectivePermission]]:
        """
        Children of folder_id (root when None) that actor owns or collaborates on.
        """
        if folder_id:
            self.tree.get_folder(folder_id)
        nodes = self.tree.list_visible_children(folder_id, actor.user_id)
        return [(node, self.resolver.resolve(node, actor.user_id)) for node in nodes]

    def get_document(self, actor: User, node_id: str) -> Tuple[Node, EffectivePermission]:
        node = self.tree.get(node_id)
        permission = self.resolver.require_read(node, actor.user_id)
        return node, permission

    def get_permission(self, actor: User, node_id: str) -> EffectivePermission:
        node = self.tree.get(node_id)
        return self.resolver.require_read(node, actor.user_id)

    def is_owner(self, actor: User, node_id: str) -> bool:
        node = self.tree.get(node_id)
        return self.resolver.resolve(node, actor.user_id).is_owner

    async def rename(self, actor: User, node_id: str, title: str) -> Node:
        node = self.tree.get(node_id)
        self.resolver.require_write(node, actor.user_id)
        old_title = node.title

        with connection_scope() as conn:
            self.tree.rename(node, title, actor.user_id, conn=conn)
            event_id = self.emitter.enqueue(
                node,
                EventType.DOCUMENT_RENAMED,
                {"old_title": old_title, "new_title": node.title, "renamed_by": _actor_payload(actor)},
                conn,
            )

        logger.info(f"Renamed {node.node_type.value} '{old_title}' to '{node.title}' [node_id={node_id}]")
        await self.emitter.dispatch([event_id])
        return node

    async def save_content(self, actor: User, node_id: str, content: str) -> Node:
        """
        Replace a file's content. The size difference is charged to the
        file's owner, whoever performs the save.

        New bytes go to a fresh key. The previous object is discarded only
        once the record points at the new one, and the new object is
        discarded if the record cannot be updated.
        """
        node = self.tree.get(node_id)
        self.resolver.require_write(node, actor.user_id)
        if not node.is_file:
            raise ValidationError("Folders have no content")

        data = content.encode("utf-8")
        delta = len(data) - node.content_size
        content_key = content_key_for(node.node_id, node.title, revision=generate_uuid().split("-")[0])
        old_key = node.content_key

        reservation = self.ledger.check_and_reserve(node.owner_id, delta)

        try:
            content_ref = await self.content_store.put(content_key, data)
        except ContentStoreError:
            logger.error(f"Content upload failed, keeping previous version [node_id={node_id}]")
            self.ledger.release(reservation)
            raise

        try:
            with connection_scope() as conn:
                self.tree.update_content(node, content_ref, content_key, len(data), actor.user_id, conn=conn)
                event_id = self.emitter.enqueue(
                    node,
                    EventType.DOCUMENT_CONTENT_UPDATED,
                    {"size": len(data), "modified_by": _actor_payload(actor)},
                    conn,
                )
        except Exception:
            logger.error(f"Failed to record new content, keeping previous version [node_id={node_id}]", exc_info=True)
            self.ledger.release(reservation)
            await self._discard_content(content_key)
            raise

        self.ledger.commit(reservation)
        if delta:
            logger.info(f"Storage delta {delta:+d} bytes [owner_id={node.owner_id}]")
        if old_key and old_key != content_key:
            await self._discard_content(old_key)

        await self.emitter.dispatch([event_id])
        return node

    async def delete_document(self, actor: User, node_id: str) -> DeletionResult:
        """
        Delete a node and, for folders, its whole subtree.

        Records are removed one at a time: within each folder its files
        first, then its subfolders depth-first, the folder last. Content
        objects that fail to delete are logged and skipped. Bytes are
        reclaimed once per file owner for every record actually removed,
        also when the deletion stops partway through.
        """
        node = self.tree.get(node_id)
        self.resolver.require_owner(node, actor.user_id)

        result = DeletionResult(node_id=node.node_id)
        reclaimed: Dict[str, int] = defaultdict(int)

        try:
            for item in self.tree.subtree_post_order(node):
                if item.is_file and item.content_key:
                    try:
                        await self.content_store.delete(item.content_key)
                    except ContentStoreError as e:
                        logger.error(f"Could not delete content {item.content_key}, continuing: {e}")
                        result.content_failures.append(item.node_id)

                if self.tree.delete(item.node_id):
                    result.deleted_node_ids.append(item.node_id)
                    if item.is_file:
                        reclaimed[item.owner_id] += item.content_size
        finally:
            for owner_id, amount in reclaimed.items():
                if self.ledger.reclaim(owner_id, amount):
                    result.reclaimed_bytes += amount

        payload = {
            "title": node.title,
            "type": node.node_type.value,
            "deleted_by": _actor_payload(actor),
        }
        event_ids = []
        with connection_scope() as conn:
            event_ids.append(self.emitter.enqueue(node, EventType.DOCUMENT_DELETED, payload, conn))
            if node.parent_id:
                parent = self.node_repo.get_by_id(node.parent_id, conn=conn)
                if parent is not None:
                    event_ids.append(self.emitter.enqueue(
                        parent,
                        EventType.DOCUMENT_DELETED,
                        {**payload, "deleted_id": node.node_id},
                        conn,
                    ))

        logger.info(
            f"Deleted {len(result.deleted_node_ids)} node(s), reclaimed {result.reclaimed_bytes} bytes "
            f"[node_id={node_id}]"
        )
        await self.emitter.dispatch(event_ids)
        return result

    async def _discard_content(self, content_key: str) -> None:
        try:
            await self.content_store.delete(content_key)
        except ContentStoreError as e:
            logger.warning(f"Orphaned content object left at {content_key}: {e}")
