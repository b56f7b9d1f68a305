"""Collaboration service: collaborator grants and their folder cascades."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Tuple, Union

from common.logging_config import get_logger
from docstore import service_locator
from docstore.database import connection_scope
from docstore.exceptions import UserNotFoundError, ValidationError
from docstore.repositories.collaborator_repository import Collaborator, CollaboratorRepository
from docstore.repositories.node_repository import Node, NodeRepository
from docstore.repositories.user_repository import User, UserRepository
from docstore.services.document_tree import DocumentTree
from docstore.services.notification_service import NotificationEmitter
from docstore.services.permission_service import PermissionResolver
from docstore.types import EventType, Permission

logger = get_logger(__name__)


@dataclass
class CascadeResult:
    """
    Outcome of a collaborator mutation on a node and its descendants.

    affected_node_ids lists the nodes whose stored grants actually changed.
    """
    target_id: str
    user_id: str
    user: Optional[User] = None
    permission: Optional[Permission] = None
    affected_node_ids: List[str] = field(default_factory=list)
    notified_node_ids: List[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.affected_node_ids)


@dataclass
class CollaboratorProfile:
    user_id: str
    name: str
    email: str
    permission: Permission
    added_at: datetime
    added_by: Optional[str]


def parse_permission(value: Union[str, Permission, None], default: Optional[Permission] = None) -> Permission:
    """
    Raises:
        ValidationError: If value is missing without a default, or not view/edit
    """
    if value is None:
        if default is None:
            raise ValidationError("Permission is required")
        return default
    try:
        return Permission(value)
    except ValueError:
        raise ValidationError(f"Invalid permission '{value}', expected 'view' or 'edit'")


def _user_payload(user: User) -> Dict[str, str]:
    return {"user_id": user.user_id, "name": user.name, "email": user.email}


class CollaborationService:
    def __init__(self, emitter: Optional[NotificationEmitter] = None):
        self.tree = DocumentTree()
        self.resolver = PermissionResolver()
        self.node_repo = NodeRepository()
        self.collab_repo = CollaboratorRepository()
        self.user_repo = UserRepository()
        self.emitter = emitter or service_locator.get_notification_emitter()

    @staticmethod
    def inherit_collaborators(parent: Node, creator_id: str, now: datetime) -> Dict[str, Collaborator]:
        """
        Initial grants for a file created by creator_id inside parent.

        The folder's collaborators are copied, minus the creator. When the
        creator is not the folder owner, the folder owner gets edit access.
        """
        inherited = {
            user_id: Collaborator(
                user_id=user_id,
                permission=collab.permission,
                added_at=now,
                added_by=collab.added_by,
            )
            for user_id, collab in parent.collaborators.items()
            if user_id != creator_id
        }

        if parent.owner_id != creator_id:
            inherited[parent.owner_id] = Collaborator(
                user_id=parent.owner_id,
                permission=Permission.EDIT,
                added_at=now,
                added_by=creator_id,
            )

        return inherited

    def list_collaborators(self, node_id: str, actor_id: str) -> Tuple[Optional[User], List[CollaboratorProfile]]:
        node = self.tree.get(node_id)
        self.resolver.require_read(node, actor_id)

        users = self.user_repo.get_many([node.owner_id] + list(node.collaborators))
        profiles = []
        for user_id, collab in node.collaborators.items():
            user = users.get(user_id)
            if user is None:
                logger.warning(f"Collaborator {user_id} has no user record [node_id={node_id}]")
                continue
            profiles.append(CollaboratorProfile(
                user_id=user_id,
                name=user.name,
                email=user.email,
                permission=collab.permission,
                added_at=collab.added_at,
                added_by=collab.added_by,
            ))

        return users.get(node.owner_id), profiles

    def _find_user(self, email: Optional[str], user_id: Optional[str]) -> User:
        if email:
            user = self.user_repo.get_by_email(email)
        elif user_id:
            user = self.user_repo.get_by_user_id(user_id)
        else:
            raise ValidationError("Either email or user_id is required")

        if user is None:
            raise UserNotFoundError(f"User '{email or user_id}' not found")
        return user

    async def add_collaborator(
        self,
        node_id: str,
        actor_id: str,
        email: Optional[str] = None,
        user_id: Optional[str] = None,
        permission: Union[str, Permission, None] = None,
    ) -> CascadeResult:
        """
        Grant a user access to a node and, for folders, to every descendant
        file not owned by that user. Existing grants are left untouched.
        """
        grant = parse_permission(permission, default=Permission.VIEW)
        node = self.tree.get(node_id)
        self.resolver.require_owner(node, actor_id)

        target = self._find_user(email, user_id)
        if target.user_id == node.owner_id:
            raise ValidationError("Cannot add yourself as a collaborator")

        result = CascadeResult(target_id=node.node_id, user_id=target.user_id, user=target, permission=grant)
        now = datetime.utcnow()
        event_ids = []

        with connection_scope() as conn:
            candidates = [node]
            if node.is_folder:
                candidates.extend(f for f in self.tree.walk(node.node_id, conn=conn) if f.owner_id != target.user_id)

            for candidate in candidates:
                collab = Collaborator(user_id=target.user_id, permission=grant, added_at=now, added_by=actor_id)
                if not self.collab_repo.insert_if_absent(candidate.node_id, collab, conn=conn):
                    continue

                candidate.collaborators[target.user_id] = collab
                result.affected_node_ids.append(candidate.node_id)
                event_ids.append(self.emitter.enqueue(
                    candidate,
                    EventType.COLLABORATOR_ADDED,
                    {**_user_payload(target), "permission": grant.value,
                     "added_at": now.isoformat(), "added_by": actor_id},
                    conn,
                ))

        result.notified_node_ids = list(result.affected_node_ids)
        logger.info(
            f"Added collaborator {target.user_id} ({grant.value}) to {len(result.affected_node_ids)} node(s) "
            f"[node_id={node_id}]"
        )
        await self.emitter.dispatch(event_ids)
        return result

    async def update_collaborator(
        self,
        node_id: str,
        actor_id: str,
        user_id: str,
        permission: Union[str, Permission, None],
    ) -> CascadeResult:
        """
        Change an existing grant on a node and on every descendant file that
        shares the folder's owner and already has a grant for user_id.

        Descendants are only touched when the folder itself holds a grant
        for user_id; grants made directly on a file stay as they are.
        """
        grant = parse_permission(permission)
        node = self.tree.get(node_id)
        self.resolver.require_owner(node, actor_id)

        user = self.user_repo.get_by_user_id(user_id)
        if user is None:
            raise UserNotFoundError(f"User '{user_id}' not found")

        result = CascadeResult(target_id=node.node_id, user_id=user_id, user=user, permission=grant)
        now = datetime.utcnow()
        event_ids = []

        with connection_scope() as conn:
            candidates = [node]
            if node.is_folder and user_id in node.collaborators:
                candidates.extend(f for f in self.tree.walk(node.node_id, conn=conn) if f.owner_id == node.owner_id)

            for candidate in candidates:
                if not self.collab_repo.update_permission(candidate.node_id, user_id, grant, conn=conn):
                    continue

                self.node_repo.touch(candidate.node_id, actor_id, now, conn=conn)
                candidate.collaborators[user_id].permission = grant
                result.affected_node_ids.append(candidate.node_id)
                event_ids.append(self.emitter.enqueue(
                    candidate,
                    EventType.COLLABORATOR_PERMISSION_UPDATED,
                    {"user_id": user_id, "permission": grant.value, "updated_by": actor_id},
                    conn,
                ))

        result.notified_node_ids = list(result.affected_node_ids)
        logger.info(
            f"Updated collaborator {user_id} to {grant.value} on {len(result.affected_node_ids)} node(s) "
            f"[node_id={node_id}]"
        )
        await self.emitter.dispatch(event_ids)
        return result

    async def remove_collaborator(self, node_id: str, actor_id: str, user_id: str) -> CascadeResult:
        """
        Revoke a grant on a node and on every descendant file that shares
        the folder's owner. Idempotent.

        The target node is always notified; a descendant is notified only
        when it actually lost the grant. Recipients are taken before the
        removal so the revoked user hears about it too.
        """
        node = self.tree.get(node_id)
        self.resolver.require_owner(node, actor_id)

        result = CascadeResult(
            target_id=node.node_id,
            user_id=user_id,
            user=self.user_repo.get_by_user_id(user_id),
        )
        payload = {"user_id": user_id, "removed_by": actor_id}
        event_ids = []

        with connection_scope() as conn:
            if self.collab_repo.remove(node.node_id, user_id, conn=conn):
                result.affected_node_ids.append(node.node_id)
            event_ids.append(self.emitter.enqueue(node, EventType.COLLABORATOR_REMOVED, payload, conn))
            result.notified_node_ids.append(node.node_id)

            if node.is_folder:
                for descendant in self.tree.walk(node.node_id, conn=conn):
                    if descendant.owner_id != node.owner_id:
                        continue
                    if not self.collab_repo.remove(descendant.node_id, user_id, conn=conn):
                        continue
                    result.affected_node_ids.append(descendant.node_id)
                    event_ids.append(self.emitter.enqueue(descendant, EventType.COLLABORATOR_REMOVED, payload, conn))
                    result.notified_node_ids.append(descendant.node_id)

        logger.info(
            f"Removed collaborator {user_id} from {len(result.affected_node_ids)} node(s) [node_id={node_id}]"
        )
        await self.emitter.dispatch(event_ids)
        return result
