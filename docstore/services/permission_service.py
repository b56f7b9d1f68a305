"""Permission resolver for nodes."""

from common.logging_config import get_logger
from docstore.exceptions import AccessDeniedError
from docstore.repositories.node_repository import Node
from docstore.types import EffectivePermission

logger = get_logger(__name__)


class PermissionResolver:
    """
    Resolves what a user may do on a node.

    Ownership wins over any collaborator entry; otherwise the user's
    collaborator grant on that node decides. There is no implicit
    inheritance at read time: folder grants reach files only through the
    cascades performed by the collaboration service.
    """

    def resolve(self, node: Node, user_id: str) -> EffectivePermission:
        if node.owner_id == user_id:
            return EffectivePermission.OWNER

        collaborator = node.collaborators.get(user_id)
        if collaborator is None:
            return EffectivePermission.NONE
        return EffectivePermission(collaborator.permission.value)

    def require_read(self, node: Node, user_id: str) -> EffectivePermission:
        permission = self.resolve(node, user_id)
        if not permission.can_read:
            self._deny(node, user_id, "read")
        return permission

    def require_write(self, node: Node, user_id: str) -> EffectivePermission:
        permission = self.resolve(node, user_id)
        if not permission.can_write:
            self._deny(node, user_id, "modify")
        return permission

    def require_owner(self, node: Node, user_id: str) -> EffectivePermission:
        permission = self.resolve(node, user_id)
        if not permission.is_owner:
            self._deny(node, user_id, "manage")
        return permission

    def _deny(self, node: Node, user_id: str, action: str) -> None:
        logger.warning(f"Access denied: user {user_id} cannot {action} {node.node_type.value} [node_id={node.node_id}]")
        raise AccessDeniedError(f"You do not have permission to {action} this {node.node_type.value}")
