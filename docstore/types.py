"""Document store type definitions."""

from enum import Enum


class NodeType(str, Enum):
    FILE = "file"
    FOLDER = "folder"


class Permission(str, Enum):
    """Grant stored on a collaborator entry."""
    VIEW = "view"
    EDIT = "edit"


class EffectivePermission(str, Enum):
    """
    Access level resolved for a user on a node.
    """
    OWNER = "owner"
    EDIT = "edit"
    VIEW = "view"
    NONE = "none"

    @property
    def can_read(self) -> bool:
        return self is not EffectivePermission.NONE

    @property
    def can_write(self) -> bool:
        return self in (EffectivePermission.OWNER, EffectivePermission.EDIT)

    @property
    def is_owner(self) -> bool:
        return self is EffectivePermission.OWNER


class EventType(str, Enum):
    DOCUMENT_CREATED = "document-created"
    DOCUMENT_RENAMED = "document-renamed"
    DOCUMENT_CONTENT_UPDATED = "document-content-updated"
    DOCUMENT_DELETED = "document-deleted"
    COLLABORATOR_ADDED = "collaborator-added"
    COLLABORATOR_PERMISSION_UPDATED = "collaborator-permission-updated"
    COLLABORATOR_REMOVED = "collaborator-removed"


class EventStatus(str, Enum):
    PENDING = "pending"
    DELIVERED = "delivered"
    FAILED = "failed"
