"""Service layer for business logic."""

from docstore.services.notification_service import NotificationDispatcher, NotificationEmitter
from docstore.services.permission_service import PermissionResolver
from docstore.services.storage_ledger import Reservation, StorageLedger
from docstore.services.document_tree import DocumentTree
from docstore.services.collaboration_service import CascadeResult, CollaborationService
from docstore.services.document_service import DeletionResult, DocumentService
from docstore.services.user_service import UserService

__all__ = [
    "NotificationDispatcher",
    "NotificationEmitter",
    "PermissionResolver",
    "Reservation",
    "StorageLedger",
    "DocumentTree",
    "CascadeResult",
    "CollaborationService",
    "DeletionResult",
    "DocumentService",
    "UserService",
]
