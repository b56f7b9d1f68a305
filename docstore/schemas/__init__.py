"""Pydantic schemas for API requests and responses."""

from docstore.schemas.collaborators import (
    AddCollaboratorRequest,
    CascadeResponse,
    CollaboratorResponse,
    ListCollaboratorsResponse,
    UpdateCollaboratorRequest,
    UserSummary
)
from docstore.schemas.common import ErrorResponse, QuotaErrorResponse
from docstore.schemas.documents import (
    CollaboratorEntry,
    CreateFileRequest,
    CreateFolderRequest,
    DeleteDocumentResponse,
    DocumentDetailResponse,
    DocumentResponse,
    ListDocumentsResponse,
    OwnershipResponse,
    PermissionResponse,
    RenameRequest,
    SaveContentRequest
)
from docstore.schemas.users import (
    ProvisionUserRequest,
    ProvisionUserResponse,
    StorageUsage,
    UserProfileResponse
)

__all__ = [
    "AddCollaboratorRequest",
    "CascadeResponse",
    "CollaboratorResponse",
    "ListCollaboratorsResponse",
    "UpdateCollaboratorRequest",
    "UserSummary",
    "ErrorResponse",
    "QuotaErrorResponse",
    "CollaboratorEntry",
    "CreateFileRequest",
    "CreateFolderRequest",
    "DeleteDocumentResponse",
    "DocumentDetailResponse",
    "DocumentResponse",
    "ListDocumentsResponse",
    "OwnershipResponse",
    "PermissionResponse",
    "RenameRequest",
    "SaveContentRequest",
    "ProvisionUserRequest",
    "ProvisionUserResponse",
    "StorageUsage",
    "UserProfileResponse",
]
