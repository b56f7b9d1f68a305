"""Pydantic schemas for document endpoints."""

from typing import List, Optional

from pydantic import BaseModel


class CreateFileRequest(BaseModel):
    """Request model for file creation."""
    title: str
    content: str = ""
    parent_folder_id: Optional[str] = None


class CreateFolderRequest(BaseModel):
    """Request model for folder creation."""
    title: str
    parent_folder_id: Optional[str] = None


class RenameRequest(BaseModel):
    title: str


class SaveContentRequest(BaseModel):
    content: str


class CollaboratorEntry(BaseModel):
    user_id: str
    permission: str
    added_at: str
    added_by: Optional[str] = None


class DocumentResponse(BaseModel):
    """Response model for a file or folder."""
    node_id: str
    title: str
    type: str
    owner_id: str
    parent_id: Optional[str] = None
    content_size: int
    created_at: str
    last_modified: str
    last_modified_by: Optional[str] = None
    collaborators: List[CollaboratorEntry]
    permission: Optional[str] = None


class DocumentDetailResponse(DocumentResponse):
    """Document with the locator of its current content."""
    content_url: Optional[str] = None


class ListDocumentsResponse(BaseModel):
    documents: List[DocumentResponse]


class DeleteDocumentResponse(BaseModel):
    node_id: str
    deleted_count: int
    reclaimed_bytes: int


class PermissionResponse(BaseModel):
    permission: str


class OwnershipResponse(BaseModel):
    is_owner: bool
