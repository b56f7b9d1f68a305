"""Document API routes."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from docstore.auth import get_current_user
from docstore.repositories.node_repository import Node
from docstore.repositories.user_repository import User
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
from docstore.services.document_service import DocumentService
from docstore.types import EffectivePermission

router = APIRouter(
    prefix="/documents",
    tags=["Documents"],
    responses={
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
)


def _to_response(node: Node, permission: Optional[EffectivePermission] = None) -> DocumentResponse:
    return DocumentResponse(**_response_fields(node, permission))


def _response_fields(node: Node, permission: Optional[EffectivePermission]) -> dict:
    return {
        "node_id": node.node_id,
        "title": node.title,
        "type": node.node_type.value,
        "owner_id": node.owner_id,
        "parent_id": node.parent_id,
        "content_size": node.content_size,
        "created_at": node.created_at.isoformat(),
        "last_modified": node.last_modified.isoformat(),
        "last_modified_by": node.last_modified_by,
        "collaborators": [
            CollaboratorEntry(
                user_id=collab.user_id,
                permission=collab.permission.value,
                added_at=collab.added_at.isoformat(),
                added_by=collab.added_by,
            )
            for collab in node.collaborators.values()
        ],
        "permission": permission.value if permission else None,
    }


@router.post(
    "",
    response_model=DocumentResponse,
    status_code=status.HTTP_201_CREATED,
    responses={413: {"model": QuotaErrorResponse}},
)
async def create_file(
    request: CreateFileRequest,
    current_user: User = Depends(get_current_user)
):
    """
    Create a file with initial content.

    Parameters:
        - title: Display name; its extension selects the stored object's extension
        - content: Initial text content (may be empty)
        - parent_folder_id: Folder to create the file in (root when omitted)
        - Authorization header: Bearer <api_key> (required)

    Raises:
        - 400: Blank title or parent is not a folder
        - 401: Invalid or missing API Key
        - 403: No write access to the parent folder
        - 404: Parent folder not found
        - 413: Storage quota exceeded
        - 500: Content store failure
    """
    document_service = DocumentService()
    node = await document_service.create_file(
        actor=current_user,
        title=request.title,
        content=request.content,
        parent_folder_id=request.parent_folder_id,
    )
    return _to_response(node, EffectivePermission.OWNER)


@router.post("/folders", response_model=DocumentResponse, status_code=status.HTTP_201_CREATED)
async def create_folder(
    request: CreateFolderRequest,
    current_user: User = Depends(get_current_user)
):
    """
    Create an empty folder.

    Raises:
        - 400: Blank title or parent is not a folder
        - 401: Invalid or missing API Key
        - 403: No write access to the parent folder
        - 404: Parent folder not found
    """
    document_service = DocumentService()
    node = await document_service.create_folder(
        actor=current_user,
        title=request.title,
        parent_folder_id=request.parent_folder_id,
    )
    return _to_response(node, EffectivePermission.OWNER)


@router.get("", response_model=ListDocumentsResponse)
async def list_documents(
    folder: Optional[str] = Query(None, description="Folder to list; root level when omitted"),
    current_user: User = Depends(get_current_user)
):
    """
    List the documents in a folder that the caller owns or collaborates on.
    Folders come first, then files, each sorted by title.
    """
    document_service = DocumentService()
    entries = document_service.list_documents(current_user, folder)
    return ListDocumentsResponse(documents=[_to_response(node, permission) for node, permission in entries])


@router.get("/{node_id}", response_model=DocumentDetailResponse)
async def get_document(
    node_id: str,
    current_user: User = Depends(get_current_user)
):
    """
    Fetch a document with the caller's permission and its content locator.

    Raises:
        - 401: Invalid or missing API Key
        - 403: Caller has no access
        - 404: Document not found
    """
    document_service = DocumentService()
    node, permission = document_service.get_document(current_user, node_id)
    return DocumentDetailResponse(**_response_fields(node, permission), content_url=node.content_ref)


@router.put("/{node_id}", response_model=DocumentResponse)
async def rename_document(
    node_id: str,
    request: RenameRequest,
    current_user: User = Depends(get_current_user)
):
    """
    Rename a file or folder. Requires owner or edit permission.
    """
    document_service = DocumentService()
    node = await document_service.rename(current_user, node_id, request.title)
    return _to_response(node)


@router.put(
    "/{node_id}/content",
    response_model=DocumentResponse,
    responses={413: {"model": QuotaErrorResponse}},
)
async def save_content(
    node_id: str,
    request: SaveContentRequest,
    current_user: User = Depends(get_current_user)
):
    """
    Replace a file's content. The size change is charged to the file's owner.

    Raises:
        - 400: Target is a folder
        - 403: Caller has no edit access
        - 404: Document not found
        - 413: Owner's storage quota exceeded
        - 500: Content store failure
    """
    document_service = DocumentService()
    node = await document_service.save_content(current_user, node_id, request.content)
    return _to_response(node)


@router.delete("/{node_id}", response_model=DeleteDocumentResponse)
async def delete_document(
    node_id: str,
    current_user: User = Depends(get_current_user)
):
    """
    Delete a document; folders are deleted with everything inside them.
    Owner only.
    """
    document_service = DocumentService()
    result = await document_service.delete_document(current_user, node_id)
    return DeleteDocumentResponse(
        node_id=result.node_id,
        deleted_count=len(result.deleted_node_ids),
        reclaimed_bytes=result.reclaimed_bytes,
    )


@router.get("/{node_id}/permission", response_model=PermissionResponse)
async def get_permission(
    node_id: str,
    current_user: User = Depends(get_current_user)
):
    document_service = DocumentService()
    permission = document_service.get_permission(current_user, node_id)
    return PermissionResponse(permission=permission.value)


@router.get("/{node_id}/ownership", response_model=OwnershipResponse)
async def check_ownership(
    node_id: str,
    current_user: User = Depends(get_current_user)
):
    document_service = DocumentService()
    return OwnershipResponse(is_owner=document_service.is_owner(current_user, node_id))
