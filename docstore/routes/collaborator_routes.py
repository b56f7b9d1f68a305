"""Collaborator API routes."""

from fastapi import APIRouter, Depends, Response, status

from docstore.auth import get_current_user
from docstore.repositories.user_repository import User
from docstore.schemas.collaborators import (
    AddCollaboratorRequest,
    CascadeResponse,
    CollaboratorResponse,
    ListCollaboratorsResponse,
    UpdateCollaboratorRequest,
    UserSummary
)
from docstore.schemas.common import ErrorResponse
from docstore.services.collaboration_service import CascadeResult, CollaborationService

router = APIRouter(
    prefix="/collaborators",
    tags=["Collaborators"],
    responses={
        401: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
)


def _to_cascade_response(result: CascadeResult) -> CascadeResponse:
    return CascadeResponse(
        node_id=result.target_id,
        user_id=result.user_id,
        permission=result.permission.value if result.permission else None,
        affected_node_ids=result.affected_node_ids,
    )


@router.get("/{node_id}", response_model=ListCollaboratorsResponse)
async def list_collaborators(
    node_id: str,
    current_user: User = Depends(get_current_user)
):
    """
    List the owner and collaborators of a document. Any access level may read.
    """
    collaboration_service = CollaborationService()
    owner, profiles = collaboration_service.list_collaborators(node_id, current_user.user_id)

    return ListCollaboratorsResponse(
        owner=UserSummary(user_id=owner.user_id, name=owner.name, email=owner.email) if owner else None,
        collaborators=[
            CollaboratorResponse(
                user_id=profile.user_id,
                name=profile.name,
                email=profile.email,
                permission=profile.permission.value,
                added_at=profile.added_at.isoformat(),
                added_by=profile.added_by,
            )
            for profile in profiles
        ],
    )


@router.post(
    "/{node_id}",
    response_model=CascadeResponse,
    responses={204: {"description": "User already had access everywhere"}},
)
async def add_collaborator(
    node_id: str,
    request: AddCollaboratorRequest,
    current_user: User = Depends(get_current_user)
):
    """
    Share a document with a user, identified by email or user_id.

    For folders the grant is copied to every file below it. Returns 204
    when nothing changed because the user already had access.

    Raises:
        - 400: Sharing with yourself, invalid permission, or no user given
        - 403: Caller is not the owner
        - 404: Document or user not found
    """
    collaboration_service = CollaborationService()
    result = await collaboration_service.add_collaborator(
        node_id=node_id,
        actor_id=current_user.user_id,
        email=request.email,
        user_id=request.user_id,
        permission=request.permission,
    )
    if not result.changed:
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    return _to_cascade_response(result)


@router.put("/{node_id}/{user_id}", response_model=CascadeResponse)
async def update_collaborator(
    node_id: str,
    user_id: str,
    request: UpdateCollaboratorRequest,
    current_user: User = Depends(get_current_user)
):
    """
    Change a collaborator's permission on a document and, for folders, on
    every file below it that belongs to the folder's owner.
    """
    collaboration_service = CollaborationService()
    result = await collaboration_service.update_collaborator(
        node_id=node_id,
        actor_id=current_user.user_id,
        user_id=user_id,
        permission=request.permission,
    )
    return _to_cascade_response(result)


@router.delete("/{node_id}/{user_id}", response_model=CascadeResponse)
async def remove_collaborator(
    node_id: str,
    user_id: str,
    current_user: User = Depends(get_current_user)
):
    """
    Revoke a collaborator's access. Removing a user who has no grant is not an error.
    """
    collaboration_service = CollaborationService()
    result = await collaboration_service.remove_collaborator(node_id, current_user.user_id, user_id)
    return _to_cascade_response(result)
