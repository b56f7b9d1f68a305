"""Pydantic schemas for collaborator endpoints."""

from typing import List, Optional

from pydantic import BaseModel


class AddCollaboratorRequest(BaseModel):
    """Request model for sharing a document. Either email or user_id is required."""
    email: Optional[str] = None
    user_id: Optional[str] = None
    permission: Optional[str] = None


class UpdateCollaboratorRequest(BaseModel):
    permission: str


class UserSummary(BaseModel):
    user_id: str
    name: str
    email: str


class CollaboratorResponse(UserSummary):
    permission: str
    added_at: str
    added_by: Optional[str] = None


class ListCollaboratorsResponse(BaseModel):
    owner: Optional[UserSummary] = None
    collaborators: List[CollaboratorResponse]


class CascadeResponse(BaseModel):
    """Result of a collaborator change, listing every node whose grants changed."""
    node_id: str
    user_id: str
    permission: Optional[str] = None
    affected_node_ids: List[str]
