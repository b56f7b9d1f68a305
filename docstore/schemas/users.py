"""Pydantic schemas for user endpoints."""

from typing import Optional

from pydantic import BaseModel


class ProvisionUserRequest(BaseModel):
    """Request model used by the identity service to register a user."""
    name: str
    email: str
    user_id: Optional[str] = None
    api_key: Optional[str] = None
    storage_limit: Optional[int] = None


class ProvisionUserResponse(BaseModel):
    user_id: str
    name: str
    email: str
    api_key: str
    storage_limit: int


class StorageUsage(BaseModel):
    used: int
    limit: int
    available: int


class UserProfileResponse(BaseModel):
    user_id: str
    name: str
    email: str
    created_at: str
    storage: StorageUsage
