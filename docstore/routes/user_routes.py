"""User API routes."""

from fastapi import APIRouter, Depends

from docstore.auth import get_current_user
from docstore.repositories.user_repository import User
from docstore.schemas.users import StorageUsage, UserProfileResponse
from docstore.services.user_service import UserService

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("/me", response_model=UserProfileResponse)
async def get_me(current_user: User = Depends(get_current_user)):
    """
    Return the caller's profile and storage usage.
    """
    user_service = UserService()
    user, usage = user_service.get_profile(current_user.user_id)

    return UserProfileResponse(
        user_id=user.user_id,
        name=user.name,
        email=user.email,
        created_at=user.created_at.isoformat(),
        storage=StorageUsage(**usage),
    )
