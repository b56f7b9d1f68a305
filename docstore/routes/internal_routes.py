"""Internal routes used by the identity service."""

from fastapi import APIRouter, Depends, status

from docstore.auth import require_internal_token
from docstore.schemas.users import ProvisionUserRequest, ProvisionUserResponse
from docstore.services.user_service import UserService

router = APIRouter(prefix="/internal", tags=["Internal"], dependencies=[Depends(require_internal_token)])


@router.post("/users", response_model=ProvisionUserResponse, status_code=status.HTTP_201_CREATED)
async def provision_user(request: ProvisionUserRequest):
    """
    Register a user profile and its storage quota.

    Parameters:
        - name, email: Profile fields (email must be unique)
        - user_id, api_key: Identifiers issued by the identity service; generated when omitted
        - storage_limit: Quota in bytes; server default when omitted
        - X-Internal-Token header (required)

    Raises:
        - 400: Blank name or email
        - 403: Missing or invalid internal token
        - 409: User id, email or API key already registered
    """
    user_service = UserService()
    user = user_service.provision_user(
        name=request.name,
        email=request.email,
        user_id=request.user_id,
        api_key=request.api_key,
        storage_limit=request.storage_limit,
    )

    return ProvisionUserResponse(
        user_id=user.user_id,
        name=user.name,
        email=user.email,
        api_key=user.api_key,
        storage_limit=user.storage_limit,
    )
