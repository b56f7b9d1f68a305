"""Authentication and security utilities."""

import hmac
import uuid
from typing import Optional

from fastapi import Header

from common.constants import API_KEY_PREFIX, INTERNAL_TOKEN_HEADER
from common.logging_config import get_logger
from docstore.config import INTERNAL_TOKEN
from docstore.exceptions import AccessDeniedError, InvalidAPIKeyError
from docstore.repositories.user_repository import User, UserRepository

logger = get_logger(__name__)


def generate_api_key() -> str:
    """
    Generate a new API Key with the configured prefix.

    Returns:
        API Key string in format: {prefix}{uuid4}
    """
    return f"{API_KEY_PREFIX}{uuid.uuid4()}"


async def get_current_user(authorization: Optional[str] = Header(None)) -> User:
    """
    FastAPI dependency to resolve the caller from an API Key.

    Args:
        authorization: Authorization header value (format: "Bearer <api_key>")

    Returns:
        The authenticated user

    Raises:
        InvalidAPIKeyError: If the header is missing or malformed, or the key is unknown
    """
    if not authorization or not authorization.startswith("Bearer "):
        raise InvalidAPIKeyError("Missing or malformed Authorization header")

    api_key = authorization[len("Bearer "):].strip()
    if not api_key:
        raise InvalidAPIKeyError("Missing or malformed Authorization header")

    user = UserRepository.get_by_api_key(api_key)
    if user is None:
        logger.warning("API key validation failed: invalid key")
        raise InvalidAPIKeyError("Invalid API key")

    logger.debug(f"API key validated for user_id={user.user_id}")
    return user


async def require_internal_token(
    x_internal_token: Optional[str] = Header(None, alias=INTERNAL_TOKEN_HEADER)
) -> None:
    """
    FastAPI dependency guarding the provisioning routes used by the identity service.

    Raises:
        AccessDeniedError: If no internal token is configured or the header does not match
    """
    if not INTERNAL_TOKEN:
        logger.warning("Internal route called but DOCSTORE_INTERNAL_TOKEN is not set")
        raise AccessDeniedError("Internal routes are disabled")

    if not x_internal_token or not hmac.compare_digest(x_internal_token, INTERNAL_TOKEN):
        logger.warning("Internal route called with an invalid token")
        raise AccessDeniedError("Invalid internal token")
