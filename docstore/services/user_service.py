"""User service: provisioning and profile lookups for the identity replica."""

import sqlite3
from datetime import datetime
from typing import Dict, Optional, Tuple

from common.logging_config import get_logger
from docstore.auth import generate_api_key
from docstore.config import DEFAULT_STORAGE_LIMIT
from docstore.exceptions import UserAlreadyExistsError, UserNotFoundError, ValidationError
from docstore.repositories.user_repository import User, UserRepository
from docstore.services.storage_ledger import StorageLedger
from docstore.utils import generate_uuid

logger = get_logger(__name__)


class UserService:
    def __init__(self):
        self.user_repo = UserRepository()
        self.ledger = StorageLedger()

    def provision_user(
        self,
        name: str,
        email: str,
        user_id: Optional[str] = None,
        api_key: Optional[str] = None,
        storage_limit: Optional[int] = None,
    ) -> User:
        """
        Register a user profile pushed by the identity service.

        Missing ids and keys are generated. Returns the stored user,
        including its API key.

        Raises:
            ValidationError: On a blank name or e-mail, or a negative limit
            UserAlreadyExistsError: If the id, e-mail or API key is taken
        """
        if not name or not name.strip():
            raise ValidationError("Name must not be empty")
        if not email or not email.strip():
            raise ValidationError("Email must not be empty")
        if storage_limit is not None and storage_limit < 0:
            raise ValidationError("Storage limit must not be negative")

        email = email.strip().lower()
        logger.info(f"Provisioning user: {email}")

        try:
            user = self.user_repo.create_user(
                user_id=user_id or generate_uuid(),
                name=name.strip(),
                email=email,
                api_key=api_key or generate_api_key(),
                storage_limit=DEFAULT_STORAGE_LIMIT if storage_limit is None else storage_limit,
                created_at=datetime.utcnow(),
            )
        except sqlite3.IntegrityError:
            logger.warning(f"Provisioning failed: user '{email}' already exists")
            raise UserAlreadyExistsError(f"User '{email}' already exists")

        return user

    def get_profile(self, user_id: str) -> Tuple[User, Dict[str, int]]:
        user = self.user_repo.get_by_user_id(user_id)
        if user is None:
            raise UserNotFoundError(f"User '{user_id}' not found")
        return user, self.ledger.usage(user_id)
