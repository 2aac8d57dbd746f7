"""
Authentication service for operator accounts.
Handles registration, credential checks and password changes on top of the storage contract.
"""

from typing import Optional
import logging

from catalog.schemas import UserRecord
from catalog.storage.base import StorageBackend, UserCreateInput
from catalog.utils.exceptions import UserNotFoundError, ValidationError
from catalog.utils.security import verify_password

logger = logging.getLogger(__name__)


class AuthService:
    """Authentication service backed by any storage backend."""

    def __init__(self, storage: StorageBackend):
        self.storage = storage

    async def register_user(self, data: UserCreateInput) -> UserRecord:
        """
        Register a new user.

        Raises:
            ConflictError: If the username is already taken
            ValidationError: If user data is invalid
        """
        return await self.storage.create_user(data)

    async def authenticate(self, username: str, password: str) -> Optional[UserRecord]:
        """
        Check a username and password.

        Returns:
            The user if the credentials match, None otherwise
        """
        if not username or not password:
            return None

        user = await self.storage.get_user_by_username(username)
        if user is None:
            logger.debug(f"Authentication failed: user {username} not found")
            return None

        if not verify_password(password, user.hashed_password):
            logger.debug(f"Authentication failed: invalid password for {username}")
            return None

        logger.info(f"User authenticated successfully: {username}")
        return user

    async def change_password(self, user_id: str, current_password: str, new_password: str) -> UserRecord:
        """
        Change a user's password after verifying the current one.

        Raises:
            UserNotFoundError: If the user doesn't exist
            ValidationError: If the current password is wrong or the new one is invalid
        """
        user = await self.storage.get_user(user_id)
        if user is None:
            raise UserNotFoundError(user_id)

        if not verify_password(current_password, user.hashed_password):
            raise ValidationError("Current password is incorrect")

        updated = await self.storage.update_user(user_id, {"password": new_password})
        logger.info(f"Password changed for user {user.username}")
        return updated
