"""
User Storage - persistent user documents plus a username index.
"""

import json
import logging
from typing import Optional, Dict
from datetime import datetime, timezone

from pydantic import ValidationError

from .interface import StorageInterface
from ..core.errors import StorageError
from ..models.user import UserInDB, UserUsage

logger = logging.getLogger(__name__)


class UserStorage:
    """
    Manages user documents under ``users/<user_id>.json``.
    Usernames are resolved through ``users/username_index.json``.
    """

    def __init__(self, storage: StorageInterface):
        self.storage = storage
        self.users_dir = "users"
        self._username_index_path = f"{self.users_dir}/username_index.json"

    def _path(self, user_id: str) -> str:
        return f"{self.users_dir}/{user_id}.json"

    async def _load_username_index(self) -> Dict[str, str]:
        content = await self.storage.load(self._username_index_path)
        if content is None:
            return {}
        try:
            return json.loads(content.decode('utf-8'))
        except (UnicodeDecodeError, json.JSONDecodeError):
            logger.error("Username index is corrupt, treating it as empty")
            return {}

    async def _save(self, user: UserInDB) -> UserInDB:
        if not await self.storage.save(self._path(user.user_id), user.model_dump_json(indent=2)):
            raise StorageError(f"Failed to persist user {user.user_id}")
        return user

    async def get_user(self, user_id: str) -> Optional[UserInDB]:
        content = await self.storage.load(self._path(user_id))
        if content is None:
            return None
        try:
            return UserInDB.model_validate_json(content)
        except ValidationError as e:
            logger.error(f"Error loading user {user_id}: {e}")
            return None

    async def get_user_by_username(self, username: str) -> Optional[UserInDB]:
        index = await self._load_username_index()
        user_id = index.get(username)
        if user_id is None:
            return None
        return await self.get_user(user_id)

    async def create_user(
        self,
        user_id: str,
        username: str,
        hashed_password: str,
        email: Optional[str] = None
    ) -> UserInDB:
        now = datetime.now(timezone.utc)
        user = UserInDB(
            user_id=user_id,
            username=username,
            email=email,
            hashed_password=hashed_password,
            created_at=now,
            updated_at=now,
        )
        await self._save(user)

        index = await self._load_username_index()
        index[username] = user_id
        if not await self.storage.save(self._username_index_path, json.dumps(index, indent=2)):
            raise StorageError("Failed to update username index")

        logger.info(f"User created: {user_id} ({username})")
        return user

    async def increment_usage(
        self,
        user_id: str,
        sessions: int = 0,
        components: int = 0,
        tokens: int = 0,
    ) -> Optional[UserUsage]:
        """Add to the user's usage counters. Returns None for unknown users."""
        user = await self.get_user(user_id)
        if user is None:
            return None

        user.usage.total_sessions += sessions
        user.usage.total_components += components
        user.usage.total_tokens += tokens
        user.updated_at = datetime.now(timezone.utc)
        await self._save(user)
        return user.usage

    async def update_user(self, user_id: str, **fields) -> Optional[UserInDB]:
        """
        Overwrite the given profile fields. Returns None for unknown users.

        Args:
            user_id: User to update
            **fields: Field values to set, e.g. ``email`` or ``full_name``
        """
        user = await self.get_user(user_id)
        if user is None:
            return None

        user = user.model_copy(update={**fields, "updated_at": datetime.now(timezone.utc)})
        await self._save(user)
        logger.info(f"User updated: {user_id} fields={sorted(fields)}")
        return user

    async def change_password(self, user_id: str, hashed_password: str) -> Optional[UserInDB]:
        return await self.update_user(user_id, hashed_password=hashed_password)

    async def delete_user(self, user_id: str) -> Optional[UserInDB]:
        """
        Soft delete: the account is deactivated and can no longer log in.
        The username stays reserved.
        """
        user = await self.update_user(user_id, is_active=False)
        if user is not None:
            logger.info(f"User deactivated: {user_id}")
        return user
