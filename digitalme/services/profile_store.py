from typing import Any, Protocol

from loguru import logger
from pydantic import ValidationError

from digitalme.core.constants import LEARNING_ENABLED_KEY, PROFILE_KEY
from digitalme.core.security import redact_identifier
from digitalme.models.profile import StyleProfile, migrate_profile
from digitalme.services.redis_service import redis_service


class KeyValueBackend(Protocol):
    async def get(self, key: str) -> str | None: ...

    async def set(self, key: str, value: Any, ttl: int | None = None) -> bool: ...

    async def delete(self, key: str) -> bool: ...


class ProfileStore:
    """
    Persists the current style profile and the learning flag per user.

    Profiles are stored as camelCase JSON. Backend failures are logged by the backend and surface
    here as ``None``/``False``.
    """

    def __init__(self, backend: KeyValueBackend | None = None):
        self.backend = backend or redis_service

    @staticmethod
    def _profile_key(user_id: str) -> str:
        """Generate storage key for a user's profile."""
        return PROFILE_KEY.format(user_id=user_id)

    @staticmethod
    def _learning_key(user_id: str) -> str:
        """Generate storage key for a user's learning flag."""
        return LEARNING_ENABLED_KEY.format(user_id=user_id)

    async def get_profile(self, user_id: str) -> StyleProfile | None:
        """
        Load the stored profile, migrating older shapes.

        Returns:
            StyleProfile, or None if absent or unreadable
        """
        cached = await self.backend.get(self._profile_key(user_id))
        if not cached:
            return None
        try:
            return migrate_profile(StyleProfile.model_validate_json(cached))
        except ValidationError as e:
            logger.warning(f"Failed to decode stored profile for {redact_identifier(user_id)}: {e}")
            return None

    async def save_profile(self, user_id: str, profile: StyleProfile) -> bool:
        """Replace the stored profile. Returns False if the backend refused the write."""
        saved = await self.backend.set(self._profile_key(user_id), profile.model_dump_json(by_alias=True))
        if saved:
            logger.debug(f"[{redact_identifier(user_id)}] Stored profile version {profile.version}")
        else:
            logger.warning(f"[{redact_identifier(user_id)}] Failed to store profile version {profile.version}")
        return bool(saved)

    async def delete_profile(self, user_id: str) -> bool:
        return await self.backend.delete(self._profile_key(user_id))

    async def is_learning_enabled(self, user_id: str) -> bool:
        """Learning defaults to on until the user turns it off."""
        value = await self.backend.get(self._learning_key(user_id))
        if value is None:
            return True
        return value == "1"

    async def set_learning_enabled(self, user_id: str, enabled: bool) -> bool:
        return await self.backend.set(self._learning_key(user_id), "1" if enabled else "0")


profile_store = ProfileStore()
