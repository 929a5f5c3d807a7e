"""
Users Repository - Handles user profile operations keyed by external identity
"""

from typing import Any, Dict, Optional

from core.exceptions import NotFoundError
from core.logger import get_logger

from .base import BaseRepository

logger = get_logger(__name__)

_USER_COLUMNS = """
    id, external_id, email, name, planning_time, timezone,
    onboarding_complete, created_at
"""


class UsersRepository(BaseRepository):
    """Repository for managing users in the database"""

    def _to_user(self, row) -> Optional[Dict[str, Any]]:
        data = self._row_to_dict(row)
        if data is None:
            return None
        data["onboarding_complete"] = bool(data["onboarding_complete"])
        return data

    async def get_or_create(
        self, external_id: str, email: str, name: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Get the user for an external identity, creating it on first sign-in

        Args:
            external_id: Stable identifier from the identity provider
            email: Profile email
            name: Optional display name

        Returns:
            User record (existing records are returned untouched)
        """
        existing = await self.get_by_external_id(external_id)
        if existing:
            return existing

        user_id = self._new_id()
        try:
            with self._get_conn() as conn:
                # OR IGNORE: a concurrent first sign-in may have inserted already
                conn.execute(
                    """
                    INSERT OR IGNORE INTO users (
                        id, external_id, email, name, onboarding_complete, created_at
                    ) VALUES (?, ?, ?, ?, 0, ?)
                    """,
                    (user_id, external_id, email, name, self._now()),
                )
                conn.commit()
        except Exception as e:
            logger.error(f"Failed to create user {external_id}: {e}", exc_info=True)
            raise

        user = await self.get_by_external_id(external_id)
        logger.info(f"Created user {user['id']} for external identity {external_id}")
        return user

    async def get_by_external_id(self, external_id: str) -> Optional[Dict[str, Any]]:
        with self._get_conn() as conn:
            cursor = conn.execute(
                f"SELECT {_USER_COLUMNS} FROM users WHERE external_id = ?",
                (external_id,),
            )
            return self._to_user(cursor.fetchone())

    async def get_by_id(self, user_id: str) -> Optional[Dict[str, Any]]:
        with self._get_conn() as conn:
            cursor = conn.execute(
                f"SELECT {_USER_COLUMNS} FROM users WHERE id = ?", (user_id,)
            )
            return self._to_user(cursor.fetchone())

    async def update_planning_time(self, external_id: str, planning_time: str) -> None:
        """Update the user's preferred planning time (HH:MM)"""
        await self._patch_by_external_id(external_id, {"planning_time": planning_time})

    async def complete_onboarding(
        self, external_id: str, planning_time: str, timezone: str
    ) -> None:
        """Store onboarding answers and flag onboarding as complete"""
        await self._patch_by_external_id(
            external_id,
            {
                "planning_time": planning_time,
                "timezone": timezone,
                "onboarding_complete": 1,
            },
        )

    async def update_profile(
        self,
        user_id: str,
        name: Optional[str] = None,
        timezone: Optional[str] = None,
    ) -> None:
        """Update provided profile fields"""
        columns = {
            column: value
            for column, value in (("name", name), ("timezone", timezone))
            if value is not None
        }
        if not columns:
            return

        if self._update_columns("users", columns, user_id) == 0:
            raise NotFoundError("User not found")
        logger.debug(f"Updated profile for user {user_id}")

    async def _patch_by_external_id(
        self, external_id: str, fields: Dict[str, Any]
    ) -> None:
        try:
            updated = self._update_columns(
                "users", fields, external_id, key_column="external_id"
            )
        except Exception as e:
            logger.error(f"Failed to update user {external_id}: {e}", exc_info=True)
            raise

        if updated == 0:
            raise NotFoundError("User not found")
        logger.debug(f"Updated user {external_id}: {sorted(fields)}")
