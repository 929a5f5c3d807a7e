"""
Habits Repository - Handles habit CRUD, cascade delete and streak persistence
"""

import json
from typing import Any, Dict, List, Optional

from core.logger import get_logger

from .base import BaseRepository

logger = get_logger(__name__)

_HABIT_COLUMNS = """
    id, user_id, name, description, frequency, custom_days, preferred_time,
    duration_minutes, current_streak, best_streak, is_active, color, created_at
"""

# Streak fields are deliberately absent: only set_streaks() writes them
EDITABLE_FIELDS = (
    "name",
    "description",
    "frequency",
    "custom_days",
    "preferred_time",
    "duration_minutes",
    "color",
    "is_active",
)


class HabitsRepository(BaseRepository):
    """Repository for managing habits in the database"""

    def _to_habit(self, row) -> Optional[Dict[str, Any]]:
        data = self._row_to_dict(row)
        if data is None:
            return None
        data["custom_days"] = (
            json.loads(data["custom_days"]) if data["custom_days"] else None
        )
        data["is_active"] = bool(data["is_active"])
        return data

    async def create(
        self,
        user_id: str,
        name: str,
        frequency: str,
        duration_minutes: int,
        description: Optional[str] = None,
        custom_days: Optional[List[int]] = None,
        preferred_time: Optional[str] = None,
        color: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Create a habit with zeroed streaks; returns the stored record"""
        habit_id = self._new_id()
        try:
            with self._get_conn() as conn:
                conn.execute(
                    """
                    INSERT INTO habits (
                        id, user_id, name, description, frequency, custom_days,
                        preferred_time, duration_minutes, current_streak, best_streak,
                        is_active, color, created_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, 0, 0, 1, ?, ?)
                    """,
                    (
                        habit_id,
                        user_id,
                        name,
                        description,
                        frequency,
                        json.dumps(custom_days) if custom_days is not None else None,
                        preferred_time,
                        duration_minutes,
                        color,
                        self._now(),
                    ),
                )
                conn.commit()
                logger.debug(f"Created habit {habit_id} ({name}) for user {user_id}")
        except Exception as e:
            logger.error(f"Failed to create habit {name}: {e}", exc_info=True)
            raise

        return await self.get_by_id(habit_id)

    async def get_by_id(self, habit_id: str) -> Optional[Dict[str, Any]]:
        with self._get_conn() as conn:
            cursor = conn.execute(
                f"SELECT {_HABIT_COLUMNS} FROM habits WHERE id = ?", (habit_id,)
            )
            return self._to_habit(cursor.fetchone())

    async def list_by_user(self, user_id: str) -> List[Dict[str, Any]]:
        """All habits of a user, newest first"""
        with self._get_conn() as conn:
            cursor = conn.execute(
                f"""
                SELECT {_HABIT_COLUMNS} FROM habits
                WHERE user_id = ?
                ORDER BY created_at DESC
                """,
                (user_id,),
            )
            return [self._to_habit(row) for row in cursor.fetchall()]

    async def list_active(self, user_id: str) -> List[Dict[str, Any]]:
        """Active habits of a user, sorted by name"""
        habits = await self.list_by_user(user_id)
        active = [habit for habit in habits if habit["is_active"]]
        return sorted(active, key=lambda habit: habit["name"].casefold())

    async def update(self, habit_id: str, **fields: Any) -> bool:
        """
        Patch user-editable fields of a habit

        None values are ignored, matching "only provided fields" semantics.

        Returns:
            True if a habit row was updated
        """
        unknown = set(fields) - set(EDITABLE_FIELDS)
        if unknown:
            raise ValueError(f"Fields not editable: {sorted(unknown)}")

        columns: Dict[str, Any] = {}
        for column, value in fields.items():
            if value is None:
                continue
            if column == "custom_days":
                value = json.dumps(value)
            elif column == "is_active":
                value = 1 if value else 0
            columns[column] = value

        if not columns:
            return await self.get_by_id(habit_id) is not None

        try:
            updated = self._update_columns("habits", columns, habit_id)
            logger.debug(f"Updated habit {habit_id}")
            return updated > 0
        except Exception as e:
            logger.error(f"Failed to update habit {habit_id}: {e}", exc_info=True)
            raise

    async def set_streaks(
        self, habit_id: str, current_streak: int, best_streak: int
    ) -> None:
        """Persist recomputed streak counters (streak engine only)"""
        with self._get_conn() as conn:
            conn.execute(
                "UPDATE habits SET current_streak = ?, best_streak = ? WHERE id = ?",
                (current_streak, best_streak, habit_id),
            )
            conn.commit()

    async def delete(self, habit_id: str) -> int:
        """
        Delete a habit and all of its logs in one transaction

        Logs go first so no log can outlive its habit.

        Returns:
            Number of logs deleted alongside the habit
        """
        try:
            with self._transaction() as conn:
                cursor = conn.execute(
                    "DELETE FROM habit_logs WHERE habit_id = ?", (habit_id,)
                )
                deleted_logs = cursor.rowcount
                conn.execute("DELETE FROM habits WHERE id = ?", (habit_id,))
            logger.debug(f"Deleted habit {habit_id} with {deleted_logs} logs")
            return deleted_logs
        except Exception as e:
            logger.error(f"Failed to delete habit {habit_id}: {e}", exc_info=True)
            raise
