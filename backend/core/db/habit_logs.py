"""
HabitLogs Repository - Daily completion records with (habit, date) upsert semantics
"""

import math
from typing import Any, Dict, List, Optional

from core.logger import get_logger

from .base import BaseRepository

logger = get_logger(__name__)

_LOG_COLUMNS = "id, habit_id, user_id, date, completed, notes, created_at"


class HabitLogsRepository(BaseRepository):
    """Repository for managing habit logs in the database"""

    def _to_log(self, row) -> Optional[Dict[str, Any]]:
        data = self._row_to_dict(row)
        if data is None:
            return None
        data["completed"] = bool(data["completed"])
        return data

    async def upsert(
        self,
        habit_id: str,
        user_id: str,
        date: str,
        completed: bool,
        notes: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Insert the log for (habit_id, date) or overwrite completed/notes on the existing one

        Returns:
            The stored log record
        """
        try:
            with self._get_conn() as conn:
                conn.execute(
                    """
                    INSERT INTO habit_logs (
                        id, habit_id, user_id, date, completed, notes, created_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?)
                    ON CONFLICT (habit_id, date) DO UPDATE SET
                        completed = excluded.completed,
                        notes = excluded.notes
                    """,
                    (
                        self._new_id(),
                        habit_id,
                        user_id,
                        date,
                        1 if completed else 0,
                        notes,
                        self._now(),
                    ),
                )
                conn.commit()
                logger.debug(
                    f"Upserted habit log {habit_id}@{date} completed={completed}"
                )
        except Exception as e:
            logger.error(
                f"Failed to upsert habit log {habit_id}@{date}: {e}", exc_info=True
            )
            raise

        return await self.get_by_habit_and_date(habit_id, date)

    async def get_by_habit_and_date(
        self, habit_id: str, date: str
    ) -> Optional[Dict[str, Any]]:
        with self._get_conn() as conn:
            cursor = conn.execute(
                f"SELECT {_LOG_COLUMNS} FROM habit_logs WHERE habit_id = ? AND date = ?",
                (habit_id, date),
            )
            return self._to_log(cursor.fetchone())

    async def list_by_habit(self, habit_id: str) -> List[Dict[str, Any]]:
        """All logs of one habit (unordered; callers sort as they need)"""
        with self._get_conn() as conn:
            cursor = conn.execute(
                f"SELECT {_LOG_COLUMNS} FROM habit_logs WHERE habit_id = ?",
                (habit_id,),
            )
            return [self._to_log(row) for row in cursor.fetchall()]

    async def list_by_user_and_date(
        self, user_id: str, date: str
    ) -> List[Dict[str, Any]]:
        """Logs across all of a user's habits for one day"""
        with self._get_conn() as conn:
            cursor = conn.execute(
                f"SELECT {_LOG_COLUMNS} FROM habit_logs WHERE user_id = ? AND date = ?",
                (user_id, date),
            )
            return [self._to_log(row) for row in cursor.fetchall()]

    async def count_by_habit(self, habit_id: str) -> int:
        with self._get_conn() as conn:
            cursor = conn.execute(
                "SELECT COUNT(*) AS count FROM habit_logs WHERE habit_id = ?",
                (habit_id,),
            )
            return cursor.fetchone()["count"]

    async def delete_by_habit(self, habit_id: str) -> int:
        """Delete every log of a habit, returning how many were removed"""
        try:
            with self._transaction() as conn:
                cursor = conn.execute(
                    "DELETE FROM habit_logs WHERE habit_id = ?", (habit_id,)
                )
                return cursor.rowcount
        except Exception as e:
            logger.error(f"Failed to delete logs for habit {habit_id}: {e}", exc_info=True)
            raise

    async def get_stats(
        self, habit_id: str, start_date: str, end_date: str
    ) -> Dict[str, int]:
        """
        Completion stats over an inclusive date range

        Returns:
            {"completed", "total", "percentage"}; percentage is 0 without logs
        """
        with self._get_conn() as conn:
            cursor = conn.execute(
                """
                SELECT COUNT(*) AS total, COALESCE(SUM(completed), 0) AS completed
                FROM habit_logs
                WHERE habit_id = ? AND date >= ? AND date <= ?
                """,
                (habit_id, start_date, end_date),
            )
            row = cursor.fetchone()

        total = row["total"]
        completed = row["completed"]
        # Half-up rounding
        percentage = math.floor(completed / total * 100 + 0.5) if total > 0 else 0
        return {"completed": completed, "total": total, "percentage": percentage}
