"""
PlanningSessions Repository - Persisted planning conversations, one per (user, planning date)
"""

import json
from typing import Any, Dict, List, Optional

from core.exceptions import NotFoundError
from core.logger import get_logger

from .base import BaseRepository

logger = get_logger(__name__)

_SESSION_COLUMNS = """
    id, user_id, planning_date, messages, is_complete, created_at, updated_at
"""


class PlanningSessionsRepository(BaseRepository):
    """Repository for managing planning sessions in the database"""

    def _to_session(self, row) -> Optional[Dict[str, Any]]:
        data = self._row_to_dict(row)
        if data is None:
            return None
        data["messages"] = json.loads(data["messages"]) if data["messages"] else []
        data["is_complete"] = bool(data["is_complete"])
        return data

    async def get_or_create(self, user_id: str, planning_date: str) -> Dict[str, Any]:
        """Return the session for (user, planning_date), creating an empty one if absent"""
        existing = await self.get(user_id, planning_date)
        if existing:
            return existing

        now = self._now()
        try:
            with self._get_conn() as conn:
                conn.execute(
                    """
                    INSERT OR IGNORE INTO planning_sessions (
                        id, user_id, planning_date, messages, is_complete,
                        created_at, updated_at
                    ) VALUES (?, ?, ?, '[]', 0, ?, ?)
                    """,
                    (self._new_id(), user_id, planning_date, now, now),
                )
                conn.commit()
                logger.debug(f"Created planning session {user_id}@{planning_date}")
        except Exception as e:
            logger.error(
                f"Failed to create planning session {user_id}@{planning_date}: {e}",
                exc_info=True,
            )
            raise

        return await self.get(user_id, planning_date)

    async def get(self, user_id: str, planning_date: str) -> Optional[Dict[str, Any]]:
        with self._get_conn() as conn:
            cursor = conn.execute(
                f"""
                SELECT {_SESSION_COLUMNS} FROM planning_sessions
                WHERE user_id = ? AND planning_date = ?
                """,
                (user_id, planning_date),
            )
            return self._to_session(cursor.fetchone())

    async def get_by_id(self, session_id: str) -> Optional[Dict[str, Any]]:
        with self._get_conn() as conn:
            cursor = conn.execute(
                f"SELECT {_SESSION_COLUMNS} FROM planning_sessions WHERE id = ?",
                (session_id,),
            )
            return self._to_session(cursor.fetchone())

    async def add_message(self, session_id: str, role: str, content: str) -> Dict[str, Any]:
        """
        Append a message to the session transcript

        Raises:
            NotFoundError: if the session does not exist

        Returns:
            The appended message
        """
        now = self._now()
        message = {"role": role, "content": content, "timestamp": now}
        with self._transaction() as conn:
            row = conn.execute(
                "SELECT messages FROM planning_sessions WHERE id = ?", (session_id,)
            ).fetchone()
            if row is None:
                raise NotFoundError("Session not found")

            messages = json.loads(row["messages"]) if row["messages"] else []
            messages.append(message)
            conn.execute(
                "UPDATE planning_sessions SET messages = ?, updated_at = ? WHERE id = ?",
                (json.dumps(messages, ensure_ascii=False), now, session_id),
            )
        return message

    async def clear_messages(self, session_id: str) -> None:
        """Drop the transcript and reopen the session"""
        with self._get_conn() as conn:
            cursor = conn.execute(
                """
                UPDATE planning_sessions
                SET messages = '[]', is_complete = 0, updated_at = ?
                WHERE id = ?
                """,
                (self._now(), session_id),
            )
            conn.commit()
        if cursor.rowcount == 0:
            raise NotFoundError("Session not found")

    async def complete(self, session_id: str) -> None:
        self._set_complete(session_id, True)

    async def reopen(self, session_id: str) -> None:
        """Mark a confirmed session open again (the user kept planning)"""
        self._set_complete(session_id, False)

    def _set_complete(self, session_id: str, is_complete: bool) -> None:
        columns = {"is_complete": 1 if is_complete else 0, "updated_at": self._now()}
        if self._update_columns("planning_sessions", columns, session_id) == 0:
            raise NotFoundError("Session not found")

    async def list_recent(self, user_id: str, limit: int = 10) -> List[Dict[str, Any]]:
        """Sessions of a user, most recent planning date first"""
        with self._get_conn() as conn:
            cursor = conn.execute(
                f"""
                SELECT {_SESSION_COLUMNS} FROM planning_sessions
                WHERE user_id = ?
                ORDER BY planning_date DESC
                LIMIT ?
                """,
                (user_id, limit or 10),
            )
            return [self._to_session(row) for row in cursor.fetchall()]

    async def delete(self, session_id: str) -> bool:
        with self._get_conn() as conn:
            cursor = conn.execute(
                "DELETE FROM planning_sessions WHERE id = ?", (session_id,)
            )
            conn.commit()
            logger.debug(f"Deleted planning session {session_id}")
            return cursor.rowcount > 0
