"""
CalendarEvents Repository - Handles calendar event CRUD and batch inserts

The `date` column always mirrors the date embedded in `start_time`, so range
queries can stay on the (user_id, date) index.
"""

from datetime import date
from typing import Any, Dict, Iterable, List, Optional

from core.exceptions import ValidationError
from core.logger import get_logger
from models.entities import CalendarEventCreate, EventCategory

from .base import BaseRepository

logger = get_logger(__name__)

_EVENT_COLUMNS = """
    id, user_id, title, description, start_time, end_time, date, category,
    is_recurring, recurring_pattern, created_by, completed, created_at
"""

EDITABLE_FIELDS = (
    "title",
    "description",
    "start_time",
    "end_time",
    "category",
    "completed",
)


def date_of(timestamp: str) -> str:
    """YYYY-MM-DD prefix of a local ISO-8601-like timestamp"""
    day = (timestamp or "")[:10]
    try:
        return date.fromisoformat(day).isoformat()
    except ValueError:
        raise ValidationError(f"Timestamp has no calendar date: {timestamp!r}") from None


def _check_same_day(start_time: str, end_time: str) -> str:
    """Events end on the day they start; returns that day"""
    day = date_of(start_time)
    if date_of(end_time) != day:
        raise ValidationError(f"Event must end on {day}, got end time {end_time}")
    return day


def _resolve_date(event: CalendarEventCreate) -> str:
    day = _check_same_day(event.start_time, event.end_time)
    if event.date is not None and event.date != day:
        raise ValidationError(
            f"Event date {event.date} does not match start time {event.start_time}"
        )
    return day


class EventsRepository(BaseRepository):
    """Repository for managing calendar events in the database"""

    def _to_event(self, row) -> Optional[Dict[str, Any]]:
        data = self._row_to_dict(row)
        if data is None:
            return None
        data["is_recurring"] = bool(data["is_recurring"])
        data["completed"] = bool(data["completed"])
        return data

    def _insert_params(self, user_id: str, event: CalendarEventCreate) -> tuple:
        if not event.title or not event.title.strip():
            raise ValidationError("Event title is required")
        return (
            self._new_id(),
            user_id,
            event.title,
            event.description,
            event.start_time,
            event.end_time,
            _resolve_date(event),
            EventCategory(event.category).value,
            1 if event.is_recurring else 0,
            event.recurring_pattern,
            event.created_by.value,
            self._now(),
        )

    _INSERT_SQL = """
        INSERT INTO calendar_events (
            id, user_id, title, description, start_time, end_time, date, category,
            is_recurring, recurring_pattern, created_by, completed, created_at
        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, 0, ?)
    """

    async def create(self, user_id: str, event: CalendarEventCreate) -> str:
        """Create one event; returns its id"""
        params = self._insert_params(user_id, event)
        try:
            with self._get_conn() as conn:
                conn.execute(self._INSERT_SQL, params)
                conn.commit()
                logger.debug(f"Created event {params[0]} ({event.title}) on {params[6]}")
                return params[0]
        except Exception as e:
            logger.error(f"Failed to create event {event.title}: {e}", exc_info=True)
            raise

    async def create_many(
        self, user_id: str, events: Iterable[CalendarEventCreate]
    ) -> List[str]:
        """
        Create a batch of events atomically

        Every event is validated before anything is written; a failure anywhere
        rolls back the whole batch.

        Returns:
            Created event ids in input order
        """
        rows = [self._insert_params(user_id, event) for event in events]
        try:
            with self._transaction() as conn:
                conn.executemany(self._INSERT_SQL, rows)
            logger.debug(f"Created {len(rows)} events for user {user_id}")
            return [row[0] for row in rows]
        except Exception as e:
            logger.error(f"Failed to create event batch: {e}", exc_info=True)
            raise

    async def get_by_id(self, event_id: str) -> Optional[Dict[str, Any]]:
        with self._get_conn() as conn:
            cursor = conn.execute(
                f"SELECT {_EVENT_COLUMNS} FROM calendar_events WHERE id = ?",
                (event_id,),
            )
            return self._to_event(cursor.fetchone())

    async def list_by_date(self, user_id: str, date: str) -> List[Dict[str, Any]]:
        """Events of one day sorted by start time"""
        with self._get_conn() as conn:
            cursor = conn.execute(
                f"""
                SELECT {_EVENT_COLUMNS} FROM calendar_events
                WHERE user_id = ? AND date = ?
                ORDER BY start_time
                """,
                (user_id, date),
            )
            return [self._to_event(row) for row in cursor.fetchall()]

    async def list_by_date_range(
        self, user_id: str, start_date: str, end_date: str
    ) -> List[Dict[str, Any]]:
        """Events between two dates (inclusive) sorted by date, then start time"""
        with self._get_conn() as conn:
            cursor = conn.execute(
                f"""
                SELECT {_EVENT_COLUMNS} FROM calendar_events
                WHERE user_id = ? AND date >= ? AND date <= ?
                ORDER BY date, start_time
                """,
                (user_id, start_date, end_date),
            )
            return [self._to_event(row) for row in cursor.fetchall()]

    async def update(self, event_id: str, **fields: Any) -> bool:
        """
        Patch provided fields of an event

        Changing start_time re-syncs the date column; the event must still
        end on the day it starts.

        Returns:
            True if an event row was updated
        """
        unknown = set(fields) - set(EDITABLE_FIELDS)
        if unknown:
            raise ValueError(f"Fields not editable: {sorted(unknown)}")

        columns: Dict[str, Any] = {}
        for column, value in fields.items():
            if value is None:
                continue
            if column == "category":
                value = EventCategory(value).value
            elif column == "completed":
                value = 1 if value else 0
            columns[column] = value

        if not columns:
            return await self.get_by_id(event_id) is not None

        if "start_time" in columns or "end_time" in columns:
            current = await self.get_by_id(event_id)
            if current is None:
                return False
            columns["date"] = _check_same_day(
                columns.get("start_time", current["start_time"]),
                columns.get("end_time", current["end_time"]),
            )

        try:
            updated = self._update_columns("calendar_events", columns, event_id)
            logger.debug(f"Updated event {event_id}")
            return updated > 0
        except Exception as e:
            logger.error(f"Failed to update event {event_id}: {e}", exc_info=True)
            raise

    async def mark_complete(self, event_id: str, completed: bool) -> bool:
        return await self.update(event_id, completed=completed)

    async def delete(self, event_id: str) -> bool:
        with self._get_conn() as conn:
            cursor = conn.execute(
                "DELETE FROM calendar_events WHERE id = ?", (event_id,)
            )
            conn.commit()
            logger.debug(f"Deleted event {event_id}")
            return cursor.rowcount > 0

    async def delete_by_date(self, user_id: str, date: str) -> int:
        """Delete all events of a user on one day; returns the number deleted"""
        try:
            with self._get_conn() as conn:
                cursor = conn.execute(
                    "DELETE FROM calendar_events WHERE user_id = ? AND date = ?",
                    (user_id, date),
                )
                conn.commit()
                return cursor.rowcount
        except Exception as e:
            logger.error(
                f"Failed to delete events of {user_id} on {date}: {e}", exc_info=True
            )
            raise
