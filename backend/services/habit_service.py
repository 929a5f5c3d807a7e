"""
Habit service
Habit CRUD scoped to the calling user, completion logging and streak upkeep
"""

import asyncio
from collections import defaultdict
from datetime import datetime
from typing import Any, Dict, List, Optional

from core.context import RequestContext
from core.exceptions import NotFoundError, ValidationError
from core.logger import get_logger
from models.entities import HabitFrequency, PreferredTime

from .streaks import HabitStreak, recompute_streak

logger = get_logger(__name__)


def validate_date(value: str) -> str:
    """Ensure value is a YYYY-MM-DD calendar date"""
    try:
        datetime.strptime(value, "%Y-%m-%d")
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid date (expected YYYY-MM-DD): {value!r}")
    return value


class HabitService:
    """Habit operations for one store; all calls are scoped by RequestContext"""

    def __init__(self, db):
        self.db = db
        # habit_id -> lock serializing log upsert + streak recompute
        self._habit_locks: Dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    async def _get_owned_habit(self, ctx: RequestContext, habit_id: str) -> Dict[str, Any]:
        habit = await self.db.habits.get_by_id(habit_id)
        if not habit or habit["user_id"] != ctx.user_id:
            raise NotFoundError(f"Habit {habit_id} not found")
        return habit

    async def list_habits(self, ctx: RequestContext) -> List[Dict[str, Any]]:
        return await self.db.habits.list_by_user(ctx.user_id)

    async def list_active_habits(self, ctx: RequestContext) -> List[Dict[str, Any]]:
        return await self.db.habits.list_active(ctx.user_id)

    async def create_habit(
        self,
        ctx: RequestContext,
        name: str,
        frequency: str,
        duration_minutes: int,
        description: Optional[str] = None,
        custom_days: Optional[List[int]] = None,
        preferred_time: Optional[str] = None,
        color: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Create a habit for the caller; streaks start at zero"""
        if not name or not name.strip():
            raise ValidationError("Habit name is required")
        if duration_minutes is None or duration_minutes <= 0:
            raise ValidationError("durationMinutes must be positive")
        if custom_days is not None and any(day not in range(7) for day in custom_days):
            raise ValidationError("customDays must be within 0 (Sunday) .. 6 (Saturday)")

        habit = await self.db.habits.create(
            user_id=ctx.user_id,
            name=name.strip(),
            frequency=HabitFrequency(frequency).value,
            duration_minutes=duration_minutes,
            description=description,
            custom_days=custom_days,
            preferred_time=PreferredTime(preferred_time).value if preferred_time else None,
            color=color,
        )
        logger.info(f"Habit created: {habit['id']} '{habit['name']}'")
        return habit

    async def update_habit(
        self, ctx: RequestContext, habit_id: str, **fields: Any
    ) -> Dict[str, Any]:
        await self._get_owned_habit(ctx, habit_id)
        if fields.get("duration_minutes") is not None and fields["duration_minutes"] <= 0:
            raise ValidationError("durationMinutes must be positive")
        if fields.get("name") is not None and not fields["name"].strip():
            raise ValidationError("Habit name cannot be empty")

        await self.db.habits.update(habit_id, **fields)
        return await self.db.habits.get_by_id(habit_id)

    async def delete_habit(self, ctx: RequestContext, habit_id: str) -> int:
        """Delete a habit and its logs; returns the number of logs removed"""
        await self._get_owned_habit(ctx, habit_id)
        async with self._habit_locks[habit_id]:
            deleted_logs = await self.db.habits.delete(habit_id)
        self._habit_locks.pop(habit_id, None)
        logger.info(f"Habit deleted: {habit_id} ({deleted_logs} logs)")
        return deleted_logs

    async def log_completion(
        self,
        ctx: RequestContext,
        habit_id: str,
        date: str,
        completed: bool,
        notes: Optional[str] = None,
    ) -> Optional[HabitStreak]:
        """
        Upsert the (habit, date) log and recompute the habit's streaks

        The recompute reads logs only after the upsert has committed, and both
        steps run under the habit's lock so concurrent writes for the same habit
        cannot interleave.

        Returns:
            Recomputed streaks (None if the habit vanished before recompute)
        """
        validate_date(date)
        await self._get_owned_habit(ctx, habit_id)

        async with self._habit_locks[habit_id]:
            await self.db.habit_logs.upsert(
                habit_id=habit_id,
                user_id=ctx.user_id,
                date=date,
                completed=completed,
                notes=notes,
            )
            return await recompute_streak(self.db, habit_id, ctx.today())

    async def logs_for_date(self, ctx: RequestContext, date: str) -> List[Dict[str, Any]]:
        validate_date(date)
        return await self.db.habit_logs.list_by_user_and_date(ctx.user_id, date)

    async def habit_stats(
        self, ctx: RequestContext, habit_id: str, start_date: str, end_date: str
    ) -> Dict[str, int]:
        validate_date(start_date)
        validate_date(end_date)
        await self._get_owned_habit(ctx, habit_id)
        return await self.db.habit_logs.get_stats(habit_id, start_date, end_date)


# Global service instance, rebuilt when the global database is switched
_habit_service: Optional[HabitService] = None


def get_habit_service() -> HabitService:
    """Get the HabitService bound to the current global database"""
    global _habit_service
    from core.db import get_db

    db = get_db()
    if _habit_service is None or _habit_service.db is not db:
        _habit_service = HabitService(db)
    return _habit_service
