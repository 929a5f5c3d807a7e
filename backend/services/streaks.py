"""
Habit streak engine

Streaks are a pure function of a habit's logs plus "today". They are
recomputed synchronously after every log write and never set directly.
"""

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any, Iterable, Mapping, Optional

from core.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class HabitStreak:
    habit_id: str
    current_streak: int
    best_streak: int


def compute_current_streak(logs: Iterable[Mapping[str, Any]], today: date) -> int:
    """
    Length of the unbroken run of completed daily logs ending today

    Logs are walked newest first against an expected day that starts at
    today and steps back one day per completed log. The walk stops at the
    first log that is not completed or whose date is not the expected day
    (a missing day, or a log dated after the expected day).

    Args:
        logs: Log records with "date" (YYYY-MM-DD) and "completed"
        today: The day the run must end on

    Returns:
        Current streak length
    """
    ordered = sorted(logs, key=lambda log: log["date"], reverse=True)

    streak = 0
    check_date = today
    for log in ordered:
        if log["date"] != check_date.isoformat():
            break
        if not log["completed"]:
            break
        streak += 1
        check_date -= timedelta(days=1)

    return streak


async def recompute_streak(db, habit_id: str, today: date) -> Optional[HabitStreak]:
    """
    Recompute and persist current/best streak for one habit

    A missing habit is a no-op: the log write that triggered the recompute
    has already committed and is never rolled back.

    Args:
        db: DatabaseManager
        habit_id: Habit to recompute
        today: Day the current streak must end on

    Returns:
        The persisted streak values, or None when the habit does not exist
    """
    habit = await db.habits.get_by_id(habit_id)
    if not habit:
        logger.debug(f"Streak recompute skipped, habit {habit_id} not found")
        return None

    logs = await db.habit_logs.list_by_habit(habit_id)
    current = compute_current_streak(logs, today)
    best = max(habit["best_streak"], current)

    await db.habits.set_streaks(habit_id, current, best)
    logger.debug(
        f"Habit {habit_id} streak recomputed: current={current}, best={best} "
        f"({len(logs)} logs, today={today.isoformat()})"
    )
    return HabitStreak(habit_id=habit_id, current_streak=current, best_streak=best)
