"""
Habit API handlers

Endpoints:
- POST /habits/list - All habits of the caller, newest first
- POST /habits/list-active - Active habits sorted by name
- POST /habits/create - Create a habit
- POST /habits/update - Patch user-editable habit fields
- POST /habits/delete - Delete a habit and its logs
- POST /habits/log-completion - Record a day's completion and refresh streaks
- POST /habits/logs-by-date - The caller's logs for one day
- POST /habits/stats - Completion stats over a date range
"""

from typing import Any, Dict

from fastapi import Depends

from core.auth import get_request_context
from core.context import RequestContext
from core.logger import get_logger
from models.entities import Habit, HabitLog, HabitStats
from models.requests import (
    CreateHabitRequest,
    GetHabitLogsByDateRequest,
    GetHabitStatsRequest,
    HabitIdRequest,
    LogHabitCompletionRequest,
    UpdateHabitRequest,
)
from services.habit_service import get_habit_service

from . import api_handler

logger = get_logger(__name__)


@api_handler(method="POST", path="/habits/list", tags=["habits"])
async def list_habits(
    ctx: RequestContext = Depends(get_request_context),
) -> Dict[str, Any]:
    try:
        habits = await get_habit_service().list_habits(ctx)
        return {
            "success": True,
            "data": [Habit.dump_row(h) for h in habits],
            "message": "",
        }
    except Exception as e:
        logger.error(f"Failed to list habits: {e}", exc_info=True)
        return {"success": False, "message": f"Failed to list habits: {str(e)}"}


@api_handler(method="POST", path="/habits/list-active", tags=["habits"])
async def list_active_habits(
    ctx: RequestContext = Depends(get_request_context),
) -> Dict[str, Any]:
    try:
        habits = await get_habit_service().list_active_habits(ctx)
        return {
            "success": True,
            "data": [Habit.dump_row(h) for h in habits],
            "message": "",
        }
    except Exception as e:
        logger.error(f"Failed to list active habits: {e}", exc_info=True)
        return {"success": False, "message": f"Failed to list active habits: {str(e)}"}


@api_handler(body=CreateHabitRequest, method="POST", path="/habits/create", tags=["habits"])
async def create_habit(
    body: CreateHabitRequest,
    ctx: RequestContext = Depends(get_request_context),
) -> Dict[str, Any]:
    """
    Create a habit for the caller

    Args:
        body: Name, frequency, duration and optional scheduling preferences

    Returns:
        The created habit (streaks start at 0)
    """
    try:
        habit = await get_habit_service().create_habit(
            ctx,
            name=body.name,
            frequency=body.frequency.value,
            duration_minutes=body.duration_minutes,
            description=body.description,
            custom_days=body.custom_days,
            preferred_time=body.preferred_time.value if body.preferred_time else None,
            color=body.color,
        )
        return {
            "success": True,
            "data": Habit.dump_row(habit),
            "message": "Habit created successfully",
        }
    except ValueError as e:
        logger.warning(f"Failed to create habit: {e}")
        return {"success": False, "message": str(e), "error": str(e)}
    except Exception as e:
        logger.error(f"Failed to create habit: {e}", exc_info=True)
        return {"success": False, "message": f"Failed to create habit: {str(e)}"}


@api_handler(body=UpdateHabitRequest, method="POST", path="/habits/update", tags=["habits"])
async def update_habit(
    body: UpdateHabitRequest,
    ctx: RequestContext = Depends(get_request_context),
) -> Dict[str, Any]:
    try:
        fields = body.model_dump(by_alias=False, exclude={"habit_id"}, exclude_none=True)
        for key in ("frequency", "preferred_time"):
            if key in fields:
                fields[key] = fields[key].value
        habit = await get_habit_service().update_habit(ctx, body.habit_id, **fields)
        return {
            "success": True,
            "data": Habit.dump_row(habit),
            "message": "Habit updated successfully",
        }
    except ValueError as e:
        logger.warning(f"Failed to update habit {body.habit_id}: {e}")
        return {"success": False, "message": str(e), "error": str(e)}
    except Exception as e:
        logger.error(f"Failed to update habit {body.habit_id}: {e}", exc_info=True)
        return {"success": False, "message": f"Failed to update habit: {str(e)}"}


@api_handler(body=HabitIdRequest, method="POST", path="/habits/delete", tags=["habits"])
async def delete_habit(
    body: HabitIdRequest,
    ctx: RequestContext = Depends(get_request_context),
) -> Dict[str, Any]:
    try:
        deleted_logs = await get_habit_service().delete_habit(ctx, body.habit_id)
        return {
            "success": True,
            "data": {"habitId": body.habit_id, "deletedLogs": deleted_logs},
            "message": "Habit deleted successfully",
        }
    except ValueError as e:
        logger.warning(f"Failed to delete habit {body.habit_id}: {e}")
        return {"success": False, "message": str(e), "error": str(e)}
    except Exception as e:
        logger.error(f"Failed to delete habit {body.habit_id}: {e}", exc_info=True)
        return {"success": False, "message": f"Failed to delete habit: {str(e)}"}


@api_handler(
    body=LogHabitCompletionRequest,
    method="POST",
    path="/habits/log-completion",
    tags=["habits"],
)
async def log_habit_completion(
    body: LogHabitCompletionRequest,
    ctx: RequestContext = Depends(get_request_context),
) -> Dict[str, Any]:
    """
    Record whether a habit was done on a day

    Returns:
        The habit's recomputed current and best streaks
    """
    try:
        streak = await get_habit_service().log_completion(
            ctx,
            habit_id=body.habit_id,
            date=body.date,
            completed=body.completed,
            notes=body.notes,
        )
        data = (
            {
                "habitId": streak.habit_id,
                "currentStreak": streak.current_streak,
                "bestStreak": streak.best_streak,
            }
            if streak
            else None
        )
        return {"success": True, "data": data, "message": "Habit completion logged"}
    except ValueError as e:
        logger.warning(f"Failed to log habit {body.habit_id} on {body.date}: {e}")
        return {"success": False, "message": str(e), "error": str(e)}
    except Exception as e:
        logger.error(
            f"Failed to log habit {body.habit_id} on {body.date}: {e}", exc_info=True
        )
        return {"success": False, "message": f"Failed to log habit completion: {str(e)}"}


@api_handler(
    body=GetHabitLogsByDateRequest,
    method="POST",
    path="/habits/logs-by-date",
    tags=["habits"],
)
async def get_habit_logs_by_date(
    body: GetHabitLogsByDateRequest,
    ctx: RequestContext = Depends(get_request_context),
) -> Dict[str, Any]:
    try:
        logs = await get_habit_service().logs_for_date(ctx, body.date)
        return {
            "success": True,
            "data": [HabitLog.dump_row(log) for log in logs],
            "message": "",
        }
    except ValueError as e:
        logger.warning(f"Failed to get habit logs for {body.date}: {e}")
        return {"success": False, "message": str(e), "error": str(e)}
    except Exception as e:
        logger.error(f"Failed to get habit logs for {body.date}: {e}", exc_info=True)
        return {"success": False, "message": f"Failed to get habit logs: {str(e)}"}


@api_handler(body=GetHabitStatsRequest, method="POST", path="/habits/stats", tags=["habits"])
async def get_habit_stats(
    body: GetHabitStatsRequest,
    ctx: RequestContext = Depends(get_request_context),
) -> Dict[str, Any]:
    try:
        stats = await get_habit_service().habit_stats(
            ctx, body.habit_id, body.start_date, body.end_date
        )
        return {
            "success": True,
            "data": HabitStats.dump_row(stats),
            "message": "",
        }
    except ValueError as e:
        logger.warning(f"Failed to get stats for habit {body.habit_id}: {e}")
        return {"success": False, "message": str(e), "error": str(e)}
    except Exception as e:
        logger.error(f"Failed to get stats for habit {body.habit_id}: {e}", exc_info=True)
        return {"success": False, "message": f"Failed to get habit stats: {str(e)}"}
