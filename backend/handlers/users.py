"""
User API handlers

Endpoints:
- POST /users/me - Current user profile (created on first call)
- POST /users/update-planning-time - Set the daily planning time
- POST /users/complete-onboarding - Store onboarding answers
- POST /users/update-profile - Update name / timezone
"""

from typing import Any, Dict

from fastapi import Depends

from core.auth import get_request_context
from core.context import RequestContext
from core.db import get_db
from core.exceptions import NotFoundError
from core.logger import get_logger
from models.entities import User
from models.requests import (
    CompleteOnboardingRequest,
    UpdatePlanningTimeRequest,
    UpdateProfileRequest,
)

from . import api_handler

logger = get_logger(__name__)


async def _current_user(ctx: RequestContext) -> Dict[str, Any]:
    user = await get_db().users.get_by_id(ctx.user_id)
    if not user:
        raise NotFoundError("User not found")
    return User.dump_row(user)


@api_handler(method="POST", path="/users/me", tags=["users"])
async def get_current_user(
    ctx: RequestContext = Depends(get_request_context),
) -> Dict[str, Any]:
    """Return the caller's profile"""
    try:
        return {"success": True, "data": await _current_user(ctx), "message": ""}
    except ValueError as e:
        logger.warning(f"Failed to get current user: {e}")
        return {"success": False, "message": str(e), "error": str(e)}
    except Exception as e:
        logger.error(f"Failed to get current user: {e}", exc_info=True)
        return {"success": False, "message": f"Failed to get current user: {str(e)}"}


@api_handler(
    body=UpdatePlanningTimeRequest,
    method="POST",
    path="/users/update-planning-time",
    tags=["users"],
)
async def update_planning_time(
    body: UpdatePlanningTimeRequest,
    ctx: RequestContext = Depends(get_request_context),
) -> Dict[str, Any]:
    try:
        await get_db().users.update_planning_time(ctx.external_id, body.planning_time)
        return {
            "success": True,
            "data": await _current_user(ctx),
            "message": "Planning time updated",
        }
    except ValueError as e:
        logger.warning(f"Failed to update planning time: {e}")
        return {"success": False, "message": str(e), "error": str(e)}
    except Exception as e:
        logger.error(f"Failed to update planning time: {e}", exc_info=True)
        return {"success": False, "message": f"Failed to update planning time: {str(e)}"}


@api_handler(
    body=CompleteOnboardingRequest,
    method="POST",
    path="/users/complete-onboarding",
    tags=["users"],
)
async def complete_onboarding(
    body: CompleteOnboardingRequest,
    ctx: RequestContext = Depends(get_request_context),
) -> Dict[str, Any]:
    """
    Finish onboarding

    Args:
        body: Preferred planning time (HH:MM) and IANA timezone name
    """
    try:
        await get_db().users.complete_onboarding(
            ctx.external_id, body.planning_time, body.timezone
        )
        logger.info(f"Onboarding completed for user {ctx.user_id}")
        return {
            "success": True,
            "data": await _current_user(ctx),
            "message": "Onboarding completed",
        }
    except ValueError as e:
        logger.warning(f"Failed to complete onboarding: {e}")
        return {"success": False, "message": str(e), "error": str(e)}
    except Exception as e:
        logger.error(f"Failed to complete onboarding: {e}", exc_info=True)
        return {"success": False, "message": f"Failed to complete onboarding: {str(e)}"}


@api_handler(
    body=UpdateProfileRequest,
    method="POST",
    path="/users/update-profile",
    tags=["users"],
)
async def update_profile(
    body: UpdateProfileRequest,
    ctx: RequestContext = Depends(get_request_context),
) -> Dict[str, Any]:
    try:
        await get_db().users.update_profile(
            ctx.user_id, name=body.name, timezone=body.timezone
        )
        return {
            "success": True,
            "data": await _current_user(ctx),
            "message": "Profile updated",
        }
    except ValueError as e:
        logger.warning(f"Failed to update profile: {e}")
        return {"success": False, "message": str(e), "error": str(e)}
    except Exception as e:
        logger.error(f"Failed to update profile: {e}", exc_info=True)
        return {"success": False, "message": f"Failed to update profile: {str(e)}"}
