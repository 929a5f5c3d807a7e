"""
Planning API handlers

Endpoints:
- POST /planning/start - Open (or resume) the conversation for a planning date
- POST /planning/send-message - Send user text, stream the reply as text/plain
- POST /planning/confirm - Save the proposed schedule to the calendar
- POST /planning/reset - Start the conversation over
- POST /planning/get-session - Stored session for a planning date
- POST /planning/recent-sessions - Latest sessions, newest planning date first
- POST /planning/delete-session - Delete a stored session
"""

from typing import Any, Dict

from fastapi import Depends
from fastapi.responses import StreamingResponse

from core.auth import get_request_context
from core.context import RequestContext
from core.logger import get_logger
from core.settings import get_settings
from models.entities import PlanningSession
from models.requests import (
    DeleteSessionRequest,
    GetRecentSessionsRequest,
    PlanningDateRequest,
    SendPlanningMessageRequest,
)
from services.planning_pipeline import get_planning_service

from . import api_handler

logger = get_logger(__name__)


@api_handler(body=PlanningDateRequest, method="POST", path="/planning/start", tags=["planning"])
async def start_planning(
    body: PlanningDateRequest,
    ctx: RequestContext = Depends(get_request_context),
) -> Dict[str, Any]:
    """
    Open the planning conversation

    A new session starts with a local greeting; an existing one is resumed
    with its stored transcript.

    Args:
        body: Planning date (defaults to tomorrow)
    """
    try:
        conversation = await get_planning_service().get_conversation(
            ctx, body.planning_date
        )
        return {"success": True, "data": conversation.snapshot(), "message": ""}
    except ValueError as e:
        logger.warning(f"Failed to start planning: {e}")
        return {"success": False, "message": str(e), "error": str(e)}
    except Exception as e:
        logger.error(f"Failed to start planning: {e}", exc_info=True)
        return {"success": False, "message": f"Failed to start planning: {str(e)}"}


@api_handler(
    body=SendPlanningMessageRequest,
    method="POST",
    path="/planning/send-message",
    tags=["planning"],
)
async def send_planning_message(
    body: SendPlanningMessageRequest,
    ctx: RequestContext = Depends(get_request_context),
):
    """
    Send a message (streaming output)

    The reply is streamed as plain text chunks in arrival order. Rejections
    (empty text, a reply already streaming) come back as a JSON error payload
    before any model call is made. Clients fetch /planning/start afterwards to
    learn whether a schedule was proposed.
    """
    try:
        conversation = await get_planning_service().get_conversation(
            ctx, body.planning_date
        )
        stream = await conversation.send_message(body.content)
        return StreamingResponse(stream, media_type="text/plain; charset=utf-8")
    except ValueError as e:
        logger.warning(f"Failed to send planning message: {e}")
        return {"success": False, "message": str(e), "error": str(e)}
    except Exception as e:
        logger.error(f"Failed to send planning message: {e}", exc_info=True)
        return {"success": False, "message": f"Failed to send message: {str(e)}"}


@api_handler(body=PlanningDateRequest, method="POST", path="/planning/confirm", tags=["planning"])
async def confirm_schedule(
    body: PlanningDateRequest,
    ctx: RequestContext = Depends(get_request_context),
) -> Dict[str, Any]:
    """
    Save the proposed schedule

    A failed save still answers success=False with the conversation, which
    now ends with an apology and keeps the proposal for a retry.
    """
    try:
        conversation = await get_planning_service().get_conversation(
            ctx, body.planning_date
        )
        result = await conversation.confirm()
        data = conversation.snapshot()
        data["eventIds"] = result.event_ids
        if not result.saved:
            return {
                "success": False,
                "data": data,
                "message": "Failed to save schedule",
                "error": "Failed to save schedule",
            }
        return {
            "success": True,
            "data": data,
            "message": f"Saved {len(result.event_ids)} events",
        }
    except ValueError as e:
        logger.warning(f"Failed to confirm schedule: {e}")
        return {"success": False, "message": str(e), "error": str(e)}
    except Exception as e:
        logger.error(f"Failed to confirm schedule: {e}", exc_info=True)
        return {"success": False, "message": f"Failed to confirm schedule: {str(e)}"}


@api_handler(body=PlanningDateRequest, method="POST", path="/planning/reset", tags=["planning"])
async def reset_planning(
    body: PlanningDateRequest,
    ctx: RequestContext = Depends(get_request_context),
) -> Dict[str, Any]:
    try:
        conversation = await get_planning_service().get_conversation(
            ctx, body.planning_date
        )
        await conversation.reset()
        return {"success": True, "data": conversation.snapshot(), "message": ""}
    except ValueError as e:
        logger.warning(f"Failed to reset planning: {e}")
        return {"success": False, "message": str(e), "error": str(e)}
    except Exception as e:
        logger.error(f"Failed to reset planning: {e}", exc_info=True)
        return {"success": False, "message": f"Failed to reset planning: {str(e)}"}


@api_handler(
    body=PlanningDateRequest, method="POST", path="/planning/get-session", tags=["planning"]
)
async def get_planning_session(
    body: PlanningDateRequest,
    ctx: RequestContext = Depends(get_request_context),
) -> Dict[str, Any]:
    try:
        service = get_planning_service()
        planning_date = body.planning_date or service.default_planning_date(ctx)
        session = await service.get_session(ctx, planning_date)
        return {
            "success": True,
            "data": PlanningSession.dump_row(session),
            "message": "",
        }
    except ValueError as e:
        logger.warning(f"Failed to get planning session: {e}")
        return {"success": False, "message": str(e), "error": str(e)}
    except Exception as e:
        logger.error(f"Failed to get planning session: {e}", exc_info=True)
        return {"success": False, "message": f"Failed to get planning session: {str(e)}"}


@api_handler(
    body=GetRecentSessionsRequest,
    method="POST",
    path="/planning/recent-sessions",
    tags=["planning"],
)
async def get_recent_sessions(
    body: GetRecentSessionsRequest,
    ctx: RequestContext = Depends(get_request_context),
) -> Dict[str, Any]:
    try:
        limit = body.limit or get_settings().get_planning_settings()["recent_sessions_limit"]
        sessions = await get_planning_service().recent_sessions(ctx, limit)
        return {
            "success": True,
            "data": [PlanningSession.dump_row(s) for s in sessions],
            "message": "",
        }
    except Exception as e:
        logger.error(f"Failed to get recent sessions: {e}", exc_info=True)
        return {"success": False, "message": f"Failed to get recent sessions: {str(e)}"}


@api_handler(
    body=DeleteSessionRequest,
    method="POST",
    path="/planning/delete-session",
    tags=["planning"],
)
async def delete_planning_session(
    body: DeleteSessionRequest,
    ctx: RequestContext = Depends(get_request_context),
) -> Dict[str, Any]:
    try:
        await get_planning_service().delete_session(ctx, body.session_id)
        return {
            "success": True,
            "data": {"sessionId": body.session_id},
            "message": "Session deleted",
        }
    except ValueError as e:
        logger.warning(f"Failed to delete session {body.session_id}: {e}")
        return {"success": False, "message": str(e), "error": str(e)}
    except Exception as e:
        logger.error(f"Failed to delete session {body.session_id}: {e}", exc_info=True)
        return {"success": False, "message": f"Failed to delete session: {str(e)}"}
