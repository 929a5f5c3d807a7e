"""
Calendar event API handlers

Endpoints:
- POST /events/by-date - Events of one day, by start time
- POST /events/by-date-range - Events over an inclusive date range
- POST /events/create - Create a user event
- POST /events/update - Patch an event
- POST /events/mark-complete - Toggle completion
- POST /events/delete - Delete one event
- POST /events/delete-by-date - Delete all of the caller's events on a day
"""

from typing import Any, Dict

from fastapi import Depends

from core.auth import get_request_context
from core.context import RequestContext
from core.db import get_db
from core.exceptions import NotFoundError
from core.logger import get_logger
from models.entities import CalendarEvent, CalendarEventCreate, EventSource
from models.requests import (
    CreateEventRequest,
    DeleteEventsByDateRequest,
    EventIdRequest,
    GetEventsByDateRangeRequest,
    GetEventsByDateRequest,
    MarkEventCompleteRequest,
    UpdateEventRequest,
)
from services.habit_service import validate_date

from . import api_handler

logger = get_logger(__name__)


async def _get_owned_event(ctx: RequestContext, event_id: str) -> Dict[str, Any]:
    event = await get_db().events.get_by_id(event_id)
    if not event or event["user_id"] != ctx.user_id:
        raise NotFoundError(f"Event {event_id} not found")
    return event


@api_handler(body=GetEventsByDateRequest, method="POST", path="/events/by-date", tags=["events"])
async def get_events_by_date(
    body: GetEventsByDateRequest,
    ctx: RequestContext = Depends(get_request_context),
) -> Dict[str, Any]:
    try:
        events = await get_db().events.list_by_date(ctx.user_id, validate_date(body.date))
        return {
            "success": True,
            "data": [CalendarEvent.dump_row(e) for e in events],
            "message": "",
        }
    except ValueError as e:
        logger.warning(f"Failed to get events for {body.date}: {e}")
        return {"success": False, "message": str(e), "error": str(e)}
    except Exception as e:
        logger.error(f"Failed to get events for {body.date}: {e}", exc_info=True)
        return {"success": False, "message": f"Failed to get events: {str(e)}"}


@api_handler(
    body=GetEventsByDateRangeRequest,
    method="POST",
    path="/events/by-date-range",
    tags=["events"],
)
async def get_events_by_date_range(
    body: GetEventsByDateRangeRequest,
    ctx: RequestContext = Depends(get_request_context),
) -> Dict[str, Any]:
    try:
        events = await get_db().events.list_by_date_range(
            ctx.user_id, validate_date(body.start_date), validate_date(body.end_date)
        )
        return {
            "success": True,
            "data": [CalendarEvent.dump_row(e) for e in events],
            "message": "",
        }
    except ValueError as e:
        logger.warning(f"Failed to get events {body.start_date}..{body.end_date}: {e}")
        return {"success": False, "message": str(e), "error": str(e)}
    except Exception as e:
        logger.error(
            f"Failed to get events {body.start_date}..{body.end_date}: {e}", exc_info=True
        )
        return {"success": False, "message": f"Failed to get events: {str(e)}"}


@api_handler(body=CreateEventRequest, method="POST", path="/events/create", tags=["events"])
async def create_event(
    body: CreateEventRequest,
    ctx: RequestContext = Depends(get_request_context),
) -> Dict[str, Any]:
    """
    Create a calendar event authored by the user

    Returns:
        The stored event; its date is taken from start_time when omitted
    """
    try:
        event = CalendarEventCreate(
            **body.model_dump(by_alias=False), created_by=EventSource.user
        )
        db = get_db()
        event_id = await db.events.create(ctx.user_id, event)
        return {
            "success": True,
            "data": CalendarEvent.dump_row(await db.events.get_by_id(event_id)),
            "message": "Event created successfully",
        }
    except ValueError as e:
        logger.warning(f"Failed to create event: {e}")
        return {"success": False, "message": str(e), "error": str(e)}
    except Exception as e:
        logger.error(f"Failed to create event: {e}", exc_info=True)
        return {"success": False, "message": f"Failed to create event: {str(e)}"}


@api_handler(body=UpdateEventRequest, method="POST", path="/events/update", tags=["events"])
async def update_event(
    body: UpdateEventRequest,
    ctx: RequestContext = Depends(get_request_context),
) -> Dict[str, Any]:
    try:
        await _get_owned_event(ctx, body.event_id)
        fields = body.model_dump(by_alias=False, exclude={"event_id"}, exclude_none=True)
        if "category" in fields:
            fields["category"] = fields["category"].value

        db = get_db()
        await db.events.update(body.event_id, **fields)
        return {
            "success": True,
            "data": CalendarEvent.dump_row(await db.events.get_by_id(body.event_id)),
            "message": "Event updated successfully",
        }
    except ValueError as e:
        logger.warning(f"Failed to update event {body.event_id}: {e}")
        return {"success": False, "message": str(e), "error": str(e)}
    except Exception as e:
        logger.error(f"Failed to update event {body.event_id}: {e}", exc_info=True)
        return {"success": False, "message": f"Failed to update event: {str(e)}"}


@api_handler(
    body=MarkEventCompleteRequest,
    method="POST",
    path="/events/mark-complete",
    tags=["events"],
)
async def mark_event_complete(
    body: MarkEventCompleteRequest,
    ctx: RequestContext = Depends(get_request_context),
) -> Dict[str, Any]:
    try:
        await _get_owned_event(ctx, body.event_id)
        await get_db().events.mark_complete(body.event_id, body.completed)
        return {
            "success": True,
            "data": {"eventId": body.event_id, "completed": body.completed},
            "message": "",
        }
    except ValueError as e:
        logger.warning(f"Failed to mark event {body.event_id}: {e}")
        return {"success": False, "message": str(e), "error": str(e)}
    except Exception as e:
        logger.error(f"Failed to mark event {body.event_id}: {e}", exc_info=True)
        return {"success": False, "message": f"Failed to mark event: {str(e)}"}


@api_handler(body=EventIdRequest, method="POST", path="/events/delete", tags=["events"])
async def delete_event(
    body: EventIdRequest,
    ctx: RequestContext = Depends(get_request_context),
) -> Dict[str, Any]:
    try:
        await _get_owned_event(ctx, body.event_id)
        await get_db().events.delete(body.event_id)
        return {"success": True, "data": {"eventId": body.event_id}, "message": "Event deleted"}
    except ValueError as e:
        logger.warning(f"Failed to delete event {body.event_id}: {e}")
        return {"success": False, "message": str(e), "error": str(e)}
    except Exception as e:
        logger.error(f"Failed to delete event {body.event_id}: {e}", exc_info=True)
        return {"success": False, "message": f"Failed to delete event: {str(e)}"}


@api_handler(
    body=DeleteEventsByDateRequest,
    method="POST",
    path="/events/delete-by-date",
    tags=["events"],
)
async def delete_events_by_date(
    body: DeleteEventsByDateRequest,
    ctx: RequestContext = Depends(get_request_context),
) -> Dict[str, Any]:
    try:
        deleted = await get_db().events.delete_by_date(ctx.user_id, validate_date(body.date))
        logger.info(f"Deleted {deleted} events on {body.date} for user {ctx.user_id}")
        return {
            "success": True,
            "data": {"date": body.date, "deletedCount": deleted},
            "message": f"Deleted {deleted} events",
        }
    except ValueError as e:
        logger.warning(f"Failed to delete events on {body.date}: {e}")
        return {"success": False, "message": str(e), "error": str(e)}
    except Exception as e:
        logger.error(f"Failed to delete events on {body.date}: {e}", exc_info=True)
        return {"success": False, "message": f"Failed to delete events: {str(e)}"}
