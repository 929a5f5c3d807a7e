"""
Structured schedule decoding

The model embeds its final plan as a ```json block holding
{"events": [{title, startTime, endTime, category, description?}], "summary"?}.
Anything that does not decode and validate is treated as "no schedule yet".
"""

import json
import re
from typing import Any, List, Optional

from pydantic import ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from core.json_parser import extract_fenced_json
from core.logger import get_logger
from models.base import BaseModel
from models.entities import CalendarEventCreate, EventCategory, EventSource

logger = get_logger(__name__)

_CLOCK_TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})$")


class ProposedEvent(BaseModel):
    """One event of a model-proposed schedule (times are HH:MM on the planning date)"""

    model_config = ConfigDict(extra="ignore")

    title: str = Field(min_length=1)
    start_time: str
    end_time: str
    category: EventCategory = EventCategory.other
    description: Optional[str] = None

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def _normalize_clock_time(cls, value: Any) -> str:
        match = _CLOCK_TIME_RE.match(str(value).strip()) if isinstance(value, str) else None
        if not match:
            raise ValueError(f"expected HH:MM, got {value!r}")
        hour, minute = int(match.group(1)), int(match.group(2))
        if hour > 23 or minute > 59:
            raise ValueError(f"time out of range: {value!r}")
        return f"{hour:02d}:{minute:02d}"

    @field_validator("category", mode="before")
    @classmethod
    def _default_category(cls, value: Any) -> str:
        if isinstance(value, str) and value in EventCategory.__members__:
            return value
        return EventCategory.other.value


class ProposedSchedule(BaseModel):
    model_config = ConfigDict(extra="ignore")

    events: List[ProposedEvent] = Field(min_length=1)
    summary: Optional[str] = None


def parse_schedule(text: str) -> Optional[ProposedSchedule]:
    """
    Decode the structured schedule embedded in a model reply

    Args:
        text: Full assistant reply

    Returns:
        ProposedSchedule, or None when there is no block or it fails to
        decode/validate (never raises)
    """
    block = extract_fenced_json(text)
    if block is None:
        return None

    try:
        payload = json.loads(block)
        return ProposedSchedule.model_validate(payload)
    except (json.JSONDecodeError, PydanticValidationError) as e:
        logger.debug(f"No valid schedule in response: {e}")
        return None


def expand_schedule(
    schedule: ProposedSchedule, planning_date: str
) -> List[CalendarEventCreate]:
    """
    Turn proposed HH:MM events into concrete calendar events on planning_date

    Events are tagged as AI-created and non-recurring.
    """
    return [
        CalendarEventCreate(
            title=event.title,
            description=event.description,
            start_time=f"{planning_date}T{event.start_time}:00",
            end_time=f"{planning_date}T{event.end_time}:00",
            date=planning_date,
            category=event.category,
            is_recurring=False,
            created_by=EventSource.ai,
        )
        for event in schedule.events
    ]
