"""
Request models for the HTTP handlers
All accept camelCase (client) or snake_case keys
"""

from typing import List, Optional

from pydantic import Field

from .base import BaseModel
from .entities import EventCategory, HabitFrequency, PreferredTime

# ============ Users ============


class UpdatePlanningTimeRequest(BaseModel):
    planning_time: str = Field(pattern=r"^\d{2}:\d{2}$")


class CompleteOnboardingRequest(BaseModel):
    planning_time: str = Field(pattern=r"^\d{2}:\d{2}$")
    timezone: str


class UpdateProfileRequest(BaseModel):
    name: Optional[str] = None
    timezone: Optional[str] = None


# ============ Habits ============


class CreateHabitRequest(BaseModel):
    name: str
    description: Optional[str] = None
    frequency: HabitFrequency = HabitFrequency.daily
    custom_days: Optional[List[int]] = None
    preferred_time: Optional[PreferredTime] = None
    duration_minutes: int
    color: Optional[str] = None


class UpdateHabitRequest(BaseModel):
    habit_id: str
    name: Optional[str] = None
    description: Optional[str] = None
    frequency: Optional[HabitFrequency] = None
    custom_days: Optional[List[int]] = None
    preferred_time: Optional[PreferredTime] = None
    duration_minutes: Optional[int] = None
    color: Optional[str] = None
    is_active: Optional[bool] = None


class HabitIdRequest(BaseModel):
    habit_id: str


class LogHabitCompletionRequest(BaseModel):
    habit_id: str
    date: str
    completed: bool
    notes: Optional[str] = None


class GetHabitLogsByDateRequest(BaseModel):
    date: str


class GetHabitStatsRequest(BaseModel):
    habit_id: str
    start_date: str
    end_date: str


# ============ Calendar events ============


class GetEventsByDateRequest(BaseModel):
    date: str


class GetEventsByDateRangeRequest(BaseModel):
    start_date: str
    end_date: str


class CreateEventRequest(BaseModel):
    title: str
    description: Optional[str] = None
    start_time: str
    end_time: str
    date: Optional[str] = None
    category: EventCategory = EventCategory.other
    is_recurring: bool = False
    recurring_pattern: Optional[str] = None


class UpdateEventRequest(BaseModel):
    event_id: str
    title: Optional[str] = None
    description: Optional[str] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    category: Optional[EventCategory] = None
    completed: Optional[bool] = None


class EventIdRequest(BaseModel):
    event_id: str


class MarkEventCompleteRequest(BaseModel):
    event_id: str
    completed: bool


class DeleteEventsByDateRequest(BaseModel):
    date: str


# ============ Planning ============


class PlanningDateRequest(BaseModel):
    """planning_date defaults to tomorrow"""

    planning_date: Optional[str] = None


class SendPlanningMessageRequest(BaseModel):
    planning_date: Optional[str] = None
    content: str


class GetRecentSessionsRequest(BaseModel):
    limit: Optional[int] = None


class DeleteSessionRequest(BaseModel):
    session_id: str
