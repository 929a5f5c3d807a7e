"""
Data entity model definitions
Define core data structures in the system
"""

from enum import Enum
from typing import List, Optional

from .base import BaseModel

# ============ Enumerations ============


class HabitFrequency(str, Enum):
    daily = "daily"
    weekdays = "weekdays"
    weekends = "weekends"
    weekly = "weekly"
    custom = "custom"


class PreferredTime(str, Enum):
    morning = "morning"
    afternoon = "afternoon"
    evening = "evening"
    flexible = "flexible"


class EventCategory(str, Enum):
    work = "work"
    meal = "meal"
    sleep = "sleep"
    habit = "habit"
    planning = "planning"
    personal = "personal"
    other = "other"


class EventSource(str, Enum):
    """Provenance of a calendar event"""

    ai = "ai"
    user = "user"


class MessageRole(str, Enum):
    user = "user"
    assistant = "assistant"


# ============ Users ============


class User(BaseModel):
    """User profile linked to an external identity"""

    id: str
    external_id: str
    email: str
    name: Optional[str] = None
    planning_time: Optional[str] = None  # HH:MM
    timezone: Optional[str] = None  # e.g. "America/New_York"
    onboarding_complete: bool = False
    created_at: int  # epoch milliseconds


# ============ Habits ============


class Habit(BaseModel):
    """Habit with streak counters derived from its logs"""

    id: str
    user_id: str
    name: str
    description: Optional[str] = None
    frequency: HabitFrequency
    custom_days: Optional[List[int]] = None  # 0=Sunday .. 6=Saturday
    preferred_time: Optional[PreferredTime] = None
    duration_minutes: int
    current_streak: int = 0
    best_streak: int = 0
    is_active: bool = True
    color: Optional[str] = None
    created_at: int


class HabitLog(BaseModel):
    """Daily completion record, at most one per (habit, date)"""

    id: str
    habit_id: str
    user_id: str
    date: str  # YYYY-MM-DD
    completed: bool
    notes: Optional[str] = None
    created_at: int


class HabitStats(BaseModel):
    completed: int
    total: int
    percentage: int


# ============ Calendar ============


class CalendarEventCreate(BaseModel):
    """Fields supplied when creating an event (singly or in a batch)"""

    title: str
    description: Optional[str] = None
    start_time: str  # YYYY-MM-DDTHH:MM:SS local
    end_time: str
    date: Optional[str] = None  # derived from start_time when omitted
    category: EventCategory = EventCategory.other
    is_recurring: bool = False
    recurring_pattern: Optional[str] = None
    created_by: EventSource = EventSource.user


class CalendarEvent(BaseModel):
    """Calendar event / time block"""

    id: str
    user_id: str
    title: str
    description: Optional[str] = None
    start_time: str
    end_time: str
    date: str
    category: EventCategory
    is_recurring: bool = False
    recurring_pattern: Optional[str] = None
    created_by: EventSource
    completed: bool = False
    created_at: int


# ============ Planning ============


class PlanningMessage(BaseModel):
    role: MessageRole
    content: str
    timestamp: int


class PlanningSession(BaseModel):
    """Persisted planning conversation for one (user, planning date)"""

    id: str
    user_id: str
    planning_date: str
    messages: List[PlanningMessage] = []
    is_complete: bool = False
    created_at: int
    updated_at: int
