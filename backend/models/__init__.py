"""
Models for API communication
Entities, request bodies and common operation responses
"""

from .base import (
    BaseModel,
    OperationDataResponse,
    OperationResponse,
)
from .entities import (
    CalendarEvent,
    CalendarEventCreate,
    EventCategory,
    EventSource,
    Habit,
    HabitFrequency,
    HabitLog,
    HabitStats,
    MessageRole,
    PlanningMessage,
    PlanningSession,
    PreferredTime,
    User,
)
from .requests import (
    CompleteOnboardingRequest,
    CreateEventRequest,
    CreateHabitRequest,
    DeleteEventsByDateRequest,
    DeleteSessionRequest,
    EventIdRequest,
    GetEventsByDateRangeRequest,
    GetEventsByDateRequest,
    GetHabitLogsByDateRequest,
    GetHabitStatsRequest,
    GetRecentSessionsRequest,
    HabitIdRequest,
    LogHabitCompletionRequest,
    MarkEventCompleteRequest,
    PlanningDateRequest,
    SendPlanningMessageRequest,
    UpdateEventRequest,
    UpdateHabitRequest,
    UpdatePlanningTimeRequest,
    UpdateProfileRequest,
)

__all__ = [
    # Base
    "BaseModel",
    "OperationResponse",
    "OperationDataResponse",
    # Entities
    "User",
    "Habit",
    "HabitLog",
    "HabitStats",
    "CalendarEvent",
    "CalendarEventCreate",
    "PlanningMessage",
    "PlanningSession",
    "HabitFrequency",
    "PreferredTime",
    "EventCategory",
    "EventSource",
    "MessageRole",
    # Users
    "UpdatePlanningTimeRequest",
    "CompleteOnboardingRequest",
    "UpdateProfileRequest",
    # Habits
    "CreateHabitRequest",
    "UpdateHabitRequest",
    "HabitIdRequest",
    "LogHabitCompletionRequest",
    "GetHabitLogsByDateRequest",
    "GetHabitStatsRequest",
    # Events
    "GetEventsByDateRequest",
    "GetEventsByDateRangeRequest",
    "CreateEventRequest",
    "UpdateEventRequest",
    "EventIdRequest",
    "MarkEventCompleteRequest",
    "DeleteEventsByDateRequest",
    # Planning
    "PlanningDateRequest",
    "SendPlanningMessageRequest",
    "GetRecentSessionsRequest",
    "DeleteSessionRequest",
]
