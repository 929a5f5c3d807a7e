"""
Planning prompt assembly

The system prompt is the planning persona plus optional context sections for
the user's habits and events already on the planning date.
"""

from datetime import date
from typing import Any, Mapping, Optional, Sequence

PLANNING_SYSTEM_PROMPT = """You are a warm, practical day-planning assistant. You help the user plan one specific day through a short conversation.

## How to plan
Gather what you need conversationally, one or two questions at a time:
1. Fixed commitments (work or school hours, meetings, appointments)
2. Special events or deadlines
3. Energy patterns (when they focus best, when they are tired)
4. The habits they are building, and good times for them
5. Meals (breakfast, lunch, dinner) and sleep/wake times (7-8 hours of sleep)

## Guidelines
- Keep it conversational, not a form
- Schedule the user's habits proactively
- Keep timeframes realistic and leave buffer time between activities
- Respect their energy levels

## Output format
Once the user confirms they are happy with the plan, output it as a ```json code block:

```json
{
  "events": [
    {
      "title": "Event name",
      "startTime": "HH:MM",
      "endTime": "HH:MM",
      "category": "work|meal|sleep|habit|planning|personal|other",
      "description": "Optional description"
    }
  ],
  "summary": "Brief summary of the day plan"
}
```

Only output this block after the user has confirmed the plan. Until then, keep the conversation going."""


def _format_habits(habits: Sequence[Mapping[str, Any]]) -> str:
    lines = ["", "", "## User's Habits to Schedule:"]
    for habit in habits:
        preferred = habit.get("preferred_time") or "flexible"
        lines.append(
            f"- {habit['name']} ({habit['duration_minutes']} mins, prefers {preferred} time)"
        )
    return "\n".join(lines) + "\n"


def _format_events(events: Sequence[Mapping[str, Any]]) -> str:
    lines = ["", "", "## Already Scheduled Events:"]
    for event in events:
        lines.append(f"- {event['title']}: {event['start_time']} - {event['end_time']}")
    return "\n".join(lines) + "\n"


def build_system_prompt(
    habits: Optional[Sequence[Mapping[str, Any]]] = None,
    existing_events: Optional[Sequence[Mapping[str, Any]]] = None,
) -> str:
    """
    Build the system prompt for one planning turn

    Args:
        habits: Records with name, duration_minutes, preferred_time
        existing_events: Records with title, start_time, end_time

    Returns:
        Persona prompt followed by the non-empty context sections
    """
    prompt = PLANNING_SYSTEM_PROMPT
    if habits:
        prompt += _format_habits(habits)
    if existing_events:
        prompt += _format_events(existing_events)
    return prompt


def format_planning_date(planning_date: str) -> str:
    """'2024-06-02' -> 'Sunday, June 2'"""
    day = date.fromisoformat(planning_date)
    return f"{day:%A, %B} {day.day}"


def greeting_message(planning_date: str) -> str:
    label = format_planning_date(planning_date)
    return (
        f"Hi! I'm here to help you plan **{label}**.\n\n"
        "First things first: do you have work or school that day? "
        "If so, what time do you start and finish?"
    )


def restart_message(planning_date: str) -> str:
    label = format_planning_date(planning_date)
    return f"Let's start fresh!\n\nWhat would you like to plan for **{label}**? Do you have work that day?"


def confirmation_message(planning_date: str) -> str:
    label = format_planning_date(planning_date)
    return (
        f"**Your schedule for {label} is saved!**\n\n"
        "You can view it in your calendar. Have a productive day!"
    )


STREAM_ERROR_MESSAGE = "Sorry, I encountered an error. Please try again."
SAVE_ERROR_MESSAGE = "Sorry, I had trouble saving your schedule. Please try again."
