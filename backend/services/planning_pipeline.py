"""
Plan-to-calendar pipeline

Drives a planning conversation with the language model, detects the
structured schedule in its replies and, on explicit confirmation, writes the
schedule to the calendar as one batch.

The persisted planning session is the source of truth for the transcript;
a PlanningConversation is a read-through cache hydrated from it.

States:
    greeting            local greeting shown, no user input yet
    conversing          at least one exchange, no schedule on the table
    schedule_proposed   the model produced a valid schedule awaiting confirmation
    confirmed           the proposed schedule was saved
"""

from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum
from typing import Any, AsyncIterator, Dict, List, Optional, Tuple

from core.context import RequestContext
from core.exceptions import NotFoundError, StreamBusyError, ValidationError
from core.logger import get_logger
from llm.client import TextStreamer
from llm.prompts import (
    SAVE_ERROR_MESSAGE,
    STREAM_ERROR_MESSAGE,
    build_system_prompt,
    confirmation_message,
    greeting_message,
    restart_message,
)
from models.entities import MessageRole

from .chat_stream_manager import ChatStreamManager
from .habit_service import validate_date
from .schedule_parser import ProposedSchedule, expand_schedule, parse_schedule

logger = get_logger(__name__)


class PlanningState(str, Enum):
    greeting = "greeting"
    conversing = "conversing"
    schedule_proposed = "schedule_proposed"
    confirmed = "confirmed"


@dataclass
class ConfirmResult:
    saved: bool
    event_ids: List[str] = field(default_factory=list)


class PlanningConversation:
    """One user's planning conversation for one planning date"""

    def __init__(
        self,
        db,
        streamer: TextStreamer,
        stream_manager: ChatStreamManager,
        user_id: str,
        planning_date: str,
    ):
        self.db = db
        self.streamer = streamer
        self.stream_manager = stream_manager
        self.user_id = user_id
        self.planning_date = validate_date(planning_date)

        self.session_id: Optional[str] = None
        self.messages: List[Dict[str, Any]] = []
        self.proposed_schedule: Optional[ProposedSchedule] = None
        self.state = PlanningState.greeting

    # ============ Lifecycle ============

    async def start(self) -> "PlanningConversation":
        """Load (or create) the persisted session and hydrate the transcript"""
        session = await self.db.planning_sessions.get_or_create(
            self.user_id, self.planning_date
        )
        self.session_id = session["id"]
        self.messages = [
            {"role": m["role"], "content": m["content"], "timestamp": m["timestamp"]}
            for m in session["messages"]
        ]

        if not self.messages:
            await self._append(MessageRole.assistant, greeting_message(self.planning_date))
            self.state = PlanningState.greeting
            return self

        self._restore_state(session["is_complete"])
        logger.debug(
            f"Hydrated planning session {self.session_id} "
            f"({len(self.messages)} messages, state={self.state.value})"
        )
        return self

    def _restore_state(self, is_complete: bool) -> None:
        if is_complete:
            self.state = PlanningState.confirmed
            return

        confirmed_notice = confirmation_message(self.planning_date)
        for message in reversed(self.messages):
            if message["role"] == MessageRole.assistant.value:
                if message["content"] == confirmed_notice:
                    # Nothing proposed since the last save
                    break
                schedule = parse_schedule(message["content"])
                if schedule is not None:
                    self.proposed_schedule = schedule
                    self.state = PlanningState.schedule_proposed
                    return

        has_user_input = any(m["role"] == MessageRole.user.value for m in self.messages)
        self.state = PlanningState.conversing if has_user_input else PlanningState.greeting

    @property
    def is_streaming(self) -> bool:
        return self.session_id is not None and self.stream_manager.is_streaming(
            self.session_id
        )

    # ============ Transcript ============

    async def _append(self, role: MessageRole, content: str) -> Dict[str, Any]:
        stored = await self.db.planning_sessions.add_message(
            self.session_id, role.value, content
        )
        self.messages.append(stored)
        return stored

    async def _append_best_effort(self, role: MessageRole, content: str) -> None:
        """Append an inline notice; keep it in memory even if persisting fails"""
        try:
            await self._append(role, content)
        except Exception as e:
            logger.warning(f"Failed to persist message for session {self.session_id}: {e}")
            self.messages.append({"role": role.value, "content": content, "timestamp": 0})

    def _discard(self, message: Dict[str, Any]) -> None:
        self.messages = [m for m in self.messages if m is not message]

    def transcript(self) -> List[Dict[str, str]]:
        return [{"role": m["role"], "content": m["content"]} for m in self.messages]

    # ============ Conversing ============

    async def _build_system_prompt(self) -> str:
        habits = await self.db.habits.list_active(self.user_id)
        events = await self.db.events.list_by_date(self.user_id, self.planning_date)
        return build_system_prompt(habits=habits, existing_events=events)

    async def send_message(self, text: str) -> AsyncIterator[str]:
        """
        Submit user text and return the reply stream

        The user message is persisted before the model is called, so it
        survives a failed call. The returned iterator yields reply chunks in
        arrival order and holds the session's stream slot until it finishes.

        Raises:
            ValidationError: empty text
            StreamBusyError: a reply is already streaming for this session
        """
        if self.session_id is None:
            raise NotFoundError("Planning conversation not started")
        text = (text or "").strip()
        if not text:
            raise ValidationError("Message cannot be empty")

        self.stream_manager.begin(self.session_id)
        try:
            await self._append(MessageRole.user, text)
            if self.state == PlanningState.confirmed:
                await self.db.planning_sessions.reopen(self.session_id)
                logger.info(f"Planning session {self.session_id} reopened after confirm")
            self._settle_state(None)
            history = self.transcript()
            system = await self._build_system_prompt()
        except Exception:
            self.stream_manager.end(self.session_id)
            raise

        return self._stream_reply(system, history)

    async def _stream_reply(
        self, system: str, history: List[Dict[str, str]]
    ) -> AsyncIterator[str]:
        # The single in-flight assistant message every chunk is appended to
        reply = {"role": MessageRole.assistant.value, "content": "", "timestamp": 0}
        self.messages.append(reply)
        try:
            try:
                async for chunk in self.streamer.stream_text(system, history):
                    reply["content"] += chunk
                    yield chunk
            except Exception as e:
                logger.error(
                    f"Model call failed for session {self.session_id}: {e}", exc_info=True
                )
                self._discard(reply)
                yield await self._fail_reply()
                return

            self._discard(reply)
            try:
                await self._append(MessageRole.assistant, reply["content"])
            except Exception as e:
                logger.error(
                    f"Failed to persist reply for session {self.session_id}: {e}",
                    exc_info=True,
                )
                yield await self._fail_reply()
                return

            self._settle_state(parse_schedule(reply["content"]))
            logger.debug(
                f"Reply completed for session {self.session_id} "
                f"({len(reply['content'])} chars, state={self.state.value})"
            )
        finally:
            if any(m is reply for m in self.messages):
                # Closed or cancelled mid-reply; the partial text was never persisted
                self._discard(reply)
                self._settle_state(None)
                logger.info(
                    f"Reply abandoned for session {self.session_id} "
                    f"after {len(reply['content'])} chars"
                )
            self.stream_manager.end(self.session_id)

    async def _fail_reply(self) -> str:
        """Replace the reply with the inline error notice"""
        await self._append_best_effort(MessageRole.assistant, STREAM_ERROR_MESSAGE)
        self._settle_state(None)
        return STREAM_ERROR_MESSAGE

    def _settle_state(self, schedule: Optional[ProposedSchedule]) -> None:
        """A new valid schedule replaces the proposal; otherwise the proposal stands"""
        if schedule is not None:
            self.proposed_schedule = schedule
            logger.info(
                f"Schedule proposed for {self.planning_date}: {len(schedule.events)} events"
            )
        self.state = (
            PlanningState.schedule_proposed
            if self.proposed_schedule is not None
            else PlanningState.conversing
        )

    # ============ Confirm / reset ============

    async def confirm(self) -> ConfirmResult:
        """
        Save the proposed schedule to the calendar as one batch

        On failure an apology is appended and the proposal is kept for a retry.

        Raises:
            ValidationError: nothing has been proposed
            StreamBusyError: a reply is still streaming
        """
        if self.proposed_schedule is None:
            raise ValidationError("No schedule has been proposed yet")
        if self.is_streaming:
            raise StreamBusyError("Wait for the current reply to finish")

        events = expand_schedule(self.proposed_schedule, self.planning_date)
        try:
            event_ids = await self.db.events.create_many(self.user_id, events)
        except Exception as e:
            logger.error(
                f"Failed to save schedule for {self.planning_date}: {e}", exc_info=True
            )
            await self._append_best_effort(MessageRole.assistant, SAVE_ERROR_MESSAGE)
            self.state = PlanningState.schedule_proposed
            return ConfirmResult(saved=False)

        await self._append_best_effort(
            MessageRole.assistant, confirmation_message(self.planning_date)
        )
        await self.db.planning_sessions.complete(self.session_id)
        self.proposed_schedule = None
        self.state = PlanningState.confirmed
        logger.info(f"Schedule saved for {self.planning_date}: {len(event_ids)} events")
        return ConfirmResult(saved=True, event_ids=event_ids)

    async def reset(self) -> None:
        """
        Start over: drop the transcript and proposal, greet again

        Events already saved to the calendar are left untouched.
        """
        if self.is_streaming:
            raise StreamBusyError("Wait for the current reply to finish")

        await self.db.planning_sessions.clear_messages(self.session_id)
        self.messages = []
        self.proposed_schedule = None
        await self._append(MessageRole.assistant, restart_message(self.planning_date))
        self.state = PlanningState.greeting

    def snapshot(self) -> Dict[str, Any]:
        """Client-facing view of the conversation (camelCase keys)"""
        return {
            "sessionId": self.session_id,
            "planningDate": self.planning_date,
            "state": self.state.value,
            "isStreaming": self.is_streaming,
            "messages": [dict(m) for m in self.messages],
            "proposedSchedule": self.proposed_schedule.model_dump()
            if self.proposed_schedule
            else None,
        }


class PlanningService:
    """Entry point for planning conversations, scoped by RequestContext"""

    def __init__(
        self,
        db,
        streamer: TextStreamer,
        stream_manager: Optional[ChatStreamManager] = None,
        default_days_ahead: int = 1,
    ):
        self.db = db
        self.streamer = streamer
        self.stream_manager = stream_manager or ChatStreamManager()
        self.default_days_ahead = default_days_ahead
        self._conversations: Dict[Tuple[str, str], PlanningConversation] = {}

    def default_planning_date(self, ctx: RequestContext) -> str:
        return (ctx.today() + timedelta(days=self.default_days_ahead)).isoformat()

    async def get_conversation(
        self, ctx: RequestContext, planning_date: Optional[str] = None
    ) -> PlanningConversation:
        """Cached conversation for (user, date), hydrated from the store on first use"""
        planning_date = validate_date(planning_date or self.default_planning_date(ctx))
        key = (ctx.user_id, planning_date)
        conversation = self._conversations.get(key)
        if conversation is None:
            conversation = PlanningConversation(
                db=self.db,
                streamer=self.streamer,
                stream_manager=self.stream_manager,
                user_id=ctx.user_id,
                planning_date=planning_date,
            )
            await conversation.start()
            self._conversations[key] = conversation
        return conversation

    async def get_session(
        self, ctx: RequestContext, planning_date: str
    ) -> Optional[Dict[str, Any]]:
        return await self.db.planning_sessions.get(ctx.user_id, validate_date(planning_date))

    async def recent_sessions(
        self, ctx: RequestContext, limit: int = 10
    ) -> List[Dict[str, Any]]:
        return await self.db.planning_sessions.list_recent(ctx.user_id, limit)

    async def delete_session(self, ctx: RequestContext, session_id: str) -> None:
        session = await self.db.planning_sessions.get_by_id(session_id)
        if not session or session["user_id"] != ctx.user_id:
            raise NotFoundError("Session not found")
        if self.stream_manager.is_streaming(session_id):
            raise StreamBusyError("Wait for the current reply to finish")

        await self.db.planning_sessions.delete(session_id)
        self._conversations.pop((ctx.user_id, session["planning_date"]), None)
        logger.info(f"Planning session deleted: {session_id}")


# Global service instance, rebuilt when the global database is switched
_planning_service: Optional[PlanningService] = None


def get_planning_service() -> PlanningService:
    """Get the PlanningService wired to the global database, LLM client and stream manager"""
    global _planning_service
    from core.db import get_db
    from core.settings import get_settings
    from llm.client import get_llm_client

    from .chat_stream_manager import get_stream_manager

    db = get_db()
    if _planning_service is None or _planning_service.db is not db:
        _planning_service = PlanningService(
            db=db,
            streamer=get_llm_client(),
            stream_manager=get_stream_manager(),
            default_days_ahead=get_settings().get_planning_settings()["default_days_ahead"],
        )
    return _planning_service


def set_planning_service(service: Optional[PlanningService]) -> None:
    """Install a preconfigured service (e.g. with a different text streamer)"""
    global _planning_service
    _planning_service = service
