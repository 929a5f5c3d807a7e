"""
Chat Stream Manager
Tracks the in-flight model call of each planning session.
"""

from typing import List, Optional, Set

from core.exceptions import StreamBusyError
from core.logger import get_logger

logger = get_logger(__name__)


class ChatStreamManager:
    """
    Manage streaming model calls on a per-session basis.

    Guarantees:
    1. At most one model call is in flight per planning session.
    2. Different sessions can stream concurrently.
    3. A second call on a busy session is rejected rather than queued.
    """

    def __init__(self):
        self._active_sessions: Set[str] = set()

    def is_streaming(self, session_id: str) -> bool:
        """Return True when the session currently has a model call in flight."""
        return session_id in self._active_sessions

    def begin(self, session_id: str) -> None:
        """
        Mark a session as streaming.

        Raises:
            StreamBusyError: if the session already has a call in flight
        """
        if session_id in self._active_sessions:
            logger.warning(f"Session {session_id} already has an active stream")
            raise StreamBusyError("A reply is already being generated for this session")
        self._active_sessions.add(session_id)
        logger.debug(f"Stream started for session {session_id}")

    def end(self, session_id: str) -> None:
        """Release the session (no-op when it was not streaming)."""
        if session_id in self._active_sessions:
            self._active_sessions.discard(session_id)
            logger.debug(f"Stream finished for session {session_id}")

    def get_active_session_ids(self) -> List[str]:
        """Return a list of session IDs that are streaming."""
        return sorted(self._active_sessions)


# Global singleton
_stream_manager: Optional[ChatStreamManager] = None


def get_stream_manager() -> ChatStreamManager:
    """Get the global stream manager instance."""
    global _stream_manager
    if _stream_manager is None:
        _stream_manager = ChatStreamManager()
    return _stream_manager
