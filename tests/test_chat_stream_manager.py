import pytest

from core.exceptions import StreamBusyError
from services.chat_stream_manager import ChatStreamManager


def test_one_stream_per_session():
    manager = ChatStreamManager()
    manager.begin("s1")

    with pytest.raises(StreamBusyError):
        manager.begin("s1")

    manager.begin("s2")
    assert manager.get_active_session_ids() == ["s1", "s2"]


def test_end_releases_session():
    manager = ChatStreamManager()
    manager.begin("s1")

    manager.end("s1")
    manager.end("s1")

    assert not manager.is_streaming("s1")
    manager.begin("s1")
    assert manager.is_streaming("s1")
