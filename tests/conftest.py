"""
Shared fixtures

PLANNER_CONFIG must point at the test config before any backend module is
imported, since the logger reads its config at import time.
"""

import os
import tempfile
from pathlib import Path

_TEST_HOME = Path(tempfile.mkdtemp(prefix="planner-tests-"))
_TEST_CONFIG = _TEST_HOME / "config.toml"
_TEST_CONFIG.write_text(
    f"""
[logging]
level = "DEBUG"
logs_dir = "{(_TEST_HOME / 'logs').as_posix()}"
max_file_size = "1MB"
backup_count = 1

[database]
path = "{(_TEST_HOME / 'default.db').as_posix()}"

[llm]
base_url = "http://llm.test/v1"
model = "test-model"
max_tokens = 256
temperature = 0.0
timeout_seconds = 5
max_retries = 0
api_key_env = "PLANNER_TEST_LLM_KEY"

[auth]
jwt_secret_env = "PLANNER_TEST_JWT_SECRET"
jwt_algorithm = "HS256"
allow_dev_header = true

[planning]
default_days_ahead = 1
recent_sessions_limit = 10
""",
    encoding="utf-8",
)
os.environ["PLANNER_CONFIG"] = str(_TEST_CONFIG)
os.environ["PLANNER_TEST_JWT_SECRET"] = "test-secret"
os.environ["PLANNER_TEST_LLM_KEY"] = "test-key"

import pytest  # noqa: E402

from core.context import FixedClock, RequestContext  # noqa: E402
from core.db import DatabaseManager  # noqa: E402
from core.exceptions import UpstreamError  # noqa: E402
from services.chat_stream_manager import ChatStreamManager  # noqa: E402
from services.planning_pipeline import PlanningService  # noqa: E402


class ScriptedStreamer:
    """Text streamer that plays back queued replies and records every call"""

    def __init__(self):
        self.replies = []
        self.calls = []

    def reply(self, *chunks: str) -> "ScriptedStreamer":
        self.replies.append((list(chunks), None))
        return self

    def fail(self, *chunks: str, error: Exception = None) -> "ScriptedStreamer":
        """Yield chunks, then raise (an UpstreamError by default)"""
        self.replies.append((list(chunks), error or UpstreamError("model unavailable")))
        return self

    async def stream_text(self, system, messages):
        self.calls.append({"system": system, "messages": [dict(m) for m in messages]})
        chunks, error = self.replies.pop(0)
        for chunk in chunks:
            yield chunk
        if error is not None:
            raise error


@pytest.fixture
def clock():
    return FixedClock.on("2024-01-03")


@pytest.fixture
def db(tmp_path, clock):
    return DatabaseManager(tmp_path / "planner.db", clock)


@pytest.fixture
async def user(db):
    return await db.users.get_or_create("ext-ada", "ada@example.com", "Ada")


@pytest.fixture
def ctx(user, clock):
    return RequestContext(user_id=user["id"], external_id="ext-ada", clock=clock)


@pytest.fixture
async def other_ctx(db, clock):
    other = await db.users.get_or_create("ext-bob", "bob@example.com", "Bob")
    return RequestContext(user_id=other["id"], external_id="ext-bob", clock=clock)


@pytest.fixture
def streamer():
    return ScriptedStreamer()


@pytest.fixture
def planning_service(db, streamer):
    return PlanningService(db, streamer, stream_manager=ChatStreamManager())
