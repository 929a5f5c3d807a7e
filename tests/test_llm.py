import json

import httpx
import pytest

from core.exceptions import UpstreamError
from llm.client import LLMClient
from llm.prompts import (
    PLANNING_SYSTEM_PROMPT,
    build_system_prompt,
    format_planning_date,
    greeting_message,
)


def _chunk(delta, finish_reason=None):
    return {
        "id": "chatcmpl-1",
        "object": "chat.completion.chunk",
        "created": 1700000000,
        "model": "test-model",
        "choices": [{"index": 0, "delta": delta, "finish_reason": finish_reason}],
    }


def _sse(*events):
    lines = [f"data: {json.dumps(event)}\n\n" for event in events]
    lines.append("data: [DONE]\n\n")
    return "".join(lines).encode("utf-8")


def _stream_response(body):
    return httpx.Response(200, content=body, headers={"content-type": "text/event-stream"})


def _client(handler):
    return LLMClient(
        base_url="http://llm.test/v1/",
        model="test-model",
        api_key="secret",
        max_retries=0,
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )


async def _collect(client, system="sys", messages=None):
    messages = messages or [{"role": "user", "content": "hi"}]
    return [chunk async for chunk in client.stream_text(system, messages)]


class TestLLMClient:
    async def test_streams_deltas_in_order(self):
        requests = []

        def handler(request):
            requests.append(request)
            return _stream_response(
                _sse(
                    _chunk({"role": "assistant", "content": "Hel"}),
                    _chunk({"content": "lo"}),
                    _chunk({"content": " there"}),
                )
            )

        chunks = await _collect(_client(handler))

        assert chunks == ["Hel", "lo", " there"]
        request = requests[0]
        assert str(request.url) == "http://llm.test/v1/chat/completions"
        assert request.headers["authorization"] == "Bearer secret"
        payload = json.loads(request.content)
        assert payload["stream"] is True
        assert payload["model"] == "test-model"
        assert payload["messages"] == [
            {"role": "system", "content": "sys"},
            {"role": "user", "content": "hi"},
        ]

    async def test_skips_empty_deltas_and_stops_at_done(self):
        body = (
            b": keep-alive\n\n"
            + _sse(
                _chunk({"role": "assistant"}),
                _chunk({"content": "ok"}),
                _chunk({}, finish_reason="stop"),
            )
            + f"data: {json.dumps(_chunk({'content': 'ignored'}))}\n\n".encode("utf-8")
        )
        chunks = await _collect(_client(lambda request: _stream_response(body)))

        assert chunks == ["ok"]

    async def test_http_error_status_raises_upstream_error(self):
        def handler(request):
            return httpx.Response(500, json={"error": {"message": "overloaded"}})

        with pytest.raises(UpstreamError, match="500"):
            await _collect(_client(handler))

    async def test_transport_error_raises_upstream_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(UpstreamError):
            await _collect(_client(handler))


class TestPrompts:
    def test_no_context_is_bare_persona(self):
        assert build_system_prompt() == PLANNING_SYSTEM_PROMPT
        assert build_system_prompt(habits=[], existing_events=[]) == PLANNING_SYSTEM_PROMPT

    def test_habits_section(self):
        prompt = build_system_prompt(
            habits=[
                {"name": "Meditate", "duration_minutes": 10, "preferred_time": "morning"},
                {"name": "Read", "duration_minutes": 30, "preferred_time": None},
            ]
        )

        assert "## User's Habits to Schedule:" in prompt
        assert "- Meditate (10 mins, prefers morning time)" in prompt
        assert "- Read (30 mins, prefers flexible time)" in prompt
        assert "Already Scheduled Events" not in prompt

    def test_events_section(self):
        prompt = build_system_prompt(
            existing_events=[
                {
                    "title": "Dentist",
                    "start_time": "2024-06-02T10:00:00",
                    "end_time": "2024-06-02T11:00:00",
                }
            ]
        )

        assert "## Already Scheduled Events:" in prompt
        assert "- Dentist: 2024-06-02T10:00:00 - 2024-06-02T11:00:00" in prompt
        assert "Habits to Schedule" not in prompt

    def test_planning_date_label(self):
        assert format_planning_date("2024-06-02") == "Sunday, June 2"
        assert "Sunday, June 2" in greeting_message("2024-06-02")
