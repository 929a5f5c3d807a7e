import pytest
from fastapi.testclient import TestClient
from jose import jwt

from app import create_app
from core import auth
from core.context import SystemClock
from core.db import get_db, switch_database
from handlers import get_registered_handlers
from services.planning_pipeline import PlanningService, set_planning_service

SCHEDULE_REPLY = """Here you go:

```json
{"events": [
  {"title": "Meditate", "startTime": "07:00", "endTime": "07:30", "category": "habit"},
  {"title": "Deep work", "startTime": "09:00", "endTime": "12:00", "category": "work"}
]}
```"""


def _token(sub="ext-ada", **claims):
    return jwt.encode(
        {"sub": sub, "email": f"{sub}@example.com", "name": "Ada", **claims},
        "test-secret",
        algorithm="HS256",
    )


def _headers(sub="ext-ada"):
    return {"Authorization": f"Bearer {_token(sub)}"}


@pytest.fixture
def client(tmp_path, clock, streamer):
    switch_database(str(tmp_path / "api.db"), clock)
    auth.set_clock(clock)
    set_planning_service(PlanningService(get_db(), streamer))
    with TestClient(create_app()) as test_client:
        yield test_client
    set_planning_service(None)
    auth.set_clock(SystemClock())


def _post(client, path, body=None, sub="ext-ada"):
    response = client.post(path, json=body or {}, headers=_headers(sub))
    assert response.status_code == 200
    return response.json()


class TestAuth:
    def test_missing_token_is_rejected(self, client):
        response = client.post("/users/me", json={})
        assert response.status_code == 401

    def test_bad_signature_is_rejected(self, client):
        token = jwt.encode({"sub": "ext-ada"}, "wrong-secret", algorithm="HS256")
        response = client.post("/users/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401

    def test_token_without_subject_is_rejected(self, client):
        token = jwt.encode({"email": "a@example.com"}, "test-secret", algorithm="HS256")
        response = client.post("/users/me", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401

    def test_first_request_creates_user(self, client):
        result = _post(client, "/users/me")

        assert result["success"] is True
        assert result["data"]["externalId"] == "ext-ada"
        assert result["data"]["email"] == "ext-ada@example.com"
        assert result["data"]["onboardingComplete"] is False
        assert _post(client, "/users/me")["data"]["id"] == result["data"]["id"]

    def test_dev_header_when_enabled(self, client):
        response = client.post("/users/me", headers={"X-Dev-User": "dev-1"})

        assert response.status_code == 200
        assert response.json()["data"]["externalId"] == "dev-1"


class TestUsers:
    def test_complete_onboarding(self, client):
        result = _post(
            client,
            "/users/complete-onboarding",
            {"planningTime": "21:30", "timezone": "America/New_York"},
        )

        assert result["success"] is True
        assert result["data"]["planningTime"] == "21:30"
        assert result["data"]["onboardingComplete"] is True

    def test_update_planning_time_validates_format(self, client):
        response = client.post(
            "/users/update-planning-time", json={"planningTime": "9pm"}, headers=_headers()
        )
        assert response.status_code == 422


class TestHabits:
    def test_log_completion_updates_streaks(self, client):
        habit = _post(
            client,
            "/habits/create",
            {"name": "Gym", "frequency": "daily", "durationMinutes": 45, "preferredTime": "morning"},
        )["data"]
        assert habit["currentStreak"] == 0

        for day in ("2024-01-02", "2024-01-03"):
            result = _post(
                client,
                "/habits/log-completion",
                {"habitId": habit["id"], "date": day, "completed": True},
            )

        assert result["data"] == {"habitId": habit["id"], "currentStreak": 2, "bestStreak": 2}
        listed = _post(client, "/habits/list")["data"]
        assert listed[0]["currentStreak"] == 2

    def test_streak_fields_cannot_be_patched(self, client):
        habit = _post(
            client, "/habits/create", {"name": "Gym", "frequency": "daily", "durationMinutes": 45}
        )["data"]

        response = client.post(
            "/habits/update",
            json={"habitId": habit["id"], "currentStreak": 99},
            headers=_headers(),
        )

        assert response.status_code == 422

    def test_other_users_habit_is_not_found(self, client):
        habit = _post(
            client, "/habits/create", {"name": "Gym", "frequency": "daily", "durationMinutes": 45}
        )["data"]

        result = _post(client, "/habits/delete", {"habitId": habit["id"]}, sub="ext-bob")

        assert result["success"] is False
        assert "not found" in result["message"]

    def test_invalid_habit_is_reported(self, client):
        result = _post(
            client, "/habits/create", {"name": "Gym", "frequency": "daily", "durationMinutes": 0}
        )

        assert result["success"] is False


class TestEvents:
    def test_create_and_query_range(self, client):
        created = _post(
            client,
            "/events/create",
            {
                "title": "Dentist",
                "startTime": "2024-06-02T10:00:00",
                "endTime": "2024-06-02T11:00:00",
                "category": "personal",
            },
        )["data"]
        assert created["date"] == "2024-06-02"
        assert created["createdBy"] == "user"

        events = _post(
            client, "/events/by-date-range", {"startDate": "2024-06-01", "endDate": "2024-06-30"}
        )["data"]
        assert [e["title"] for e in events] == ["Dentist"]

    def test_other_user_cannot_touch_event(self, client):
        created = _post(
            client,
            "/events/create",
            {"title": "Dentist", "startTime": "2024-06-02T10:00:00", "endTime": "2024-06-02T11:00:00"},
        )["data"]

        result = _post(
            client, "/events/mark-complete", {"eventId": created["id"], "completed": True}, sub="ext-bob"
        )

        assert result["success"] is False
        assert _post(client, "/events/by-date", {"date": "2024-06-02"})["data"][0]["completed"] is False

    def test_delete_by_date(self, client):
        for hour in ("08", "13"):
            _post(
                client,
                "/events/create",
                {"title": "E", "startTime": f"2024-06-02T{hour}:00:00", "endTime": f"2024-06-02T{hour}:30:00"},
            )

        result = _post(client, "/events/delete-by-date", {"date": "2024-06-02"})

        assert result["data"]["deletedCount"] == 2


class TestPlanning:
    def test_plan_then_confirm(self, client, streamer):
        started = _post(client, "/planning/start", {"planningDate": "2024-06-02"})["data"]
        assert started["state"] == "greeting"
        assert len(started["messages"]) == 1

        streamer.reply(SCHEDULE_REPLY[:30], SCHEDULE_REPLY[30:])
        response = client.post(
            "/planning/send-message",
            json={"planningDate": "2024-06-02", "content": "Looks good"},
            headers=_headers(),
        )
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        assert response.text == SCHEDULE_REPLY

        state = _post(client, "/planning/start", {"planningDate": "2024-06-02"})["data"]
        assert state["state"] == "schedule_proposed"
        assert state["proposedSchedule"]["events"][0]["startTime"] == "07:00"

        confirmed = _post(client, "/planning/confirm", {"planningDate": "2024-06-02"})
        assert confirmed["success"] is True
        assert len(confirmed["data"]["eventIds"]) == 2
        assert confirmed["data"]["state"] == "confirmed"

        events = _post(client, "/events/by-date", {"date": "2024-06-02"})["data"]
        assert [(e["title"], e["startTime"], e["createdBy"]) for e in events] == [
            ("Meditate", "2024-06-02T07:00:00", "ai"),
            ("Deep work", "2024-06-02T09:00:00", "ai"),
        ]

        session = _post(client, "/planning/get-session", {"planningDate": "2024-06-02"})["data"]
        assert session["isComplete"] is True

    def test_default_planning_date_is_tomorrow(self, client):
        started = _post(client, "/planning/start")["data"]

        assert started["planningDate"] == "2024-01-04"

    def test_empty_message_is_rejected(self, client, streamer):
        result = _post(client, "/planning/send-message", {"content": "  "})

        assert result["success"] is False
        assert streamer.calls == []

    def test_confirm_without_proposal(self, client):
        result = _post(client, "/planning/confirm", {"planningDate": "2024-06-02"})

        assert result["success"] is False

    def test_reset_and_sessions(self, client, streamer):
        streamer.reply("When do you wake up?")
        client.post(
            "/planning/send-message",
            json={"planningDate": "2024-06-02", "content": "Hi"},
            headers=_headers(),
        )

        reset = _post(client, "/planning/reset", {"planningDate": "2024-06-02"})["data"]
        assert reset["state"] == "greeting"
        assert len(reset["messages"]) == 1

        sessions = _post(client, "/planning/recent-sessions")["data"]
        assert [s["planningDate"] for s in sessions] == ["2024-06-02"]

        deleted = _post(client, "/planning/delete-session", {"sessionId": sessions[0]["id"]})
        assert deleted["success"] is True
        assert _post(client, "/planning/recent-sessions")["data"] == []


def test_all_domain_routes_registered():
    paths = set(get_registered_handlers())

    assert {
        "/users/me",
        "/habits/log-completion",
        "/events/by-date-range",
        "/planning/start",
        "/planning/send-message",
        "/planning/confirm",
        "/planning/reset",
    } <= paths


def test_health_reports_table_counts(client):
    _post(client, "/users/me")

    body = client.get("/health").json()

    assert body["status"] == "ok"
    assert body["tables"]["users"] == 1
    assert body["tables"]["calendar_events"] == 0
