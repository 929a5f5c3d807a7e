from datetime import date

import pytest

from core.exceptions import NotFoundError, ValidationError
from services.habit_service import HabitService
from services.streaks import compute_current_streak, recompute_streak


def _log(day, completed=True):
    return {"date": day, "completed": completed}


class TestComputeCurrentStreak:
    def test_consecutive_days_ending_today(self):
        logs = [_log("2024-01-01"), _log("2024-01-02"), _log("2024-01-03")]
        assert compute_current_streak(logs, date(2024, 1, 3)) == 3

    def test_input_order_does_not_matter(self):
        logs = [_log("2024-01-02"), _log("2024-01-03"), _log("2024-01-01")]
        assert compute_current_streak(logs, date(2024, 1, 3)) == 3

    def test_incomplete_day_breaks_the_run(self):
        logs = [_log("2024-01-01"), _log("2024-01-02", False), _log("2024-01-03")]
        assert compute_current_streak(logs, date(2024, 1, 3)) == 1

    def test_no_log_today_means_zero(self):
        logs = [_log("2024-01-01"), _log("2024-01-02"), _log("2024-01-03")]
        assert compute_current_streak(logs, date(2024, 1, 4)) == 0

    def test_incomplete_today_means_zero(self):
        logs = [_log("2024-01-02"), _log("2024-01-03", False)]
        assert compute_current_streak(logs, date(2024, 1, 3)) == 0

    def test_gap_stops_the_walk(self):
        logs = [_log("2023-12-30"), _log("2024-01-02"), _log("2024-01-03")]
        assert compute_current_streak(logs, date(2024, 1, 3)) == 2

    def test_log_dated_after_today_stops_the_walk(self):
        # The newest log is compared first; a future date never matches
        logs = [_log("2024-01-02"), _log("2024-01-03"), _log("2024-01-04")]
        assert compute_current_streak(logs, date(2024, 1, 3)) == 0

    def test_no_logs(self):
        assert compute_current_streak([], date(2024, 1, 3)) == 0


class TestLogCompletion:
    @pytest.fixture
    def service(self, db):
        return HabitService(db)

    @pytest.fixture
    async def gym(self, service, ctx):
        return await service.create_habit(
            ctx, name="Gym", frequency="daily", duration_minutes=45
        )

    async def test_three_completed_days(self, service, ctx, gym, db):
        for day in ("2024-01-01", "2024-01-02", "2024-01-03"):
            streak = await service.log_completion(ctx, gym["id"], day, True)

        assert streak.current_streak == 3
        assert streak.best_streak == 3
        stored = await db.habits.get_by_id(gym["id"])
        assert stored["current_streak"] == 3
        assert stored["best_streak"] == 3

    async def test_overwrite_with_incomplete_keeps_best(self, service, ctx, gym, db):
        for day in ("2024-01-01", "2024-01-02", "2024-01-03"):
            await service.log_completion(ctx, gym["id"], day, True)

        streak = await service.log_completion(ctx, gym["id"], "2024-01-02", False)

        assert streak.current_streak == 1
        assert streak.best_streak == 3
        assert len(await db.habit_logs.list_by_habit(gym["id"])) == 3

    async def test_next_day_without_log(self, service, ctx, gym, clock):
        for day in ("2024-01-01", "2024-01-02", "2024-01-03"):
            await service.log_completion(ctx, gym["id"], day, True)

        clock.advance(days=1)
        streak = await service.log_completion(ctx, gym["id"], "2024-01-02", True)

        assert streak.current_streak == 0
        assert streak.best_streak == 3

    async def test_best_streak_never_decreases(self, service, ctx, gym):
        best = 0
        for day, completed in [
            ("2024-01-03", True),
            ("2024-01-02", True),
            ("2024-01-03", False),
            ("2024-01-01", True),
            ("2024-01-03", True),
        ]:
            streak = await service.log_completion(ctx, gym["id"], day, completed)
            assert streak.best_streak >= best
            assert streak.best_streak >= streak.current_streak
            best = streak.best_streak
        assert best == 3

    async def test_rejects_bad_date(self, service, ctx, gym):
        with pytest.raises(ValidationError):
            await service.log_completion(ctx, gym["id"], "03/01/2024", True)

    async def test_rejects_other_users_habit(self, service, other_ctx, gym):
        with pytest.raises(NotFoundError):
            await service.log_completion(other_ctx, gym["id"], "2024-01-03", True)

    async def test_recompute_missing_habit_is_noop(self, db):
        assert await recompute_streak(db, "missing", date(2024, 1, 3)) is None
