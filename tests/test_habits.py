import pytest

from core.exceptions import NotFoundError, ValidationError
from services.habit_service import HabitService


@pytest.fixture
def service(db):
    return HabitService(db)


class TestHabitsRepository:
    async def test_create_starts_with_zero_streaks(self, db, user):
        habit = await db.habits.create(
            user_id=user["id"],
            name="Read",
            frequency="custom",
            duration_minutes=20,
            custom_days=[1, 3, 5],
            preferred_time="evening",
        )

        assert habit["current_streak"] == 0
        assert habit["best_streak"] == 0
        assert habit["is_active"] is True
        assert habit["custom_days"] == [1, 3, 5]
        assert habit["preferred_time"] == "evening"

    async def test_list_by_user_newest_first(self, db, user, clock):
        await db.habits.create(user["id"], "First", "daily", 10)
        clock.advance(minutes=1)
        await db.habits.create(user["id"], "Second", "daily", 10)

        names = [h["name"] for h in await db.habits.list_by_user(user["id"])]
        assert names == ["Second", "First"]

    async def test_list_active_sorted_by_name(self, db, user):
        await db.habits.create(user["id"], "walk", "daily", 30)
        await db.habits.create(user["id"], "Meditate", "daily", 10)
        stretch = await db.habits.create(user["id"], "Stretch", "daily", 5)
        await db.habits.update(stretch["id"], is_active=False)

        names = [h["name"] for h in await db.habits.list_active(user["id"])]
        assert names == ["Meditate", "walk"]

    async def test_update_rejects_streak_fields(self, db, user):
        habit = await db.habits.create(user["id"], "Gym", "daily", 45)

        with pytest.raises(ValueError):
            await db.habits.update(habit["id"], current_streak=10)

        assert (await db.habits.get_by_id(habit["id"]))["current_streak"] == 0

    async def test_update_skips_missing_fields(self, db, user):
        habit = await db.habits.create(
            user["id"], "Gym", "daily", 45, description="Lift", color="#ff0000"
        )

        await db.habits.update(habit["id"], name="Weights", description=None)

        updated = await db.habits.get_by_id(habit["id"])
        assert updated["name"] == "Weights"
        assert updated["description"] == "Lift"
        assert updated["color"] == "#ff0000"

    async def test_delete_cascades_to_logs(self, db, user):
        habit = await db.habits.create(user["id"], "Gym", "daily", 45)
        for day in range(1, 11):
            await db.habit_logs.upsert(habit["id"], user["id"], f"2024-01-{day:02d}", True)

        deleted_logs = await db.habits.delete(habit["id"])

        assert deleted_logs == 10
        assert await db.habits.get_by_id(habit["id"]) is None
        assert await db.habit_logs.count_by_habit(habit["id"]) == 0


class TestHabitLogsRepository:
    async def test_upsert_overwrites_same_day(self, db, user):
        habit = await db.habits.create(user["id"], "Gym", "daily", 45)

        first = await db.habit_logs.upsert(habit["id"], user["id"], "2024-01-02", True, "easy")
        second = await db.habit_logs.upsert(habit["id"], user["id"], "2024-01-02", False)

        assert second["id"] == first["id"]
        assert second["completed"] is False
        assert second["notes"] is None
        assert await db.habit_logs.count_by_habit(habit["id"]) == 1

    async def test_list_by_user_and_date(self, db, user):
        gym = await db.habits.create(user["id"], "Gym", "daily", 45)
        read = await db.habits.create(user["id"], "Read", "daily", 20)
        await db.habit_logs.upsert(gym["id"], user["id"], "2024-01-02", True)
        await db.habit_logs.upsert(read["id"], user["id"], "2024-01-02", False)
        await db.habit_logs.upsert(read["id"], user["id"], "2024-01-03", True)

        logs = await db.habit_logs.list_by_user_and_date(user["id"], "2024-01-02")
        assert {log["habit_id"] for log in logs} == {gym["id"], read["id"]}

    async def test_delete_by_habit(self, db, user):
        habit = await db.habits.create(user["id"], "Gym", "daily", 45)
        await db.habit_logs.upsert(habit["id"], user["id"], "2024-01-01", True)
        await db.habit_logs.upsert(habit["id"], user["id"], "2024-01-02", True)

        assert await db.habit_logs.delete_by_habit(habit["id"]) == 2
        assert await db.habit_logs.list_by_habit(habit["id"]) == []

    async def test_stats_over_range(self, db, user):
        habit = await db.habits.create(user["id"], "Gym", "daily", 45)
        for day, completed in [
            ("2024-01-01", True),
            ("2024-01-02", False),
            ("2024-01-03", True),
            ("2024-01-10", True),
        ]:
            await db.habit_logs.upsert(habit["id"], user["id"], day, completed)

        stats = await db.habit_logs.get_stats(habit["id"], "2024-01-01", "2024-01-03")

        assert stats == {"completed": 2, "total": 3, "percentage": 67}

    async def test_stats_rounds_half_up(self, db, user):
        habit = await db.habits.create(user["id"], "Gym", "daily", 45)
        for day in range(1, 9):
            await db.habit_logs.upsert(
                habit["id"], user["id"], f"2024-01-{day:02d}", day == 1
            )

        stats = await db.habit_logs.get_stats(habit["id"], "2024-01-01", "2024-01-08")

        # 1 / 8 = 12.5%
        assert stats["percentage"] == 13

    async def test_stats_without_logs(self, db, user):
        habit = await db.habits.create(user["id"], "Gym", "daily", 45)

        stats = await db.habit_logs.get_stats(habit["id"], "2024-01-01", "2024-01-31")

        assert stats == {"completed": 0, "total": 0, "percentage": 0}


class TestHabitService:
    async def test_create_validates_input(self, service, ctx):
        with pytest.raises(ValidationError):
            await service.create_habit(ctx, name="  ", frequency="daily", duration_minutes=10)
        with pytest.raises(ValidationError):
            await service.create_habit(ctx, name="Gym", frequency="daily", duration_minutes=0)
        with pytest.raises(ValidationError):
            await service.create_habit(
                ctx, name="Gym", frequency="custom", duration_minutes=30, custom_days=[7]
            )

    async def test_other_user_sees_not_found(self, service, ctx, other_ctx):
        habit = await service.create_habit(
            ctx, name="Gym", frequency="daily", duration_minutes=45
        )

        with pytest.raises(NotFoundError):
            await service.update_habit(other_ctx, habit["id"], name="Mine")
        with pytest.raises(NotFoundError):
            await service.delete_habit(other_ctx, habit["id"])
        assert await service.list_habits(other_ctx) == []

    async def test_delete_returns_removed_log_count(self, service, ctx):
        habit = await service.create_habit(
            ctx, name="Gym", frequency="daily", duration_minutes=45
        )
        await service.log_completion(ctx, habit["id"], "2024-01-02", True)
        await service.log_completion(ctx, habit["id"], "2024-01-03", True)

        assert await service.delete_habit(ctx, habit["id"]) == 2
        assert await service.list_habits(ctx) == []

    async def test_stats_for_owned_habit(self, service, ctx):
        habit = await service.create_habit(
            ctx, name="Gym", frequency="daily", duration_minutes=45
        )
        await service.log_completion(ctx, habit["id"], "2024-01-02", True)
        await service.log_completion(ctx, habit["id"], "2024-01-03", False)

        stats = await service.habit_stats(ctx, habit["id"], "2024-01-01", "2024-01-31")

        assert stats == {"completed": 1, "total": 2, "percentage": 50}
