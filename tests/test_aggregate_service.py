"""Tests for community daily aggregates."""

from datetime import date

import pytest

from fitcheck.services.community.aggregate_service import format_aggregate

DAY = date(2024, 1, 15)


class TestRecompute:

    @pytest.mark.asyncio
    async def test_counts_by_kind(self, aggregate_service, checkin_service, store, coach):
        for member_id in ["user_a", "user_b", "user_c", "user_d"]:
            await store.upsert_member(member_id)
        await store.upsert_member(coach.member_id, role="COACH")

        await checkin_service.create_checkin("user_a", "WORKOUT", {"muscleGroup": "PUSH"})
        await checkin_service.create_checkin("user_b", "WORKOUT", {"muscleGroup": "PULL"})
        await checkin_service.create_checkin("user_c", "REST")
        await checkin_service.create_checkin(coach.member_id, "REFLECTION")

        aggregate = await aggregate_service.recompute(DAY)

        assert format_aggregate(aggregate) == {
            "date": "2024-01-15",
            "totalMembers": 4,
            "workoutCount": 2,
            "restCount": 1,
            "reflectionCount": 1,
            "activeToday": 4,
        }

    @pytest.mark.asyncio
    async def test_recompute_is_idempotent(self, aggregate_service, checkin_service, store):
        await store.upsert_member("user_a")
        await checkin_service.create_checkin("user_a", "REST")

        first = await aggregate_service.recompute(DAY)
        second = await aggregate_service.recompute(DAY)
        third = await aggregate_service.recompute(DAY)

        assert format_aggregate(first) == format_aggregate(second) == format_aggregate(third)
        assert len(store.aggregates) == 1

    @pytest.mark.asyncio
    async def test_reflects_deletions(self, aggregate_service, checkin_service, store):
        await store.upsert_member("user_a")
        checkin = await checkin_service.create_checkin("user_a", "REST")
        await aggregate_service.recompute(DAY)

        await checkin_service.delete_checkin(str(checkin["_id"]), "user_a")
        aggregate = await aggregate_service.recompute(DAY)

        assert aggregate["restCount"] == 0
        assert aggregate["activeToday"] == 0

    @pytest.mark.asyncio
    async def test_get_for_day_returns_stored_row(self, aggregate_service, store):
        await store.upsert_member("user_a")
        await aggregate_service.recompute(DAY)

        row = await aggregate_service.get_for_day(DAY)
        assert row["totalMembers"] == 1

    def test_today_uses_clock(self, aggregate_service):
        assert aggregate_service.today() == DAY
