"""Tests for check-in and member pipelines."""

import logging
from datetime import date
from unittest.mock import AsyncMock

import pytest

import fitcheck.pipelines.checkin as checkin_pipeline
from common.utils.exceptions import NotFoundException
from fitcheck.errors import DuplicateCheckInError, StorageUnavailableError
from fitcheck.pipelines.checkin import (
    delete_checkin_pipeline,
    get_history_pipeline,
    get_today_checkin_pipeline,
    submit_checkin_pipeline,
)
from fitcheck.pipelines.member import init_member_pipeline, reset_member_data_pipeline


@pytest.fixture
def submit(checkin_service, member_service, aggregate_service):
    async def _submit(identity, kind, details=None):
        return await submit_checkin_pipeline(
            checkin_service=checkin_service,
            member_service=member_service,
            aggregate_service=aggregate_service,
            identity=identity,
            kind=kind,
            details=details,
        )
    return _submit


@pytest.fixture
def no_retry_delay(monkeypatch):
    monkeypatch.setattr(checkin_pipeline, "STREAK_RETRY_DELAY_SECONDS", 0)


# ─────────────────────────────────────────────────────────────────
# Submission
# ─────────────────────────────────────────────────────────────────


class TestSubmitCheckinPipeline:

    @pytest.mark.asyncio
    async def test_week_scenario(self, submit, store, clock, alice):
        """Mon workout, Tue rest, Wed reflection, Thu workout."""
        streaks = []
        for kind, details in [
            ("WORKOUT", {"muscleGroup": "PUSH"}),
            ("REST", None),
            ("REFLECTION", None),
            ("WORKOUT", {"muscleGroup": "LEGS"}),
        ]:
            result = await submit(alice, kind, details)
            streaks.append(result["streak"]["currentStreak"])
            clock.advance(days=1)

        assert streaks == [1, 2, 0, 1]

        member = await store.get_member(alice.member_id)
        assert member["currentStreak"] == 1
        assert member["longestStreak"] == 2
        assert member["lastCheckInDate"] == "2024-01-18"

    @pytest.mark.asyncio
    async def test_provisions_member_on_first_checkin(self, submit, store, alice):
        assert await store.get_member(alice.member_id) is None

        await submit(alice, "REST")

        member = await store.get_member(alice.member_id)
        assert member["username"] == "alice"
        assert member["role"] == "MEMBER"

    @pytest.mark.asyncio
    async def test_gap_resets_streak(self, submit, clock, alice):
        await submit(alice, "REST")
        clock.advance(days=1)
        await submit(alice, "REST")
        clock.advance(days=2)
        result = await submit(alice, "REST")

        assert result["streak"] == {"currentStreak": 1, "longestStreak": 2}

    @pytest.mark.asyncio
    async def test_duplicate_does_not_reapply_streak(self, submit, store, alice):
        await submit(alice, "REST")

        with pytest.raises(DuplicateCheckInError):
            await submit(alice, "REST")

        member = await store.get_member(alice.member_id)
        assert member["currentStreak"] == 1

    @pytest.mark.asyncio
    async def test_recomputes_day_aggregate(self, submit, store, alice, bob):
        await submit(alice, "WORKOUT", {"muscleGroup": "CARDIO"})
        await submit(bob, "REFLECTION")

        aggregate = await store.get_daily_aggregate("2024-01-15")
        assert aggregate["workoutCount"] == 1
        assert aggregate["reflectionCount"] == 1
        assert aggregate["activeToday"] == 2
        assert aggregate["totalMembers"] == 2

    @pytest.mark.asyncio
    async def test_aggregate_failure_keeps_checkin(self, checkin_service, member_service, store, alice, caplog):
        failing_aggregates = AsyncMock()
        failing_aggregates.recompute.side_effect = StorageUnavailableError()

        with caplog.at_level(logging.ERROR):
            result = await submit_checkin_pipeline(
                checkin_service=checkin_service,
                member_service=member_service,
                aggregate_service=failing_aggregates,
                identity=alice,
                kind="REST",
            )

        assert result["streak"]["currentStreak"] == 1
        assert await store.count_member_checkins(alice.member_id) == 1
        assert "retryable=True" in caplog.text

    @pytest.mark.asyncio
    async def test_streak_failure_keeps_checkin(
        self, checkin_service, member_service, aggregate_service, store, alice, no_retry_delay
    ):
        member_service.apply_streak = AsyncMock(side_effect=StorageUnavailableError())

        result = await submit_checkin_pipeline(
            checkin_service=checkin_service,
            member_service=member_service,
            aggregate_service=aggregate_service,
            identity=alice,
            kind="REST",
        )

        assert result["checkin"]["kind"] == "REST"
        assert await store.count_member_checkins(alice.member_id) == 1
        assert (await store.get_daily_aggregate("2024-01-15"))["restCount"] == 1
        assert member_service.apply_streak.await_count == checkin_pipeline.STREAK_WRITE_ATTEMPTS
        # The response reports what is stored, not the unsaved update
        assert result["streakUpdated"] is False
        assert result["streak"] == {"currentStreak": 0, "longestStreak": 0}
        assert (await store.get_member(alice.member_id))["currentStreak"] == 0

    @pytest.mark.asyncio
    async def test_lost_streak_write_is_recovered_on_next_checkin(
        self, submit, member_service, store, clock, alice, no_retry_delay
    ):
        await submit(alice, "REST")

        real_apply_streak = member_service.apply_streak
        member_service.apply_streak = AsyncMock(side_effect=StorageUnavailableError())
        clock.advance(days=1)
        day_two = await submit(alice, "REST")
        member_service.apply_streak = real_apply_streak

        assert day_two["streakUpdated"] is False
        assert day_two["streak"] == {"currentStreak": 1, "longestStreak": 1}

        clock.advance(days=1)
        day_three = await submit(alice, "REST")

        assert day_three["streakUpdated"] is True
        assert day_three["streak"] == {"currentStreak": 3, "longestStreak": 3}
        member = await store.get_member(alice.member_id)
        assert member["lastCheckInDate"] == "2024-01-17"

    @pytest.mark.asyncio
    async def test_recovery_replays_reflection(self, submit, member_service, clock, alice, no_retry_delay):
        await submit(alice, "WORKOUT", {"muscleGroup": "PULL"})
        clock.advance(days=1)
        await submit(alice, "REST")

        real_apply_streak = member_service.apply_streak
        member_service.apply_streak = AsyncMock(side_effect=StorageUnavailableError())
        clock.advance(days=1)
        await submit(alice, "REFLECTION")
        member_service.apply_streak = real_apply_streak

        clock.advance(days=1)
        result = await submit(alice, "REST")

        assert result["streak"] == {"currentStreak": 1, "longestStreak": 2}

    @pytest.mark.asyncio
    async def test_transient_streak_failure_is_retried(self, submit, member_service, clock, alice, no_retry_delay):
        await submit(alice, "REST")

        real_apply_streak = member_service.apply_streak
        attempts = []

        async def flaky_apply_streak(member_id, state):
            attempts.append(state)
            if len(attempts) == 1:
                raise StorageUnavailableError()
            return await real_apply_streak(member_id, state)

        member_service.apply_streak = flaky_apply_streak
        clock.advance(days=1)
        result = await submit(alice, "REST")

        assert len(attempts) == 2
        assert attempts[0] == attempts[1]
        assert result["streakUpdated"] is True
        assert result["streak"] == {"currentStreak": 2, "longestStreak": 2}

    @pytest.mark.asyncio
    async def test_reapplying_a_landed_write_is_a_no_op(self, submit, member_service, clock, alice, no_retry_delay):
        await submit(alice, "REST")

        real_apply_streak = member_service.apply_streak
        calls = []

        async def unacknowledged_apply_streak(member_id, state):
            calls.append(state)
            member = await real_apply_streak(member_id, state)
            if len(calls) == 1:
                raise StorageUnavailableError()
            return member

        member_service.apply_streak = unacknowledged_apply_streak
        clock.advance(days=1)
        result = await submit(alice, "REST")

        assert len(calls) == 2
        assert result["streak"] == {"currentStreak": 2, "longestStreak": 2}

    @pytest.mark.asyncio
    async def test_non_retryable_streak_failure_is_not_retried(
        self, checkin_service, member_service, aggregate_service, alice, caplog
    ):
        member_service.apply_streak = AsyncMock(side_effect=NotFoundException(message="Member not found"))

        with caplog.at_level(logging.ERROR):
            result = await submit_checkin_pipeline(
                checkin_service=checkin_service,
                member_service=member_service,
                aggregate_service=aggregate_service,
                identity=alice,
                kind="REST",
            )

        assert member_service.apply_streak.await_count == 1
        assert result["streakUpdated"] is False
        assert "retryable=False" in caplog.text


# ─────────────────────────────────────────────────────────────────
# Deletion and reads
# ─────────────────────────────────────────────────────────────────


class TestDeleteCheckinPipeline:

    @pytest.mark.asyncio
    async def test_recomputes_aggregate_and_keeps_streak(self, submit, checkin_service, aggregate_service, store, alice):
        result = await submit(alice, "REST")

        deleted = await delete_checkin_pipeline(
            checkin_service=checkin_service,
            aggregate_service=aggregate_service,
            checkin_id=result["checkin"]["id"],
            requested_by=alice.member_id,
        )

        assert deleted == {"id": result["checkin"]["id"], "date": "2024-01-15", "deleted": True}
        assert (await store.get_daily_aggregate("2024-01-15"))["activeToday"] == 0
        assert (await store.get_member(alice.member_id))["currentStreak"] == 1


class TestReadPipelines:

    @pytest.mark.asyncio
    async def test_today(self, submit, checkin_service, alice):
        await submit(alice, "REST")

        result = await get_today_checkin_pipeline(checkin_service, alice.member_id)

        assert result["hasCheckedInToday"] is True
        assert result["date"] == "2024-01-15"
        assert result["checkin"]["kind"] == "REST"

    @pytest.mark.asyncio
    async def test_history_pagination(self, submit, checkin_service, clock, alice):
        for _ in range(3):
            await submit(alice, "REST")
            clock.advance(days=1)

        result = await get_history_pipeline(checkin_service, alice.member_id, limit=2, offset=0)

        assert len(result["checkins"]) == 2
        assert result["total"] == 3
        assert result["hasMore"] is True
        assert [h["value"] for h in result["heatmap"]] == [2, 2]


# ─────────────────────────────────────────────────────────────────
# Member pipelines
# ─────────────────────────────────────────────────────────────────


class TestMemberPipelines:

    @pytest.mark.asyncio
    async def test_init_is_idempotent(self, member_service, coach):
        first = await init_member_pipeline(member_service, coach)
        second = await init_member_pipeline(member_service, coach)

        assert first["memberId"] == second["memberId"] == "user_coach"
        assert second["role"] == "COACH"
        assert second["currentStreak"] == 0

    @pytest.mark.asyncio
    async def test_reset_clears_data_and_recomputes_days(
        self, submit, member_service, aggregate_service, photo_service, store, blob_store, clock, alice
    ):
        await submit(alice, "REST")
        await photo_service.upload_photo(alice.member_id, b"\xff\xd8jpeg", "image/jpeg")
        clock.advance(days=1)
        await submit(alice, "REST")

        result = await reset_member_data_pipeline(member_service, aggregate_service, alice.member_id)

        assert result["affectedDays"] == ["2024-01-15", "2024-01-16"]
        assert result["member"]["currentStreak"] == 0
        assert result["member"]["longestStreak"] == 0
        assert result["member"]["lastCheckInDate"] is None
        assert result["member"]["lastPhotoDate"] is None
        assert store.photos == {}
        assert blob_store.blobs == {}
        for day_key in result["affectedDays"]:
            assert (await store.get_daily_aggregate(day_key))["activeToday"] == 0

    @pytest.mark.asyncio
    async def test_aggregate_for_day_without_row(self, aggregate_service):
        row = await aggregate_service.get_for_day(date(2023, 6, 1))
        assert row["activeToday"] == 0
        assert row["_id"] == "2023-06-01"
