from datetime import date, timedelta

import pytest

from app.crud.user import user as crud_user
from app.services.progress import progress_service
from app.utils.events import EventBus

TODAY = date(2026, 3, 10)


def complete(db_session, user, today=TODAY, correct=3, answered=4, seconds=150):
    return progress_service.apply_session_completion(
        db_session,
        user_id=user.id,
        questions_answered=answered,
        correct_answers=correct,
        time_spent_seconds=seconds,
        today=today,
    )


class TestSessionCompletion:

    def test_first_session_starts_streak(self, db_session, student):
        updated = complete(db_session, student)
        assert updated.current_streak == 1
        assert updated.longest_streak == 1
        assert updated.total_questions_answered == 4
        assert updated.total_correct_answers == 3
        assert updated.total_study_minutes == 2
        assert updated.xp_points == 30
        assert updated.last_active_date == TODAY

    def test_same_day_keeps_streak(self, db_session, student):
        complete(db_session, student)
        updated = complete(db_session, student)
        assert updated.current_streak == 1
        assert updated.total_questions_answered == 8

    def test_consecutive_days_extend_streak(self, db_session, student):
        for offset in range(3):
            updated = complete(db_session, student, today=TODAY + timedelta(days=offset))
        assert updated.current_streak == 3
        assert updated.longest_streak == 3

    def test_gap_resets_streak_but_keeps_longest(self, db_session, student):
        complete(db_session, student, today=TODAY)
        complete(db_session, student, today=TODAY + timedelta(days=1))
        updated = complete(db_session, student, today=TODAY + timedelta(days=5))
        assert updated.current_streak == 1
        assert updated.longest_streak == 2

    def test_unknown_user_is_ignored(self, db_session):
        assert progress_service.apply_session_completion(
            db_session, user_id=999999, questions_answered=1, correct_answers=1, time_spent_seconds=10
        ) is None

    def test_event_handler_uses_its_own_session(self, db_session, student):
        progress_service.handle_session_completed({
            "session_id": "s-1",
            "user_id": student.id,
            "questions_answered": 2,
            "correct_answers": 2,
            "time_spent_seconds": 60,
        })
        db_session.expire_all()
        refreshed = crud_user.get(db_session, id=student.id)
        assert refreshed.xp_points == 20
        assert refreshed.current_streak == 1


class TestEventBus:

    @pytest.mark.asyncio
    async def test_sync_and_async_handlers_receive_events(self):
        bus = EventBus()
        received = []

        def sync_handler(data):
            received.append(("sync", data["n"]))

        async def async_handler(data):
            received.append(("async", data["n"]))

        bus.subscribe("ping", sync_handler)
        bus.subscribe("ping", sync_handler)
        bus.subscribe("ping", async_handler)
        await bus.publish("ping", {"n": 1})
        assert sorted(received) == [("async", 1), ("sync", 1)]

    @pytest.mark.asyncio
    async def test_failing_handler_does_not_stop_others(self):
        bus = EventBus()
        received = []

        def broken(data):
            raise RuntimeError("boom")

        bus.subscribe("ping", broken)
        bus.subscribe("ping", lambda data: received.append(data))
        await bus.publish("ping", {"n": 2})
        assert received == [{"n": 2}]

        bus.unsubscribe("ping", broken)
        await bus.publish("ping", {"n": 3})
        assert received[-1] == {"n": 3}
