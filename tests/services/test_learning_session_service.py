import pytest
from fastapi import HTTPException

from app.core.constants import QuestionStatusEnum, SessionModeEnum, SessionStatusEnum
from app.crud.session_answer import session_answer as crud_session_answer
from app.schemas.learning_session import LearningSessionCreate, LearningSessionUpdate
from app.schemas.session_answer import SessionAnswerCreate
from app.services.learning_session import learning_session_service
from app.utils.events import SESSION_COMPLETED, event_bus


class TestQuestionSelection:

    def test_spreads_questions_across_topics(self, db_session, question_factory, topic, topic_factory):
        geometry = topic_factory(name="Geometry")
        algebra_ids = {question_factory().id for _ in range(5)}
        geometry_ids = {question_factory(topic_id=geometry.id).id for _ in range(5)}

        picked = learning_session_service.select_question_ids(
            db_session, topic_ids=[topic.id, geometry.id], total_questions=4
        )
        assert len(picked) == 4
        assert len(set(picked) & algebra_ids) == 2
        assert len(set(picked) & geometry_ids) == 2

    def test_interleaves_topics(self, db_session, question_factory, topic, topic_factory):
        other = topic_factory(name="Statistics")
        first_ids = {question_factory().id for _ in range(2)}
        second_ids = {question_factory(topic_id=other.id).id for _ in range(2)}

        picked = learning_session_service.select_question_ids(
            db_session, topic_ids=[topic.id, other.id], total_questions=4
        )
        assert picked[0] in first_ids and picked[2] in first_ids
        assert picked[1] in second_ids and picked[3] in second_ids

    def test_tops_up_from_other_topics(self, db_session, question_factory, topic, topic_factory):
        sparse = topic_factory(name="Sparse")
        question_factory(topic_id=sparse.id)
        for _ in range(5):
            question_factory()

        picked = learning_session_service.select_question_ids(
            db_session, topic_ids=[topic.id, sparse.id], total_questions=6
        )
        assert len(picked) == 6
        assert len(set(picked)) == 6

    def test_skips_unpublished(self, db_session, question_factory, topic):
        published = question_factory()
        question_factory(status=QuestionStatusEnum.DRAFT)
        question_factory(status=QuestionStatusEnum.ARCHIVED)
        picked = learning_session_service.select_question_ids(db_session, topic_ids=[topic.id], total_questions=5)
        assert picked == [published.id]

    @pytest.mark.asyncio
    async def test_prefers_unseen_questions(self, db_session, question_factory, subject, topic, student):
        seen = question_factory()
        fresh = question_factory()
        earlier = await learning_session_service.create_session(
            db_session,
            session_in=LearningSessionCreate(subject_id=subject.id, topic_id=topic.id, total_questions=2),
            current_user=student,
        )
        crud_session_answer.upsert(db_session, session_id=earlier.id, obj_in=SessionAnswerCreate(
            question_id=seen.id, is_correct=True, user_answer="B", first_attempt_correct=True,
        ))

        picked = learning_session_service.select_question_ids(
            db_session, topic_ids=[topic.id], total_questions=1, user_id=student.id
        )
        assert picked == [fresh.id]


class TestSessions:

    @pytest.mark.asyncio
    async def test_guest_session_lives_in_cache(self, db_session, question_factory, subject, topic):
        for _ in range(3):
            question_factory()
        session = await learning_session_service.create_session(
            db_session,
            session_in=LearningSessionCreate(subject_id=subject.id, topic_ids=[topic.id], total_questions=10),
        )
        assert session.id.startswith("guest_")
        assert session.user_id is None
        assert session.total_questions == 3

        loaded = await learning_session_service.get_session(db_session, session.id)
        assert loaded.question_ids == session.question_ids
        assert learning_session_service.find_session(db_session, session.id) is None

    @pytest.mark.asyncio
    async def test_topics_must_belong_to_subject(self, db_session, subject, topic):
        with pytest.raises(HTTPException) as exc:
            await learning_session_service.create_session(
                db_session,
                session_in=LearningSessionCreate(subject_id=subject.id, topic_ids=[topic.id, 987654], total_questions=5),
            )
        assert exc.value.status_code == 400

    @pytest.mark.asyncio
    async def test_no_questions_available(self, db_session, subject, topic, student):
        with pytest.raises(HTTPException) as exc:
            await learning_session_service.create_session(
                db_session,
                session_in=LearningSessionCreate(subject_id=subject.id, topic_id=topic.id, total_questions=5),
                current_user=student,
            )
        assert exc.value.status_code == 404

    @pytest.mark.asyncio
    async def test_index_must_stay_in_range(self, db_session, question_factory, subject, topic, student):
        question_factory()
        question_factory()
        session = await learning_session_service.create_session(
            db_session,
            session_in=LearningSessionCreate(subject_id=subject.id, topic_id=topic.id, total_questions=2),
            current_user=student,
        )
        with pytest.raises(HTTPException) as exc:
            await learning_session_service.update_session(
                db_session, session.id, LearningSessionUpdate(last_question_index=2), student
            )
        assert exc.value.status_code == 422

        updated = await learning_session_service.update_session(
            db_session, session.id, LearningSessionUpdate(last_question_index=1), student
        )
        assert updated.last_question_index == 1

    @pytest.mark.asyncio
    async def test_other_learners_cannot_read_session(
        self, db_session, question_factory, subject, topic, student, user_factory
    ):
        question_factory()
        session = await learning_session_service.create_session(
            db_session,
            session_in=LearningSessionCreate(subject_id=subject.id, topic_id=topic.id, total_questions=1),
            current_user=student,
        )
        stranger = user_factory()
        with pytest.raises(HTTPException) as exc:
            await learning_session_service.get_session(db_session, session.id, stranger)
        assert exc.value.status_code == 403
        with pytest.raises(HTTPException) as exc:
            await learning_session_service.get_session(db_session, session.id, None)
        assert exc.value.status_code == 401


class TestAnswersAndCompletion:

    @pytest.mark.asyncio
    async def test_retry_never_rewrites_first_attempt(self, db_session, question_factory, subject, topic, student):
        question = question_factory()
        session = await learning_session_service.create_session(
            db_session,
            session_in=LearningSessionCreate(subject_id=subject.id, topic_id=topic.id, total_questions=1),
            current_user=student,
        )
        await learning_session_service.record_answer(db_session, session.id, SessionAnswerCreate(
            question_id=question.id, user_answer="A", is_correct=False, attempt_count=1, first_attempt_correct=False,
        ), student)
        answer = await learning_session_service.record_answer(db_session, session.id, SessionAnswerCreate(
            question_id=question.id, user_answer="B", is_correct=True, attempt_count=2, first_attempt_correct=True,
        ), student)

        assert answer.first_attempt_correct is False
        assert answer.attempt_count == 2
        assert answer.is_correct is True
        assert len(crud_session_answer.get_all_by_session(db_session, session_id=session.id)) == 1

    @pytest.mark.asyncio
    async def test_attempt_count_never_goes_down(self, db_session, question_factory, subject, topic, student):
        question = question_factory()
        session = await learning_session_service.create_session(
            db_session,
            session_in=LearningSessionCreate(subject_id=subject.id, topic_id=topic.id, total_questions=1),
            current_user=student,
        )
        await learning_session_service.record_answer(db_session, session.id, SessionAnswerCreate(
            question_id=question.id, user_answer="B", is_correct=True, attempt_count=3,
        ), student)
        answer = await learning_session_service.record_answer(db_session, session.id, SessionAnswerCreate(
            question_id=question.id, user_answer="B", is_correct=True, attempt_count=1,
        ), student)
        assert answer.attempt_count == 3

    @pytest.mark.asyncio
    async def test_answer_must_belong_to_session(self, db_session, question_factory, subject, topic, student):
        question_factory()
        session = await learning_session_service.create_session(
            db_session,
            session_in=LearningSessionCreate(subject_id=subject.id, topic_id=topic.id, total_questions=1),
            current_user=student,
        )
        with pytest.raises(HTTPException) as exc:
            await learning_session_service.record_answer(db_session, session.id, SessionAnswerCreate(
                question_id=555555, user_answer="A", is_correct=False,
            ), student)
        assert exc.value.status_code == 400

    @pytest.mark.asyncio
    async def test_completion_publishes_once(self, db_session, question_factory, subject, topic, student):
        question_factory()
        session = await learning_session_service.create_session(
            db_session,
            session_in=LearningSessionCreate(
                subject_id=subject.id, topic_id=topic.id, total_questions=1, mode=SessionModeEnum.TEST
            ),
            current_user=student,
        )
        published = []

        async def capture(data):
            published.append(data)

        event_bus.subscribe(SESSION_COMPLETED, capture)
        try:
            first = await learning_session_service.complete_session_with_goals(
                db_session, session.id, score_percentage=100.0, time_spent_seconds=42, correct_answers=1, total_questions=1
            )
            second = await learning_session_service.complete_session_with_goals(
                db_session, session.id, score_percentage=0.0
            )
        finally:
            event_bus.unsubscribe(SESSION_COMPLETED, capture)

        assert first.status == SessionStatusEnum.COMPLETED
        assert second.score_percentage == 100.0
        assert len(published) == 1
        assert published[0]["user_id"] == student.id
        assert published[0]["correct_answers"] == 1

    @pytest.mark.asyncio
    async def test_resume_check(self, db_session, question_factory, subject, topic, student):
        question_factory()
        session = await learning_session_service.create_session(
            db_session,
            session_in=LearningSessionCreate(subject_id=subject.id, topic_id=topic.id, total_questions=1),
            current_user=student,
        )
        check = await learning_session_service.resume_check(db_session, session.id, student)
        assert check.can_resume is True
        assert check.has_answers is False
        assert check.question_count == 1

        missing = await learning_session_service.resume_check(db_session, "does-not-exist", student)
        assert missing.can_resume is False
        assert missing.reason == "Session not found"
