import sys
import os
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

# Settings are read at import time, so point the app at the test database first
os.environ["TESTING"] = "true"
os.environ.setdefault("DATABASE_URL", os.environ.get("TEST_DATABASE_URL", "sqlite:///./test.db"))
os.environ["CACHE_BACKEND"] = "memory"

import uuid
import pytest
from sqlalchemy.orm import sessionmaker
from fastapi.testclient import TestClient

import main
from app.core.cache import cache
from app.core.constants import QuestionStatusEnum, RoleEnum
from app.core.database import Base, engine as app_engine, get_db
from app.core.security import create_access_token
from app.crud.question import question as crud_question
from app.crud.subject import subject as crud_subject, topic as crud_topic
from app.crud.user import user as crud_user
from app.engine.registry import engine_registry
from app.schemas.question_review import GeneratedReview
from app.utils import deps as deps_utils

test_db_url = os.environ["DATABASE_URL"]

TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=app_engine)


@pytest.fixture(scope="session")
def database_engine():
    Base.metadata.create_all(bind=app_engine)
    yield app_engine
    app_engine.dispose()
    if test_db_url.startswith("sqlite:///./"):
        path = test_db_url.replace("sqlite:///", "")
        if os.path.exists(path):
            os.remove(path)


@pytest.fixture(scope="function")
def db_session(database_engine):
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.rollback()
        db.close()
        with database_engine.begin() as conn:
            for table in reversed(Base.metadata.sorted_tables):
                conn.execute(table.delete())


@pytest.fixture(autouse=True)
def _reset_shared_state():
    cache._entries.clear()
    engine_registry._engines.clear()
    yield
    cache._entries.clear()
    engine_registry._engines.clear()


class StubReviewGenerator:
    """Stands in for the AI client; returns a canned review or raises the configured error."""

    model = "stub-model"

    def __init__(self):
        self.review = GeneratedReview(
            hint1="Think about which quantity stays the same when both sides are scaled by the same factor here.",
            hint2="Write the ratio of the two sides first, then compare it carefully with each of the options given.",
            hint3="Divide both sides by the common factor; the option left after simplifying the ratio is the answer.",
            solution=(
                "Step 1: Write down the given ratio of the two sides.\n"
                "Step 2: Divide both terms by their common factor to simplify.\n"
                "Step 3: Compare the simplified ratio with the options; option B matches."
            ),
            explanation=(
                "The question tests simplification of ratios. Dividing both terms by the same non-zero number "
                "keeps the ratio unchanged, so the simplest form is found by removing the common factor. "
                "Options A and C forget to divide one of the terms."
            ),
            tokens_used=900,
        )
        self.error = None
        self.calls = []

    async def review_question(self, question, subject_name=None):
        self.calls.append(question.id)
        if self.error is not None:
            raise self.error
        return self.review


@pytest.fixture
def review_generator_stub():
    return StubReviewGenerator()


@pytest.fixture(scope="function")
def client(db_session, review_generator_stub):
    # Re-initialize the app for each test function to ensure a clean state
    from importlib import reload
    reload(main)
    main.app.dependency_overrides[get_db] = lambda: db_session
    main.app.dependency_overrides[deps_utils.get_db] = lambda: db_session
    main.app.dependency_overrides[deps_utils.get_transactional_db] = lambda: db_session
    main.app.dependency_overrides[deps_utils.get_session_factory] = lambda: TestingSessionLocal
    main.app.dependency_overrides[deps_utils.get_review_generator] = lambda: review_generator_stub
    with TestClient(main.app) as test_client:
        yield test_client


def _create_user(db_session, role: RoleEnum):
    return crud_user.create(db_session, obj_in={
        "full_name": f"Test {role.value}",
        "email": f"{role.value}-{uuid.uuid4()}@test.com",
        "role": role,
        "is_active": True,
    })


@pytest.fixture
def user_factory(db_session):
    def _create(role: RoleEnum = RoleEnum.STUDENT):
        return _create_user(db_session, role)
    return _create


@pytest.fixture
def student(db_session):
    return _create_user(db_session, RoleEnum.STUDENT)


@pytest.fixture
def admin_user(db_session):
    return _create_user(db_session, RoleEnum.ADMIN)


@pytest.fixture
def student_token(student):
    return create_access_token(student.id, student.role.value)


@pytest.fixture
def admin_token(admin_user):
    return create_access_token(admin_user.id, admin_user.role.value)


@pytest.fixture
def auth_headers():
    def _headers(token):
        return {"Authorization": f"Bearer {token}"}
    return _headers


@pytest.fixture
def subject(db_session):
    return crud_subject.create(db_session, obj_in={"name": "Mathematics", "slug": f"maths-{uuid.uuid4().hex[:8]}"})


@pytest.fixture
def topic_factory(db_session, subject):
    def _create(name="Algebra", subject_id=None):
        return crud_topic.create(db_session, obj_in={
            "subject_id": subject_id or subject.id,
            "name": name,
        })
    return _create


@pytest.fixture
def topic(topic_factory):
    return topic_factory()


@pytest.fixture
def question_factory(db_session, subject, topic):
    counter = {"n": 0}

    def _create(**overrides):
        counter["n"] += 1
        data = {
            "subject_id": subject.id,
            "topic_id": topic.id,
            "question_text": f"Question {counter['n']}: simplify 4:8",
            "option_a": "1:3",
            "option_b": "1:2",
            "option_c": "2:3",
            "option_d": "3:4",
            "correct_answer": "B",
            "hint1": "Find the common factor.",
            "hint2": "Both numbers are divisible by 4.",
            "hint3": "4/4 : 8/4",
            "solution": "Divide both terms by 4 to get 1:2.",
            "explanation": "Ratios keep their value when both terms are divided by the same number.",
            "status": QuestionStatusEnum.PUBLISHED,
        }
        data.update(overrides)
        return crud_question.create(db_session, obj_in=data)
    return _create
