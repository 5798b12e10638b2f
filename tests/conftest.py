import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret")

import jwt
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from careercoach.auth.context import CallerContext
from careercoach.config import settings
from careercoach.database import Base, get_db
from careercoach.main import app
from careercoach.models import User
from careercoach.routes.assessments import get_generation_client
from careercoach.services.gemini_service import GeminiClient

TEST_SECRET = "test-secret"

SAMPLE_QUESTIONS = [
    {
        "question": "What is the capital of the United Kingdom?",
        "options": ["Paris", "London", "Berlin", "Madrid"],
        "correctAnswer": "B",
        "explanation": "London is the capital of the United Kingdom.",
        "difficulty": 1,
        "timeToAnswer": "1",
        "skills": ["geography"]
    },
    {
        "question": "Which keyword defines a function in Python?",
        "options": ["func", "def", "lambda", "fn"],
        "correctAnswer": "B",
        "explanation": "Functions are declared with def.",
        "difficulty": 1,
        "timeToAnswer": "1",
        "skills": ["python"]
    },
    {
        "question": "Which HTTP status means Service Unavailable?",
        "options": ["500", "502", "503", "504"],
        "correctAnswer": "C",
        "explanation": "503 is Service Unavailable.",
        "difficulty": 2,
        "timeToAnswer": "1",
        "skills": ["http"]
    },
]


class FakeResponse:
    def __init__(self, text):
        self.text = text


class FakeModel:
    """Stands in for a Gemini GenerativeModel; replays queued texts or exceptions."""

    def __init__(self, outcomes=None):
        self.outcomes = list(outcomes or [])
        self.prompts = []

    def generate_content(self, prompt):
        self.prompts.append(prompt)
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return FakeResponse(outcome)


class SleepRecorder:
    def __init__(self):
        self.delays = []

    def __call__(self, seconds):
        self.delays.append(seconds)


def make_token(subject):
    return jwt.encode({"sub": subject}, TEST_SECRET, algorithm="HS256")


@pytest.fixture(autouse=True)
def jwt_secret(monkeypatch):
    monkeypatch.setattr(settings, "JWT_SECRET_KEY", TEST_SECRET)
    monkeypatch.setattr(settings, "JWT_AUDIENCE", None)


@pytest.fixture
def engine():
    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    Base.metadata.drop_all(bind=test_engine)
    test_engine.dispose()


@pytest.fixture
def db(engine):
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_user(db):
    def _make_user(external_id, **profile):
        user = User(external_id=external_id, **profile)
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    return _make_user


@pytest.fixture
def alice(make_user):
    return make_user("user_alice", email="alice@example.com", industry="fintech", experience=5, skills=["python", "sql"])


@pytest.fixture
def bob(make_user):
    return make_user("user_bob", email="bob@example.com")


@pytest.fixture
def alice_ctx(alice):
    return CallerContext(user_id=alice.id)


@pytest.fixture
def bob_ctx(bob):
    return CallerContext(user_id=bob.id)


@pytest.fixture
def fake_model():
    return FakeModel()


@pytest.fixture
def sleep_recorder():
    return SleepRecorder()


@pytest.fixture
def gemini_client(fake_model, sleep_recorder):
    return GeminiClient(api_key="test-key", model_name="gemini-test", model=fake_model, sleep=sleep_recorder)


@pytest.fixture
def client(db, gemini_client):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_generation_client] = lambda: gemini_client
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    def _headers(subject):
        return {"Authorization": f"Bearer {make_token(subject)}"}
    return _headers
