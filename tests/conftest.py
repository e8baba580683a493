from typing import List

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from mealbattle.app.api.deps import get_db_session, get_text_generator
from mealbattle.app.core.config import get_settings
from mealbattle.app.db import models  # noqa: F401
from mealbattle.app.db.base import Base
from mealbattle.app.main import create_app
from mealbattle.app.services.document_store import DocumentStore


class FakeTextGenerator:
    """Replays canned responses in order; the last one repeats."""

    def __init__(self, responses: List[str]):
        self.responses = list(responses)
        self.prompts: List[str] = []

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if len(self.responses) > 1:
            return self.responses.pop(0)
        return self.responses[0]


@pytest.fixture(scope="session")
def engine():
    engine = create_engine("sqlite+pysqlite:///:memory:", connect_args={"check_same_thread": False}, future=True)
    Base.metadata.create_all(bind=engine)
    return engine


@pytest.fixture
def db_session(engine):
    connection = engine.connect()
    transaction = connection.begin()
    SessionLocal = sessionmaker(bind=connection, autocommit=False, autoflush=False, future=True)
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
        transaction.rollback()
        connection.close()


@pytest.fixture
def store(db_session):
    return DocumentStore(db_session)


@pytest.fixture
def make_text_generator():
    return FakeTextGenerator


@pytest.fixture
def fake_generator():
    return FakeTextGenerator(['{"ingredients": {"egg": "2"}, "instructions": ["Whisk", "Cook"], "calories": 200}'])


@pytest.fixture
def app(db_session, fake_generator):
    app = create_app()

    def override_db():
        yield db_session

    app.dependency_overrides[get_db_session] = override_db
    app.dependency_overrides[get_text_generator] = lambda: fake_generator
    return app


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def auth_settings():
    return get_settings()


def make_token(user_id: str, email: str, settings) -> str:
    payload = {"sub": user_id, "email": email}
    return jwt.encode(payload, settings.auth_secret_key, algorithm=settings.auth_algorithm)


@pytest.fixture
def user_token(auth_settings):
    return make_token("user-1", "user1@example.com", auth_settings)


@pytest.fixture
def auth_headers(user_token):
    return {"Authorization": f"Bearer {user_token}"}


@pytest.fixture
def admin_headers(auth_settings):
    return {"X-Admin-Secret": auth_settings.admin_secret}
