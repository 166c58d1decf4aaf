"""
Shared fixtures: in-memory database, storage and auth helpers.
"""
import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["OPENAI_API_KEY"] = ""

import random

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.agents.quiz.fake_factory import FakeQuestionFactory
from app.core.dependencies import get_db, get_file_service, get_question_factory, get_question_generator
from app.core.permissions import UserContext
from app.core.security import create_access_token
from app.main import app
from app.models import Base


class InMemoryFileService:
    """Object storage double keeping files in a dict."""

    def __init__(self):
        self.objects = {}

    def upload_bytes(self, content, filename, owner_id, content_type=None):
        key = f"user_{owner_id}/{len(self.objects)}_{filename}"
        self.objects[key] = content
        return key

    def get_file_content(self, object_key):
        return self.objects[object_key]

    def delete_file(self, object_key):
        return self.objects.pop(object_key, None) is not None

    def generate_signed_url(self, object_key, expiration_minutes=15):
        return f"https://storage.test/{object_key}?expires={expiration_minutes}"


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def file_service():
    return InMemoryFileService()


@pytest.fixture
def user():
    return UserContext(user_id="user-1")


@pytest.fixture
def other_user():
    return UserContext(user_id="user-2")


@pytest.fixture
def admin():
    return UserContext(user_id="admin-1", roles=frozenset({"admin"}))


@pytest.fixture
def auth_headers():
    def make(user_id="user-1", roles=()):
        return {"Authorization": f"Bearer {create_access_token(user_id, roles)}"}
    return make


@pytest.fixture
def client(db, file_service):
    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_file_service] = lambda: file_service
    app.dependency_overrides[get_question_generator] = lambda: None
    app.dependency_overrides[get_question_factory] = lambda: FakeQuestionFactory(rng=random.Random(7))
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
