# tests/conftest.py
import os

# must be set before taskapi.config is imported
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["LOG_TO_FILE"] = "0"

from typing import Dict

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from taskapi.db import get_session
from taskapi.main import app
from taskapi.models import User
from taskapi.services import credentials

PASSWORD = "password123"


@pytest.fixture()
def engine():
    """
    Fresh in-memory SQLite per test. StaticPool keeps one shared connection so
    the TestClient worker thread sees the same database as the test body.
    """
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture()
def client(engine):
    def _get_session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = _get_session
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture()
def user(session) -> User:
    return credentials.register(session, "alice@example.com", PASSWORD, "Alice", "Smith")


@pytest.fixture()
def other_user(session) -> User:
    return credentials.register(session, "bob@example.com", PASSWORD, "Bob", "Jones")


def signup(client: TestClient, email: str = "carol@example.com", password: str = PASSWORD):
    return client.post(
        "/auth/signup",
        json={"email": email, "password": password, "first_name": "Carol", "last_name": "White"},
    )


@pytest.fixture()
def auth_headers(client) -> Dict[str, str]:
    resp = signup(client)
    assert resp.status_code == 201, resp.text
    return {"Authorization": f"Bearer {resp.json()['access_token']}"}
