import sys
from pathlib import Path as _Path
sys.path.insert(0, str(_Path(__file__).resolve().parents[1] / "src"))

import mongomock
import pytest
from fastapi.testclient import TestClient

from usersite.app import create_app
from usersite.auth.session import MemorySessionStore
from usersite.config import Settings
from usersite.infra.user_repo import UserRepository

# Smallest valid JPEG header/trailer; content is never decoded.
JPEG_BYTES = b"\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00\xff\xd9"


@pytest.fixture()
def settings() -> Settings:
    return Settings(
        database_uri="mongodb://localhost:27017/usersite_test",
        db_name="usersite_test",
        secret_key="test-secret-key",
    )


@pytest.fixture()
def repo() -> UserRepository:
    client = mongomock.MongoClient()
    r = UserRepository(client["usersite_test"]["users"])
    r.ensure_indexes()
    return r


@pytest.fixture()
def sessions(settings) -> MemorySessionStore:
    return MemorySessionStore(max_age=settings.session_max_age)


@pytest.fixture()
def app(settings, repo, sessions):
    return create_app(settings, repo=repo, sessions=sessions)


@pytest.fixture()
def client(app) -> TestClient:
    return TestClient(app)


@pytest.fixture()
def alice_id(client, repo) -> str:
    """Sign up alice with a JPEG through the web form and return her user id."""
    r = client.post(
        "/signup",
        data={"username": "alice", "password": "p@ss1234", "birthdate": "2000-01-01"},
        files={"profileImage": ("alice.jpg", JPEG_BYTES, "image/jpeg")},
    )
    assert r.status_code == 200
    return repo.find_by_username("alice").id


def login(client, username="alice", password="p@ss1234"):
    return client.post(
        "/login",
        data={"username": username, "password": password},
        follow_redirects=False,
    )
