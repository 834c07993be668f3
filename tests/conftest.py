"""
Shared pytest fixtures.

- FixedClock: a settable clock for token expiry and timestamps
- InMemoryStore-backed services with a cheap bcrypt cost
- FastAPI TestClient wired to the in-memory store and a fake S3
"""

import os
import sys
from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config import Settings
from dependencies import get_s3_service
from main import create_app
from models.user import NewUser
from services.accounts import AccountService
from services.memory_store import InMemoryStore
from services.passwords import PasswordVault
from services.posts import PostsService
from services.tokens import TokenIssuer

TEST_SECRET = "test-signing-secret"


class FixedClock:
    """Clock that only moves when told to."""

    def __init__(self, start: datetime = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


class FakeS3Service:
    """Records uploads instead of talking to S3."""

    def __init__(self):
        self.uploads = []

    async def upload_image(self, file, folder, owner_id="", max_size_mb=10):
        content = await file.read()
        key = f"{folder}/{file.filename}"
        self.uploads.append((key, file.content_type, len(content), owner_id))
        return key


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def vault():
    # minimum bcrypt cost keeps the tests fast
    return PasswordVault(rounds=4)


@pytest.fixture
def tokens(clock):
    return TokenIssuer(TEST_SECRET, ttl_seconds=3600, clock=clock)


@pytest.fixture
def accounts(store, vault, tokens):
    return AccountService(store, vault, tokens, store_timeout=1.0)


@pytest.fixture
def posts_service(store, clock):
    return PostsService(store, store, store_timeout=1.0, max_attempts=5, clock=clock)


@pytest_asyncio.fixture
async def alice(store):
    return await store.create_user(
        NewUser(first_name="Alice", last_name="Anders", email="a@x.com", location="Oslo", occupation="Pilot"),
        password_hash="unused",
        picture_path="users/alice.png",
    )


@pytest_asyncio.fixture
async def bob(store):
    return await store.create_user(
        NewUser(first_name="Bob", last_name="Berg", email="b@x.com"),
        password_hash="unused",
    )


@pytest.fixture
def settings():
    return Settings(
        jwt_secret=TEST_SECRET,
        bcrypt_rounds=4,
        store_backend="memory",
        store_timeout_seconds=1.0,
        cors_origins=["http://localhost:3000"],
    )


@pytest.fixture
def fake_s3():
    return FakeS3Service()


@pytest.fixture
def client(settings, fake_s3):
    app = create_app(settings)
    app.dependency_overrides[get_s3_service] = lambda: fake_s3
    with TestClient(app) as test_client:
        yield test_client


def register(client, email="a@x.com", password="s3cret-pass", first_name="Alice", last_name="Anders", files=None):
    return client.post(
        "/auth/register",
        data={
            "firstName": first_name,
            "lastName": last_name,
            "email": email,
            "password": password,
            "location": "Oslo",
            "occupation": "Pilot",
        },
        files=files,
    )


def login(client, email="a@x.com", password="s3cret-pass"):
    response = client.post("/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    body = response.json()
    return body["token"], body["user"]
