"""
Test configuration and fixtures for the LineTime API.

Every test gets its own SQLite database file, an in-memory Redis double with
a controllable clock, a recording email sender and in-memory object storage.
"""

import asyncio
import math
import os
import tempfile
from datetime import datetime, timedelta, timezone
from typing import Dict, Generator, List, Optional, Tuple

from dotenv import load_dotenv

load_dotenv()

os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{tempfile.mktemp(suffix='.db')}"
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("GOOGLE_CLIENT_ID", "test-client-id.apps.googleusercontent.com")

import pytest
from fastapi.testclient import TestClient
from redis.exceptions import RedisError
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from app.features.auth.models.user import User
from app.features.auth.utils.security import TokenIssuer, hash_password
from app.features.auth.utils.verification import VerificationCodeManager
from app.platform.config import get_settings
from app.platform.db.models import Base
from app.platform.exceptions import EmailDeliveryError


class FakeClock:
    """Mutable UTC clock shared by the Redis double and the code manager."""

    def __init__(self, now: Optional[datetime] = None):
        self.now = now or datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class FakeRedis:
    """Implements the subset of redis.asyncio.Redis used by verification codes."""

    def __init__(self, clock: FakeClock):
        self.clock = clock
        self.store: Dict[str, Tuple[str, Optional[datetime]]] = {}
        self.failing_prefixes: List[str] = []
        self.fail_deletes = False

    def _check(self, key: str) -> None:
        if any(key.startswith(prefix) for prefix in self.failing_prefixes):
            raise RedisError(f"simulated failure for {key}")

    def _live(self, key: str):
        entry = self.store.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at is not None and self.clock() >= expires_at:
            del self.store[key]
            return None
        return entry

    async def get(self, key: str):
        self._check(key)
        entry = self._live(key)
        return entry[0] if entry else None

    async def set(self, key: str, value, ex=None):
        self._check(key)
        if isinstance(ex, timedelta):
            ex = ex.total_seconds()
        expires_at = self.clock() + timedelta(seconds=ex) if ex else None
        self.store[key] = (str(value), expires_at)
        return True

    async def delete(self, *keys: str) -> int:
        if self.fail_deletes:
            raise RedisError("simulated delete failure")
        removed = 0
        for key in keys:
            if self.store.pop(key, None) is not None:
                removed += 1
        return removed

    async def ttl(self, key: str) -> int:
        entry = self._live(key)
        if entry is None:
            return -2
        if entry[1] is None:
            return -1
        return math.ceil((entry[1] - self.clock()).total_seconds())

    async def aclose(self) -> None:
        pass


class RecordingEmailSender:
    def __init__(self):
        self.sent: List[Tuple[str, str, str]] = []
        self.fail = False

    async def send_verification_code(self, to_email: str, code: str, flow: str) -> None:
        if self.fail:
            raise EmailDeliveryError()
        self.sent.append((to_email, code, flow))

    def last_code(self, to_email: Optional[str] = None) -> str:
        for email, code, _ in reversed(self.sent):
            if to_email is None or email == to_email:
                return code
        raise AssertionError(f"no code sent to {to_email}")


class InMemoryObjectStorage:
    base_url = "http://storage.test/linetime"

    def __init__(self):
        self.objects: Dict[str, Tuple[bytes, str]] = {}
        self.fail_prefix: Optional[str] = None

    async def upload_bytes(self, key: str, data: bytes, content_type: str) -> str:
        if self.fail_prefix and key.startswith(self.fail_prefix):
            raise OSError(f"simulated upload failure for {key}")
        self.objects[key] = (data, content_type)
        return f"{self.base_url}/{key}"

    async def delete(self, key: str) -> None:
        self.objects.pop(key, None)


@pytest.fixture
def settings():
    return get_settings()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fake_redis(clock) -> FakeRedis:
    return FakeRedis(clock)


@pytest.fixture
def email_sender() -> RecordingEmailSender:
    return RecordingEmailSender()


@pytest.fixture
def object_storage() -> InMemoryObjectStorage:
    return InMemoryObjectStorage()


@pytest.fixture
def code_manager(fake_redis, email_sender, clock) -> VerificationCodeManager:
    return VerificationCodeManager(fake_redis, email_sender, clock=clock)


@pytest.fixture
def token_issuer(settings) -> TokenIssuer:
    return TokenIssuer.from_settings(settings)


async def _create_schema(engine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


@pytest.fixture
def db_engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", poolclass=NullPool)
    yield engine


@pytest.fixture
async def db_session(db_engine):
    await _create_schema(db_engine)
    session_factory = async_sessionmaker(db_engine, expire_on_commit=False, autoflush=False)
    async with session_factory() as session:
        yield session
    await db_engine.dispose()


async def create_user(
    db,
    email: str = "alice@gmail.com",
    username: str = "alice",
    password: Optional[str] = "abc12345",
    **fields,
) -> User:
    user = User(
        email=email,
        username=username,
        password_hash=hash_password(password) if password else None,
        **fields,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


@pytest.fixture
def client(db_engine, fake_redis, email_sender, object_storage) -> Generator[TestClient, None, None]:
    """
    TestClient with the database, Redis, email and storage dependencies
    replaced by per-test doubles.
    """
    from app.main import app
    from app.platform.cache.redis import get_redis
    from app.platform.db.session import get_db
    from app.platform.services.email import get_email_sender
    from app.platform.storage.object_storage import get_object_storage

    asyncio.run(_create_schema(db_engine))
    session_factory = async_sessionmaker(db_engine, expire_on_commit=False, autoflush=False)

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis] = lambda: fake_redis
    app.dependency_overrides[get_email_sender] = lambda: email_sender
    app.dependency_overrides[get_object_storage] = lambda: object_storage

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


def register(client: TestClient, email: str, username: str, password: str = "abc12345") -> dict:
    response = client.post(
        "/api/auth/register",
        json={"email": email, "username": username, "password": password},
    )
    body = response.json()
    assert body["code"] == 200, body
    return body["data"]


def auth_headers(tokens: dict) -> dict:
    return {"Authorization": f"Bearer {tokens['access_token']}"}
