"""Shared test fixtures."""

from __future__ import annotations

import os
import tempfile
import time
from collections.abc import AsyncGenerator, AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest
import pytest_asyncio
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

os.environ.setdefault("EVENTHUB_LOG_FORMAT", "console")
os.environ.setdefault("EVENTHUB_LOG_LEVEL", "WARNING")

from eventhub import redis_client  # noqa: E402
from eventhub.auth.jwt import create_access_token, reset_keys  # noqa: E402
from eventhub.config import get_settings  # noqa: E402
from eventhub.database import close_db, create_tables, get_session, init_db  # noqa: E402
from eventhub.db.models import Role, User  # noqa: E402

PASSWORD = "SecurePass1"


def _ensure_test_keys() -> tuple[str, str]:
    """Generate an RSA key pair for JWT signing if the configured one is missing."""
    get_settings.cache_clear()
    settings = get_settings()
    private_path = settings.jwt_private_key_path
    public_path = settings.jwt_public_key_path

    if os.path.exists(private_path) and os.path.exists(public_path):
        return private_path, public_path

    tmpdir = tempfile.mkdtemp(prefix="eventhub_test_keys_")
    private_path = os.path.join(tmpdir, "jwt_private.pem")
    public_path = os.path.join(tmpdir, "jwt_public.pem")

    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    with open(private_path, "wb") as f:
        f.write(key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        ))
    with open(public_path, "wb") as f:
        f.write(key.public_key().public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        ))

    os.environ["EVENTHUB_JWT_PRIVATE_KEY_PATH"] = private_path
    os.environ["EVENTHUB_JWT_PUBLIC_KEY_PATH"] = public_path

    get_settings.cache_clear()
    reset_keys()
    return private_path, public_path


class FakeRedis:
    """In-memory stand-in for the few Redis calls the app makes."""

    def __init__(self) -> None:
        self.counters: dict[str, int] = {}
        self.expiry: dict[str, float] = {}

    async def ping(self) -> bool:
        return True

    def pipeline(self) -> FakePipeline:
        return FakePipeline(self)


class FakePipeline:
    def __init__(self, redis: FakeRedis) -> None:
        self._redis = redis
        self._ops: list[tuple[str, tuple[Any, ...]]] = []

    def incr(self, key: str) -> None:
        self._ops.append(("incr", (key,)))

    def expire(self, key: str, seconds: int) -> None:
        self._ops.append(("expire", (key, seconds)))

    async def execute(self) -> list[Any]:
        results: list[Any] = []
        for op, args in self._ops:
            if op == "incr":
                self._redis.counters[args[0]] = self._redis.counters.get(args[0], 0) + 1
                results.append(self._redis.counters[args[0]])
            else:
                self._redis.expiry[args[0]] = time.time() + args[1]
                results.append(True)
        return results


@pytest.fixture
def fake_redis(monkeypatch: pytest.MonkeyPatch) -> FakeRedis:
    fake = FakeRedis()
    monkeypatch.setattr(redis_client, "_pool", fake)
    return fake


@pytest_asyncio.fixture
async def app(tmp_path) -> AsyncGenerator[FastAPI, None]:
    """App wired to a fresh SQLite database."""
    _ensure_test_keys()
    await init_db(f"sqlite+aiosqlite:///{tmp_path / 'eventhub_test.db'}")
    await create_tables()

    from eventhub.main import create_app

    application = create_app()
    yield application
    application.dependency_overrides.clear()
    await close_db()


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@asynccontextmanager
async def session_scope() -> AsyncIterator[AsyncSession]:
    """One session from the app's own dependency, closed on exit."""
    sessions = get_session()
    session = await anext(sessions)
    try:
        yield session
    finally:
        await sessions.aclose()


@pytest_asyncio.fixture
async def db_session(app: FastAPI) -> AsyncGenerator[AsyncSession, None]:
    """Direct database session for setup and assertions."""
    async with session_scope() as session:
        yield session


def auth_headers(user: User) -> dict[str, str]:
    token = create_access_token(user.id, user.email, user.role)
    return {"Authorization": f"Bearer {token}"}


MakeUser = Callable[..., Awaitable[tuple[User, dict[str, str]]]]


@pytest_asyncio.fixture
async def make_user(app: FastAPI) -> MakeUser:
    """Create a user straight in the database; returns (user, auth headers)."""
    from eventhub.auth.service import register_user

    async def _make(email: str, role: Role = Role.USER, name: str | None = None) -> tuple[User, dict[str, str]]:
        async with session_scope() as db:
            user = await register_user(
                db, email=email, password=PASSWORD, name=name or email.split("@")[0], role=role,
            )
            await db.commit()
        return user, auth_headers(user)

    return _make


def event_payload(**overrides: Any) -> dict[str, Any]:
    now = datetime.now(timezone.utc)
    payload = {
        "title": "Hackathon",
        "description": "48 hours of building",
        "prize": "0.5 ETH",
        "thumbnail": "https://img.example.com/hack.png",
        "start_date": (now - timedelta(hours=1)).isoformat(),
        "end_date": (now + timedelta(days=2)).isoformat(),
    }
    payload.update(overrides)
    return payload


async def create_event(client: AsyncClient, headers: dict[str, str], **overrides: Any) -> dict[str, Any]:
    response = await client.post("/api/event", json=event_payload(**overrides), headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]
