"""Shared test fixtures."""

from __future__ import annotations

import os
import uuid
from collections.abc import AsyncGenerator, Callable
from datetime import datetime, timedelta, timezone
from pathlib import Path

# Settings are read at import time by the app factory
os.environ["FINQUEST_REDIS_URL"] = ""
os.environ["FINQUEST_JWT_SECRET"] = "test-secret-with-at-least-32-bytes!!"
os.environ["FINQUEST_GOOGLE_API_KEY"] = ""
os.environ["FINQUEST_GATEWAY_API_KEY"] = ""
os.environ["FINQUEST_LOG_FORMAT"] = "console"

import jwt
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from finquest.config import get_settings
from finquest.database import close_db, create_tables, get_session, init_db
from finquest.db.models import Profile
from finquest.education.generator import BaseContentProvider, ContentGenerator, get_content_generator
from finquest.main import create_app
from finquest.seed import seed_catalogs

get_settings.cache_clear()


def make_token(
    user_id: uuid.UUID,
    email: str | None = None,
    full_name: str | None = None,
    expires_minutes: int = 60,
) -> str:
    """Sign a token shaped like the auth provider's access tokens."""
    settings = get_settings()
    now = datetime.now(timezone.utc)
    payload: dict = {
        "sub": str(user_id),
        "aud": settings.jwt_audience,
        "role": "authenticated",
        "iat": now,
        "exp": now + timedelta(minutes=expires_minutes),
        "user_metadata": {},
    }
    if settings.jwt_issuer:
        payload["iss"] = settings.jwt_issuer
    if email is not None:
        payload["email"] = email
    if full_name is not None:
        payload["user_metadata"]["full_name"] = full_name
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


class FakeProvider(BaseContentProvider):
    """Provider returning canned text and recording every prompt."""

    name = "fake"

    def __init__(self, responses: list[str] | str = "# Generated lesson\n\nBody.") -> None:
        super().__init__(api_key="fake", model="fake-model")
        self.responses = [responses] if isinstance(responses, str) else list(responses)
        self.calls: list[tuple[str, str | None]] = []

    async def complete(self, prompt: str, system: str | None = None) -> str:
        self.calls.append((prompt, system))
        if len(self.responses) > 1:
            return self.responses.pop(0)
        return self.responses[0]


@pytest_asyncio.fixture
async def database(tmp_path: Path) -> AsyncGenerator[None, None]:
    """Fresh SQLite database per test, tables created and catalogs seeded."""
    await init_db(f"sqlite+aiosqlite:///{tmp_path / 'finquest.db'}")
    await create_tables()
    async for session in get_session():
        await seed_catalogs(session)
        break
    yield
    await close_db()


@pytest_asyncio.fixture
async def db_session(database: None) -> AsyncGenerator[AsyncSession, None]:
    """Direct database session for service calls and assertions."""
    async for session in get_session():
        yield session
        break


@pytest_asyncio.fixture
async def profile(db_session: AsyncSession) -> Profile:
    """A fresh profile inserted directly (no signup side effects)."""
    row = Profile(id=uuid.uuid4(), email="saver@example.com", full_name="Test Saver")
    db_session.add(row)
    await db_session.commit()
    return row


@pytest.fixture
def fake_provider() -> FakeProvider:
    return FakeProvider()


@pytest_asyncio.fixture
async def app(database: None, fake_provider: FakeProvider):
    application = create_app()
    application.dependency_overrides[get_content_generator] = lambda: ContentGenerator(fake_provider)
    yield application
    application.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def user_id() -> uuid.UUID:
    return uuid.uuid4()


@pytest.fixture
def token_factory() -> Callable[..., str]:
    return make_token


@pytest_asyncio.fixture
async def authed_client(client: AsyncClient, user_id: uuid.UUID) -> AsyncClient:
    """Client carrying a bearer token for ``user_id``."""
    token = make_token(user_id, email="learner@example.com", full_name="Asha Learner")
    client.headers["Authorization"] = f"Bearer {token}"
    return client
