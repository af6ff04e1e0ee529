"""Test fixtures for the Tourdesk backend."""
from __future__ import annotations

import os
from collections.abc import AsyncIterator, Awaitable, Callable, Mapping
from typing import Any

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine

os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test.db")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

from tourdesk.api.deps import get_notifier
from tourdesk.core import errors
from tourdesk.core.config import get_settings
from tourdesk.core.security import CredentialStore
from tourdesk.db.base import Base
from tourdesk.db.session import dispose_engine, get_sessionmaker
from tourdesk.main import app
from tourdesk.models import User, UserRole


class RecordingNotifier:
    """Captures outgoing messages instead of delivering them."""

    def __init__(self) -> None:
        self.sent: list[dict[str, Any]] = []
        self.fail = False

    async def send(
        self, *, recipient: str, template: str, context: Mapping[str, Any]
    ) -> None:
        if self.fail:
            raise errors.NotificationError()
        self.sent.append(
            {"recipient": recipient, "template": template, "context": dict(context)}
        )

    def last_url(self) -> str:
        return self.sent[-1]["context"]["url"]


@pytest.fixture(scope="session")
def db_url(tmp_path_factory: pytest.TempPathFactory) -> str:
    """Provide a temporary SQLite database URL for the test session."""
    db_path = tmp_path_factory.mktemp("db") / "test.db"
    return f"sqlite+aiosqlite:///{db_path}"


@pytest_asyncio.fixture()
async def reset_database(db_url: str) -> AsyncIterator[None]:
    """Drop and recreate the database schema for an isolated test."""
    os.environ["DATABASE_URL"] = db_url
    get_settings.cache_clear()
    get_settings()

    await dispose_engine(db_url)
    engine = create_async_engine(db_url, future=True)
    async with engine.begin() as connection:
        await connection.run_sync(Base.metadata.drop_all)
        await connection.run_sync(Base.metadata.create_all)
    await engine.dispose()
    yield
    await dispose_engine(db_url)


@pytest.fixture()
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest_asyncio.fixture()
async def app_context(
    reset_database: None, db_url: str, notifier: RecordingNotifier
) -> AsyncIterator[dict[str, Any]]:
    """Yield an async client and seeded users, one per role."""
    sessionmaker = get_sessionmaker(db_url)
    credentials = CredentialStore(get_settings())
    password = "Passw0rd!"

    seeded = {
        "admin": ("Ada Admin", "admin@example.com", UserRole.ADMIN),
        "lead_guide": ("Lee Lead", "lead@example.com", UserRole.LEAD_GUIDE),
        "guide": ("Gus Guide", "guide@example.com", UserRole.GUIDE),
        "user": ("Tara Traveller", "traveller@example.com", UserRole.USER),
        "other_user": ("Otto Other", "otto@example.com", UserRole.USER),
    }
    context: dict[str, Any] = {"password": password, "notifier": notifier}
    async with sessionmaker() as session:
        hashed = await credentials.hash(password)
        for key, (name, email, role) in seeded.items():
            user = User(name=name, email=email, role=role, hashed_password=hashed)
            session.add(user)
            context[key] = user
        await session.commit()
        for key in seeded:
            context[f"{key}_id"] = context[key].id
            context[f"{key}_email"] = context[key].email

    app.dependency_overrides[get_notifier] = lambda: notifier
    transport = ASGITransport(app=app)
    try:
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            context["client"] = client
            yield context
    finally:
        app.dependency_overrides.pop(get_notifier, None)


@pytest.fixture()
def login(
    app_context: dict[str, Any],
) -> Callable[..., Awaitable[dict[str, str]]]:
    """Return a helper that logs in and yields bearer headers.

    The session cookie is dropped so each request authenticates explicitly.
    """
    client: AsyncClient = app_context["client"]

    async def _login(email: str, password: str | None = None) -> dict[str, str]:
        response = await client.post(
            "/api/v1/users/login",
            json={"email": email, "password": password or app_context["password"]},
        )
        assert response.status_code == 200, response.text
        client.cookies.clear()
        return {"Authorization": f"Bearer {response.json()['access_token']}"}

    return _login
