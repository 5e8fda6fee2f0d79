"""Shared test fixtures for backend tests."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from typing import List, Tuple
from uuid import UUID

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.dialects.postgresql import UUID as PGUUID
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.ext.compiler import compiles
from sqlalchemy.pool import StaticPool

from push_engine.api.dependencies import get_notifications_facade
from push_engine.core.database import get_db
from push_engine.domains.notifications import NotificationsFacade
from push_engine.domains.notifications.channels import PushClients
from push_engine.main import app as fastapi_app
from push_engine.models import Base, PushChannel
from tests.utils.push_builders import FakeAdapter


SQLITE_TEST_URL = "sqlite+aiosqlite:///:memory:"


@compiles(PGUUID, "sqlite")
def compile_uuid(element, compiler, **kw):  # type: ignore[override]
    return "CHAR(36)"


class RecordingEnqueuer:
    """Collects ``(notification_id, generation)`` pairs instead of queueing Celery tasks."""

    def __init__(self) -> None:
        self.calls: List[Tuple[UUID, int]] = []
        self.failures: List[Exception] = []

    def __call__(self, notification_id: UUID, generation: int) -> None:
        if self.failures:
            raise self.failures.pop(0)
        self.calls.append((notification_id, generation))


@pytest_asyncio.fixture
async def async_engine() -> AsyncGenerator[AsyncEngine, None]:
    """Provide an async engine backed by a fresh in-memory SQLite database."""
    engine = create_async_engine(
        SQLITE_TEST_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def async_session_factory(
    async_engine: AsyncEngine,
) -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """Provide an async session factory bound to the test engine."""
    factory = async_sessionmaker(
        async_engine,
        expire_on_commit=False,
        class_=AsyncSession,
    )
    yield factory


@pytest_asyncio.fixture
async def async_session(
    async_session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Yield an AsyncSession and ensure rollback between tests."""
    async with async_session_factory() as session:
        try:
            yield session
        finally:
            await session.rollback()


@pytest.fixture
def enqueuer() -> RecordingEnqueuer:
    return RecordingEnqueuer()


@pytest.fixture
def fcm_adapter() -> FakeAdapter:
    return FakeAdapter(PushChannel.FCM)


@pytest.fixture
def expo_adapter() -> FakeAdapter:
    return FakeAdapter(PushChannel.EXPO)


@pytest.fixture
def push_clients(fcm_adapter: FakeAdapter, expo_adapter: FakeAdapter) -> PushClients:
    return PushClients({PushChannel.FCM: fcm_adapter, PushChannel.EXPO: expo_adapter})


@pytest_asyncio.fixture
async def notifications_facade(
    async_session: AsyncSession,
    push_clients: PushClients,
    enqueuer: RecordingEnqueuer,
) -> AsyncGenerator[NotificationsFacade, None]:
    """Shortcut fixture to interact with the notifications domain facade."""
    yield NotificationsFacade(async_session, clients=push_clients, enqueue=enqueuer)


@pytest_asyncio.fixture
async def test_app(
    async_session: AsyncSession,
    notifications_facade: NotificationsFacade,
) -> AsyncGenerator[FastAPI, None]:
    """Provide FastAPI app with dependency overrides bound to test session."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield async_session

    def override_get_notifications_facade() -> NotificationsFacade:
        return notifications_facade

    fastapi_app.dependency_overrides[get_db] = override_get_db
    fastapi_app.dependency_overrides[get_notifications_facade] = override_get_notifications_facade

    yield fastapi_app

    fastapi_app.dependency_overrides.pop(get_db, None)
    fastapi_app.dependency_overrides.pop(get_notifications_facade, None)


@pytest_asyncio.fixture
async def async_client(test_app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """HTTPX async client bound to the FastAPI app."""
    async with AsyncClient(transport=ASGITransport(app=test_app), base_url="http://testserver") as client:
        yield client
