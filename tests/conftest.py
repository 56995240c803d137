import os

# Settings are read at import time; these must be in place before plantcare is imported
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("NOTIFICATION_SCHEDULER_ENABLED", "false")

import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import plantcare.models  # noqa: F401  registers every table on Base.metadata
from plantcare.db.base import Base
from plantcare.db.session import get_db
from plantcare.main import app
from plantcare.services.notifications import NotificationDispatcher
from plantcare.tasks.notification_scheduler import NotificationScheduler
from tests.fakes import FakePushChannel

TEST_DATABASE_URL = "sqlite+aiosqlite://"


@pytest_asyncio.fixture
async def engine():
    # StaticPool keeps the single in-memory database alive for every session of the test
    engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def push_channel():
    return FakePushChannel()


@pytest_asyncio.fixture
async def dispatcher(push_channel):
    return NotificationDispatcher(push_channel, send_delay=0)


@pytest_asyncio.fixture
async def scheduler(session_factory, dispatcher):
    scheduler = NotificationScheduler(session_factory, dispatcher, interval_seconds=60)
    yield scheduler
    scheduler.stop()
    await scheduler.wait_for_cycles()


@pytest_asyncio.fixture
async def client(db: AsyncSession, scheduler: NotificationScheduler, dispatcher: NotificationDispatcher):
    async def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.state.notification_scheduler = scheduler
    app.state.notification_dispatcher = dispatcher

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c

    app.dependency_overrides.clear()
    app.state.notification_scheduler = None
    app.state.notification_dispatcher = None
