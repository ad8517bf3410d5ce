"""Pytest fixtures for unit and integration tests."""
import json
from datetime import datetime, timedelta
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.auth.token_auth import issue_access_token
from app.config import get_settings
from app.database import get_db, get_session_factory
from app.main import app
from app.models.base import Base, utcnow
from app.models.daily_task import LEVEL_CONFIG, DailyTask, TaskLevel
from app.models.user import User

TEST_AUTH_SECRET = "test-auth-secret"

GOOD_EVALUATION = json.dumps(
    {
        "overall": "Correct and readable solution.",
        "codeQuality": 80,
        "efficiency": 70,
        "readability": 90,
        "correctness": 60,
        "suggestions": ["Handle empty input"],
        "strengths": ["Clear naming"],
        "improvements": ["Add tests"],
        "overallScore": 76,
    }
)


@pytest.fixture(autouse=True)
def _test_settings(monkeypatch):
    """Known auth secret and no LLM key unless a test opts in."""
    settings = get_settings()
    monkeypatch.setattr(settings, "AUTH_SECRET", TEST_AUTH_SECRET)
    monkeypatch.setattr(settings, "LLM_API_KEY", "")
    yield
    # get_settings() is lru_cached so the monkeypatch on the instance suffices.


@pytest_asyncio.fixture
async def test_engine(tmp_path):
    # File-backed SQLite: background scoring opens its own connection and must
    # see rows committed by the request session.
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind=test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """HTTP test client; each request gets its own session like in production."""

    async def _get_test_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = _get_test_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def user(db) -> User:
    u = User(email="ada@example.com", display_name="Ada")
    db.add(u)
    await db.commit()
    return u


@pytest_asyncio.fixture
async def other_user(db) -> User:
    u = User(email="grace@example.com", display_name="Grace")
    db.add(u)
    await db.commit()
    return u


def auth_headers(user_id: int) -> dict[str, str]:
    token = issue_access_token(TEST_AUTH_SECRET, user_id, ttl_seconds=3600)
    return {"Authorization": f"Bearer {token}"}


async def make_task(
    db: AsyncSession,
    level: TaskLevel = TaskLevel.basic,
    created_at: datetime | None = None,
    ttl_hours: int = 24,
    title: str = "Array Sum Calculator",
) -> DailyTask:
    created_at = created_at or utcnow().replace(microsecond=0)
    task = DailyTask(
        level=level,
        title=title,
        description="Sum the numbers in an array.",
        time_limit_minutes=LEVEL_CONFIG[level].time_limit_minutes,
        created_at=created_at,
        updated_at=created_at,
        expires_at=created_at + timedelta(hours=ttl_hours),
    )
    db.add(task)
    await db.flush()
    return task
