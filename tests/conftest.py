"""
Shared pytest fixtures.

Storage runs on a throwaway SQLite file per test (aiosqlite), the email
transport is an AsyncMock.
"""

import os
from datetime import datetime, timezone
from typing import AsyncGenerator
from unittest.mock import AsyncMock, MagicMock

# must happen before workshop_app.config is imported anywhere
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ENABLE_SCHEDULER", "false")

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from workshop_app.models import Base, Registration, Setting, User, Workshop
from workshop_app.services.email_service import EmailService

T0 = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)


# ============================================================================
# DATABASE FIXTURES
# ============================================================================


@pytest_asyncio.fixture
async def async_engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'reminders.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(async_engine) -> async_sessionmaker:
    return async_sessionmaker(async_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


# ============================================================================
# DATA FACTORIES
# ============================================================================


class Seeder:
    def __init__(self, session: AsyncSession):
        self.s = session

    async def user(self, user_id: str, name: str = "Asha", email: str | None = None) -> User:
        u = User(id=user_id, name=name, email=email or f"{user_id}@example.com")
        self.s.add(u)
        await self.s.commit()
        return u

    async def workshop(
        self,
        workshop_id: str,
        start_at: datetime,
        reminder_settings: list | None = None,
        title: str = "Intro to Pottery",
        zoom_join_url: str | None = "https://zoom.example/j/1",
    ) -> Workshop:
        w = Workshop(
            id=workshop_id,
            title=title,
            description="",
            instructor_name="R. Menon",
            start_at=start_at,
            duration_minutes=90,
            zoom_join_url=zoom_join_url,
            reminder_settings=reminder_settings or [],
        )
        self.s.add(w)
        await self.s.commit()
        return w

    async def registration(self, workshop_id: str, user_id: str, status: str = "completed") -> Registration:
        r = Registration(
            id=f"reg-{workshop_id}-{user_id}",
            user_id=user_id,
            workshop_id=workshop_id,
            payment_status=status,
            amount=49900,
        )
        self.s.add(r)
        await self.s.commit()
        return r

    async def settings(self, **values) -> Setting:
        row = Setting(id="default", **values)
        self.s.add(row)
        await self.s.commit()
        return row


@pytest_asyncio.fixture
async def seed(db_session) -> Seeder:
    return Seeder(db_session)


# ============================================================================
# SERVICE MOCKS
# ============================================================================


@pytest.fixture
def mock_email() -> MagicMock:
    email = MagicMock(spec=EmailService)
    email.send_reminder_email = AsyncMock(return_value=True)
    email.send_test_email = AsyncMock(return_value=True)
    return email
