# workshop_app/db.py
from __future__ import annotations

from typing import AsyncGenerator
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from workshop_app.config import settings
from workshop_app.models import Base  # registers every model on Base.metadata


# === 1. Engine ===
# Example DSN: postgresql+asyncpg://app:app@db:5432/app
engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.SQL_ECHO,
    pool_pre_ping=True,
)


# === 2. Session ===
SessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


# === 3. Dependency for FastAPI and services ===
async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """SQLAlchemy async session."""
    async with SessionLocal() as session:
        yield session


async def init_db() -> None:
    """
    Dev-only schema bootstrap: create tables if missing.
    In production run `alembic upgrade head`.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
