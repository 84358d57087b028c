"""Async SQLAlchemy engine and session plumbing for the generations store."""

from __future__ import annotations

import logging
from typing import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from app.core.config import settings

logger = logging.getLogger(__name__)

Base = declarative_base()


def build_engine(dsn: str | None = None) -> AsyncEngine:
    return create_async_engine(
        dsn or str(settings.postgres.connection_string),
        echo=settings.app.is_testing is True,
        pool_pre_ping=True,
    )


engine = build_engine()

# Services commit explicitly; rows stay readable after commit for the response
async_session_maker = async_sessionmaker(engine, expire_on_commit=False)


async def get_session() -> AsyncIterator[AsyncSession]:
    """Request-scoped session. Any error inside the request rolls back."""
    async with async_session_maker() as session:
        try:
            yield session
        except Exception as e:
            await session.rollback()
            logger.error("Generations session rolled back: %s", e)
            raise


async def dispose_engine() -> None:
    await engine.dispose()
