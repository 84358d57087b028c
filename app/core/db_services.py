"""Database service classes for generation metadata and error logs."""

from __future__ import annotations

from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.db.base import async_session_maker
from app.core.db.schemas.generations import Generation, GenerationErrorLog
from app.modules.flashcards.errors import GenerationError


class GenerationRecordService:
    """Persists metadata of successful generations in the request session."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def persist_generation_record(
        self,
        *,
        caller_id: str,
        model: str,
        generated_count: int,
        source_text_hash: str,
        source_text_length: int,
        duration_ms: int,
    ) -> Generation:
        """Create a generations row; review counts start empty."""
        record = Generation(
            user_id=caller_id,
            model=model,
            generated_count=generated_count,
            source_text_hash=source_text_hash,
            source_text_length=source_text_length,
            generation_duration=duration_ms,
            accepted_unedited_count=None,
            accepted_edited_count=None,
        )

        self.session.add(record)
        await self.session.commit()
        await self.session.refresh(record)
        return record


class GenerationErrorLogService:
    """Writes generation error logs, each in its own short-lived session.

    Runs from background jobs after the request session has closed, so it owns
    its sessions instead of borrowing one.
    """

    def __init__(self, session_factory: Optional[async_sessionmaker[AsyncSession]] = None):
        self.session_factory = session_factory or async_session_maker

    async def persist_error_log(
        self,
        caller_id: str,
        error: GenerationError,
        source_text_hash: str,
        source_text_length: int,
    ) -> GenerationErrorLog:
        entry = GenerationErrorLog(
            user_id=caller_id,
            model=error.model,
            source_text_hash=source_text_hash,
            source_text_length=source_text_length,
            error_code=error.code.value,
            error_message=error.message,
        )
        async with self.session_factory() as session:
            session.add(entry)
            await session.commit()
        return entry
