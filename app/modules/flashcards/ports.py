"""Collaborator interfaces the flashcards pipeline writes to."""

from __future__ import annotations

from typing import Any, Protocol

from app.modules.flashcards.errors import GenerationError


class ErrorLogSink(Protocol):
    """Persists classified generation failures.

    Implementations may be sync or async and may report a failure either by
    raising or by returning an error value; callers treat both as best-effort.
    """

    def persist_error_log(
        self,
        caller_id: str,
        error: GenerationError,
        source_text_hash: str,
        source_text_length: int,
    ) -> Any:
        """Store one error log entry."""


class MetadataSink(Protocol):
    """Persists metadata of a successful generation and returns the stored row."""

    async def persist_generation_record(
        self,
        *,
        caller_id: str,
        model: str,
        generated_count: int,
        source_text_hash: str,
        source_text_length: int,
        duration_ms: int,
    ) -> Any:
        """Store one generation record."""
