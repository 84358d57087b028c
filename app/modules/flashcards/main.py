"""Flashcards service class composing admission control and generation.

``FlashcardsGenerator`` is built once at process start (see ``main.py``) and
shared by request handlers, background jobs and the CLI.
"""

from __future__ import annotations

import asyncio
from typing import Optional

from app.core.logging import get_logger
from app.core.rate_limit import RateLimiter
from app.core.task_queue import BackgroundQueue
from app.modules.completions import OpenRouterClient
from app.modules.flashcards.errors import GenerationError, InvalidSourceTextError
from app.modules.flashcards.generator import (
    MAX_SOURCE_TEXT_LENGTH,
    MIN_SOURCE_TEXT_LENGTH,
    calculate_source_text_hash,
    generate_flashcards,
    log_generation_error,
)
from app.modules.flashcards.models.flashcards import GenerationOutcome, GenerationResult
from app.modules.flashcards.ports import ErrorLogSink

logger = get_logger(__name__)


class FlashcardsGenerator:
    """Validates, admits, generates and reports failures for one source text."""

    def __init__(
        self,
        client: OpenRouterClient,
        rate_limiter: RateLimiter,
        *,
        queue: Optional[BackgroundQueue] = None,
    ) -> None:
        self.client = client
        self.rate_limiter = rate_limiter
        self.queue = queue

    @staticmethod
    def validate_source_text(source_text: str) -> None:
        length = len(source_text)
        if length < MIN_SOURCE_TEXT_LENGTH:
            raise InvalidSourceTextError(
                f"Source text must be at least {MIN_SOURCE_TEXT_LENGTH} characters"
            )
        if length > MAX_SOURCE_TEXT_LENGTH:
            raise InvalidSourceTextError(
                f"Source text must not exceed {MAX_SOURCE_TEXT_LENGTH} characters"
            )

    calculate_source_text_hash = staticmethod(calculate_source_text_hash)
    log_generation_error = staticmethod(log_generation_error)

    async def generate_flashcards(self, source_text: str) -> GenerationResult:
        return await generate_flashcards(self.client, source_text)

    async def generate(
        self,
        source_text: str,
        caller_id: str,
        *,
        error_sink: Optional[ErrorLogSink] = None,
    ) -> GenerationOutcome:
        """Run the full pipeline for one request.

        A quota rejection is returned as ``admitted=False``. Generation
        failures are logged through ``error_sink`` (best-effort) and raised.

        Raises:
            InvalidSourceTextError: length outside the accepted range.
            GenerationError: the completion call failed.
        """
        self.validate_source_text(source_text)

        source_text_hash = calculate_source_text_hash(source_text)
        source_text_length = len(source_text)

        if not self.rate_limiter.check_and_record(caller_id):
            logger.info("Generation rejected: quota exhausted", extra={"caller_id": caller_id})
            return GenerationOutcome(
                admitted=False,
                source_text_hash=source_text_hash,
                source_text_length=source_text_length,
            )

        try:
            result = await self.generate_flashcards(source_text)
        except GenerationError as e:
            logger.warning(
                "Generation failed with %s: %s",
                e.code.value,
                e.message,
                extra={"caller_id": caller_id, "model": e.model},
            )
            if error_sink is not None:
                await self._report_error(
                    error_sink, caller_id, e, source_text_hash, source_text_length
                )
            raise

        logger.info(
            "Generated %d proposals in %dms",
            len(result.proposals),
            result.duration_ms,
            extra={"caller_id": caller_id, "model": result.model},
        )
        return GenerationOutcome(
            admitted=True,
            source_text_hash=source_text_hash,
            source_text_length=source_text_length,
            result=result,
        )

    async def _report_error(
        self,
        sink: ErrorLogSink,
        caller_id: str,
        error: GenerationError,
        source_text_hash: str,
        source_text_length: int,
    ) -> None:
        async def _job() -> None:
            await log_generation_error(
                sink, caller_id, error, source_text_hash, source_text_length
            )

        if self.queue is not None and self.queue.started:
            self.queue.enqueue(_job, name="generation-error-log")
        else:
            await _job()

    def generate_sync(self, source_text: str, caller_id: str) -> GenerationOutcome:
        return asyncio.run(self.generate(source_text, caller_id))
