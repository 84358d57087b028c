"""Flashcard proposal generation on top of the OpenRouter client.

This module holds the fixed prompts, the strict output schema and the three
building blocks of the pipeline: the completion call, the source-text
fingerprint and best-effort error logging.
"""

from __future__ import annotations

import asyncio
import hashlib
import inspect
from typing import Any

from app.core.logging import get_logger
from app.modules.completions import CompletionOptions, OpenRouterClient, OutputSchema
from app.modules.flashcards.errors import GenerationError
from app.modules.flashcards.models.flashcards import FlashcardProposals, GenerationResult
from app.modules.flashcards.ports import ErrorLogSink

MIN_SOURCE_TEXT_LENGTH = 1000
MAX_SOURCE_TEXT_LENGTH = 10000

# Upper bound for a single error-log write
ERROR_LOG_TIMEOUT_SECONDS = 5.0

logger = get_logger(__name__)


SYSTEM_PROMPT = """You are an expert educational content creator specializing in flashcard generation.

Your task is to generate high-quality, focused flashcards from the provided text.

Guidelines:
- Each flashcard should test a single concept clearly and concisely
- Questions should be specific and unambiguous
- Answers should be accurate and complete
- Use simple, direct language
- Generate between 3-10 flashcards depending on content richness
- Focus on the most important concepts and facts
- Avoid overly complex or trick questions
- Ensure questions can be answered based solely on the provided text"""


PROPOSALS_SCHEMA = OutputSchema(
    name="flashcard_proposals",
    description="List of flashcard question-answer pairs generated from source text",
    schema={
        "type": "object",
        "properties": {
            "proposals": {
                "type": "array",
                "items": {
                    "type": "object",
                    "properties": {
                        "front": {
                            "type": "string",
                            "description": "Question or prompt for the flashcard",
                        },
                        "back": {
                            "type": "string",
                            "description": "Answer or explanation for the flashcard",
                        },
                    },
                    "required": ["front", "back"],
                    "additionalProperties": False,
                },
            },
        },
        "required": ["proposals"],
        "additionalProperties": False,
    },
    model=FlashcardProposals,
)

GENERATION_OPTIONS = CompletionOptions(temperature=0.7, max_tokens=2000)


def _build_instruction(source_text: str) -> str:
    return f"Generate flashcards from the following text:\n\n{source_text}"


async def generate_flashcards(client: OpenRouterClient, source_text: str) -> GenerationResult:
    """Ask the model for flashcard proposals covering ``source_text``.

    Raises:
        GenerationError: carrying the completion error's code, message and
            model, or ``AI_GENERATION_FAILED`` for anything unrecognized.
    """
    try:
        res = await client.generate(
            SYSTEM_PROMPT,
            _build_instruction(source_text),
            PROPOSALS_SCHEMA,
            GENERATION_OPTIONS,
        )
        return GenerationResult(
            model=res.model,
            proposals=list(res.content.proposals),
            duration_ms=res.duration_ms,
        )
    except Exception as e:  # noqa: BLE001
        raise GenerationError.from_exception(e) from e


def calculate_source_text_hash(source_text: str) -> str:
    """SHA-256 of the UTF-8 bytes as 64 lowercase hex chars.

    Used to correlate generations and error logs; never used as a lookup key.
    """
    return hashlib.sha256(source_text.encode("utf-8")).hexdigest()


def _reported_error(result: Any) -> Any:
    if isinstance(result, BaseException):
        return result
    return getattr(result, "error", None)


async def log_generation_error(
    sink: ErrorLogSink,
    caller_id: str,
    error: GenerationError,
    source_text_hash: str,
    source_text_length: int,
) -> None:
    """Persist ``error`` through ``sink`` without ever raising."""
    try:
        result = sink.persist_error_log(
            caller_id, error, source_text_hash, source_text_length
        )
        if inspect.isawaitable(result):
            result = await asyncio.wait_for(result, timeout=ERROR_LOG_TIMEOUT_SECONDS)
        reported = _reported_error(result)
        if reported:
            logger.error(
                "Failed to log generation error to database: %s",
                reported,
                extra={"caller_id": caller_id, "model": error.model},
            )
    except Exception as e:  # noqa: BLE001
        logger.error(
            "Exception while logging generation error: %s",
            e,
            extra={"caller_id": caller_id, "model": error.model},
        )
