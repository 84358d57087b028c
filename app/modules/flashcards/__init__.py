"""Flashcards module exports."""

from .errors import GenerationError, GenerationErrorCode, InvalidSourceTextError
from .generator import (
    calculate_source_text_hash,
    generate_flashcards,
    log_generation_error,
)
from .main import FlashcardsGenerator
from .models.flashcards import FlashcardProposal, GenerationOutcome, GenerationResult

__all__ = [
    "FlashcardProposal",
    "FlashcardsGenerator",
    "GenerationError",
    "GenerationErrorCode",
    "GenerationOutcome",
    "GenerationResult",
    "InvalidSourceTextError",
    "calculate_source_text_hash",
    "generate_flashcards",
    "log_generation_error",
]
