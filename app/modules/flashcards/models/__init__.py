from .flashcards import (
    FlashcardProposal,
    FlashcardProposals,
    GenerationOutcome,
    GenerationResult,
)

__all__ = [
    "FlashcardProposal",
    "FlashcardProposals",
    "GenerationOutcome",
    "GenerationResult",
]
