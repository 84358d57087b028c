"""Pydantic models for flashcard proposals and generation results.

The proposal models forbid extra keys so provider output that drifts from the
declared JSON schema is rejected rather than silently trimmed.
"""

from pydantic import BaseModel, ConfigDict, Field


class FlashcardProposal(BaseModel):
    """Question/answer pair proposed by the model; never persisted here."""

    model_config = ConfigDict(extra="forbid")

    front: str
    back: str


class FlashcardProposals(BaseModel):
    """Root object of the structured completion."""

    model_config = ConfigDict(extra="forbid")

    proposals: list[FlashcardProposal]


class GenerationResult(BaseModel):
    model: str
    proposals: list[FlashcardProposal] = Field(default_factory=list)
    duration_ms: int


class GenerationOutcome(BaseModel):
    """Result of the admission + generation pipeline.

    ``admitted`` is False when the caller's quota is exhausted; ``result`` is
    then None.
    """

    admitted: bool
    source_text_hash: str
    source_text_length: int
    result: GenerationResult | None = None
