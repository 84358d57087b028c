from __future__ import annotations

from pydantic import BaseModel, Field

from app.modules.flashcards.generator import (
    MAX_SOURCE_TEXT_LENGTH,
    MIN_SOURCE_TEXT_LENGTH,
)


class GenerationCreateRequest(BaseModel):
    source_text: str = Field(
        ...,
        min_length=MIN_SOURCE_TEXT_LENGTH,
        max_length=MAX_SOURCE_TEXT_LENGTH,
        description="Text to generate flashcards from",
    )


class GenerationMetadataRead(BaseModel):
    id: int
    model: str
    generated_count: int
    generation_duration: int


class FlashcardProposalRead(BaseModel):
    front: str
    back: str


class GenerationCreateResponse(BaseModel):
    generation: GenerationMetadataRead
    proposals: list[FlashcardProposalRead] = Field(default_factory=list)
