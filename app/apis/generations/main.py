from __future__ import annotations

import math
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.apis.deps import current_caller_id, get_generator
from app.core.config import settings
from app.core.db.base import get_session
from app.core.db_services import GenerationErrorLogService, GenerationRecordService
from app.core.logging import get_logger
from app.modules.flashcards.errors import GenerationError, InvalidSourceTextError
from app.modules.flashcards.main import FlashcardsGenerator
from app.modules.flashcards.ports import ErrorLogSink, MetadataSink
from .schemas import (
    FlashcardProposalRead,
    GenerationCreateRequest,
    GenerationCreateResponse,
    GenerationMetadataRead,
)


router = APIRouter()
logger = get_logger(__name__)

CallerId = Annotated[str, Depends(current_caller_id)]


def get_record_service(
    session: AsyncSession = Depends(get_session),
) -> MetadataSink:
    return GenerationRecordService(session)


def get_error_sink() -> ErrorLogSink:
    return GenerationErrorLogService()


@router.post(
    f"/{settings.app.version}/generations",
    response_model=GenerationCreateResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["generations"],
)
async def create_generation(
    req: GenerationCreateRequest,
    caller_id: CallerId,
    generator: FlashcardsGenerator = Depends(get_generator),
    records: MetadataSink = Depends(get_record_service),
    error_sink: ErrorLogSink = Depends(get_error_sink),
) -> GenerationCreateResponse:
    try:
        outcome = await generator.generate(
            req.source_text, caller_id, error_sink=error_sink
        )
    except InvalidSourceTextError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except GenerationError as e:
        if e.retryable:
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Failed to generate flashcards. Please try again.",
            )
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Failed to generate flashcards from this text.",
        )

    if not outcome.admitted:
        retry_after_s = math.ceil(generator.rate_limiter.retry_after_ms(caller_id) / 1000)
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Rate limit exceeded. Please try again later.",
            headers={"Retry-After": str(max(1, retry_after_s))},
        )

    result = outcome.result
    try:
        record = await records.persist_generation_record(
            caller_id=caller_id,
            model=result.model,
            generated_count=len(result.proposals),
            source_text_hash=outcome.source_text_hash,
            source_text_length=outcome.source_text_length,
            duration_ms=result.duration_ms,
        )
    except SQLAlchemyError as e:
        logger.error(
            "Failed to insert generation record: %s",
            e,
            extra={"caller_id": caller_id, "model": result.model},
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to save generation. Please try again.",
        )

    return GenerationCreateResponse(
        generation=GenerationMetadataRead(
            id=record.id,
            model=record.model,
            generated_count=record.generated_count,
            generation_duration=record.generation_duration,
        ),
        proposals=[
            FlashcardProposalRead(front=p.front, back=p.back) for p in result.proposals
        ],
    )
