from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from app.core.task_queue import BackgroundQueue
from app.modules.flashcards.errors import (
    GenerationError,
    GenerationErrorCode,
    InvalidSourceTextError,
)
from app.modules.flashcards.generator import calculate_source_text_hash
from app.modules.flashcards.main import FlashcardsGenerator
from tests.conftest import (
    PROVIDER_MODEL,
    RecordingTransport,
    completion_response,
    make_source_text,
    proposals_content,
)

HOUR_MS = 60 * 60 * 1000


def _generator(make_client, rate_limiter, handler, **kwargs):
    transport = RecordingTransport(handler)
    return FlashcardsGenerator(make_client(transport), rate_limiter, **kwargs), transport


@pytest.mark.asyncio
async def test_minimum_length_text_yields_proposals(make_client, rate_limiter, source_text):
    svc, _ = _generator(
        make_client, rate_limiter, lambda r: completion_response(proposals_content(5))
    )

    outcome = await svc.generate(source_text, "user-1")

    assert len(source_text) == 1000
    assert outcome.admitted is True
    assert outcome.source_text_length == 1000
    assert outcome.source_text_hash == calculate_source_text_hash(source_text)
    result = outcome.result
    assert 3 <= len(result.proposals) <= 10
    assert all(p.front and p.back for p in result.proposals)
    assert result.model == PROVIDER_MODEL
    assert result.duration_ms > 0


@pytest.mark.asyncio
async def test_eleventh_request_in_window_is_rejected(
    make_client, rate_limiter, clock, source_text
):
    svc, transport = _generator(
        make_client, rate_limiter, lambda r: completion_response(proposals_content(3))
    )

    for _ in range(10):
        outcome = await svc.generate(source_text, "user-2")
        assert outcome.admitted is True

    rejected = await svc.generate(source_text, "user-2")

    assert rejected.admitted is False
    assert rejected.result is None
    assert len(transport.requests) == 10

    clock.advance(HOUR_MS + 1)
    outcome = await svc.generate(source_text, "user-2")

    assert outcome.admitted is True
    assert len(transport.requests) == 11


@pytest.mark.asyncio
@pytest.mark.parametrize("length", [0, 999, 10001])
async def test_length_is_validated_before_admission(make_client, rate_limiter, length):
    svc, transport = _generator(
        make_client, rate_limiter, lambda r: completion_response(proposals_content())
    )

    with pytest.raises(InvalidSourceTextError):
        await svc.generate(make_source_text(length), "user-3")

    assert rate_limiter.remaining("user-3") == 10
    assert transport.requests == []


@pytest.mark.asyncio
async def test_maximum_length_text_is_accepted(make_client, rate_limiter):
    svc, _ = _generator(
        make_client, rate_limiter, lambda r: completion_response(proposals_content())
    )

    outcome = await svc.generate(make_source_text(10000), "user-4")

    assert outcome.admitted is True


@pytest.mark.asyncio
async def test_failure_is_logged_then_raised(make_client, rate_limiter, source_text):
    svc, _ = _generator(
        make_client,
        rate_limiter,
        lambda r: httpx.Response(500, json={"error": {"message": "upstream", "type": "x", "code": "500"}}),
    )
    sink = MagicMock()
    sink.persist_error_log = AsyncMock()

    with pytest.raises(GenerationError) as exc_info:
        await svc.generate(source_text, "user-5", error_sink=sink)

    error = exc_info.value
    assert error.code is GenerationErrorCode.API_ERROR
    sink.persist_error_log.assert_awaited_once_with(
        "user-5", error, calculate_source_text_hash(source_text), 1000
    )


@pytest.mark.asyncio
async def test_failing_sink_does_not_change_outcome(make_client, rate_limiter, source_text):
    svc, _ = _generator(
        make_client, rate_limiter, lambda r: completion_response("not json at all")
    )
    sink = MagicMock()
    sink.persist_error_log = AsyncMock(side_effect=RuntimeError("db down"))

    with pytest.raises(GenerationError) as exc_info:
        await svc.generate(source_text, "user-6", error_sink=sink)

    assert exc_info.value.code is GenerationErrorCode.INVALID_RESPONSE


@pytest.mark.asyncio
async def test_failed_attempt_still_counts_toward_quota(make_client, rate_limiter, source_text):
    svc, _ = _generator(make_client, rate_limiter, lambda r: httpx.Response(503))

    with pytest.raises(GenerationError):
        await svc.generate(source_text, "user-7")

    assert rate_limiter.remaining("user-7") == 9


@pytest.mark.asyncio
async def test_error_log_runs_on_background_queue(make_client, rate_limiter, source_text):
    queue = BackgroundQueue(concurrency=1)
    queue.start()
    svc, _ = _generator(
        make_client, rate_limiter, lambda r: httpx.Response(401), queue=queue
    )
    sink = MagicMock()
    sink.persist_error_log = AsyncMock()

    try:
        with pytest.raises(GenerationError) as exc_info:
            await svc.generate(source_text, "user-8", error_sink=sink)
        assert exc_info.value.code is GenerationErrorCode.AUTHENTICATION_ERROR

        await queue.join()
    finally:
        await queue.stop()

    sink.persist_error_log.assert_awaited_once()


@pytest.mark.asyncio
async def test_generate_flashcards_delegates_to_client(make_client, rate_limiter, source_text):
    svc, transport = _generator(
        make_client, rate_limiter, lambda r: completion_response(proposals_content(3))
    )

    result = await svc.generate_flashcards(source_text)

    assert len(result.proposals) == 3
    assert len(transport.requests) == 1
    # Bypasses admission control
    assert rate_limiter.remaining("anyone") == 10


@pytest.mark.asyncio
async def test_non_string_provider_model_still_succeeds(make_client, rate_limiter, source_text):
    svc, _ = _generator(
        make_client,
        rate_limiter,
        lambda r: completion_response(proposals_content(3), model=123),
    )
    sink = MagicMock()
    sink.persist_error_log = AsyncMock()

    outcome = await svc.generate(source_text, "user-9", error_sink=sink)

    assert outcome.admitted is True
    assert outcome.result.model == svc.client.default_model
    sink.persist_error_log.assert_not_awaited()
