"""Pytest configuration and fixtures."""

from __future__ import annotations

import json
from collections.abc import Callable
from typing import Any

import httpx
import pytest

from app.core.rate_limit import RateLimiter
from app.modules.completions import OpenRouterClient

PROVIDER_MODEL = "meta-llama/llama-3.3-70b-instruct"

_PARAGRAPH = (
    "Photosynthesis is the process by which green plants convert light energy "
    "into chemical energy. Chlorophyll in the chloroplasts absorbs mostly blue "
    "and red light. The light-dependent reactions split water and release oxygen, "
    "while the Calvin cycle fixes carbon dioxide into sugars. "
)


def make_source_text(length: int) -> str:
    """Build realistic source text of exactly ``length`` characters."""
    repeats = length // len(_PARAGRAPH) + 1
    return (_PARAGRAPH * repeats)[:length]


def proposals_content(count: int = 3) -> str:
    return json.dumps(
        {
            "proposals": [
                {"front": f"Question {i}?", "back": f"Answer {i}."}
                for i in range(1, count + 1)
            ]
        }
    )


def completion_response(
    content: Any,
    *,
    model: str = PROVIDER_MODEL,
    usage: dict[str, int] | None = None,
) -> httpx.Response:
    body: dict[str, Any] = {
        "id": "gen-123",
        "model": model,
        "choices": [
            {
                "message": {"role": "assistant", "content": content},
                "finish_reason": "stop",
            }
        ],
    }
    if usage is not None:
        body["usage"] = usage
    return httpx.Response(200, json=body)


class FakeClock:
    """Controllable millisecond clock for the rate limiter."""

    def __init__(self, now: float = 1_000_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


class RecordingTransport(httpx.MockTransport):
    """MockTransport that keeps every request it served."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self.requests: list[httpx.Request] = []

        def _record(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        super().__init__(_record)


@pytest.fixture
def source_text() -> str:
    return make_source_text(1000)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def rate_limiter(clock: FakeClock) -> RateLimiter:
    return RateLimiter(max_requests=10, window_ms=60 * 60 * 1000, clock=clock)


@pytest.fixture
def make_client() -> Callable[..., OpenRouterClient]:
    def _make(transport: httpx.AsyncBaseTransport, **kwargs: Any) -> OpenRouterClient:
        kwargs.setdefault("timeout_ms", 1_000)
        return OpenRouterClient("test-key", transport=transport, **kwargs)

    return _make
