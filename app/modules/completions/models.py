"""Request and result types for structured completion calls."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, Optional, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


@dataclass(frozen=True)
class OutputSchema:
    """JSON schema the provider must follow in strict mode.

    ``model`` is an optional pydantic model used to validate the returned JSON
    locally instead of trusting the provider's enforcement.
    """

    name: str
    schema: dict[str, Any]
    description: Optional[str] = None
    model: Optional[type[BaseModel]] = None


@dataclass(frozen=True)
class CompletionOptions:
    """Per-call overrides. ``None`` leaves the value to the provider."""

    model: Optional[str] = None
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    top_p: Optional[float] = None
    frequency_penalty: Optional[float] = None
    presence_penalty: Optional[float] = None


@dataclass(frozen=True)
class TokenUsage:
    prompt_tokens: int
    completion_tokens: int
    total_tokens: int


@dataclass(frozen=True)
class CompletionResult(Generic[T]):
    content: T
    model: str
    duration_ms: int
    usage: Optional[TokenUsage] = None
