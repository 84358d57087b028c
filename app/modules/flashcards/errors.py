"""Generation-level errors surfaced to callers of the flashcards pipeline."""

from __future__ import annotations

import enum

from app.modules.completions.errors import CompletionError


class GenerationErrorCode(str, enum.Enum):
    INVALID_REQUEST = "INVALID_REQUEST"
    AUTHENTICATION_ERROR = "AUTHENTICATION_ERROR"
    RATE_LIMIT_ERROR = "RATE_LIMIT_ERROR"
    API_ERROR = "API_ERROR"
    NETWORK_ERROR = "NETWORK_ERROR"
    TIMEOUT_ERROR = "TIMEOUT_ERROR"
    INVALID_RESPONSE = "INVALID_RESPONSE"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"
    AI_GENERATION_FAILED = "AI_GENERATION_FAILED"


# Retrying unchanged input reproduces these
NON_RETRYABLE_CODES = frozenset(
    {
        GenerationErrorCode.INVALID_REQUEST,
        GenerationErrorCode.INVALID_RESPONSE,
        GenerationErrorCode.AUTHENTICATION_ERROR,
    }
)

UNKNOWN_MODEL = "unknown"


class GenerationError(Exception):
    """Classified failure of a flashcard generation attempt."""

    def __init__(self, code: GenerationErrorCode, message: str, model: str) -> None:
        super().__init__(message)
        self.code = GenerationErrorCode(code)
        self.message = message
        self.model = model

    @property
    def retryable(self) -> bool:
        return self.code not in NON_RETRYABLE_CODES

    @classmethod
    def from_exception(cls, error: BaseException | object) -> "GenerationError":
        """Re-wrap a completion failure; anything unrecognized becomes AI_GENERATION_FAILED."""
        if isinstance(error, GenerationError):
            return error
        if isinstance(error, CompletionError):
            return cls(GenerationErrorCode(error.code.value), error.message, error.model)
        if isinstance(error, BaseException):
            message = str(error) or type(error).__name__
        else:
            message = "Unknown error occurred"
        return cls(GenerationErrorCode.AI_GENERATION_FAILED, message, UNKNOWN_MODEL)

    def __repr__(self) -> str:
        return (
            f"GenerationError(code={self.code.value!r}, message={self.message!r}, "
            f"model={self.model!r})"
        )


class InvalidSourceTextError(ValueError):
    """Source text length is outside the accepted range."""
