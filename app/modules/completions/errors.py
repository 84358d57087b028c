"""Closed error taxonomy for structured completion calls."""

from __future__ import annotations

import enum
from typing import Any, Optional


class CompletionErrorCode(str, enum.Enum):
    INVALID_REQUEST = "INVALID_REQUEST"
    AUTHENTICATION_ERROR = "AUTHENTICATION_ERROR"
    RATE_LIMIT_ERROR = "RATE_LIMIT_ERROR"
    API_ERROR = "API_ERROR"
    NETWORK_ERROR = "NETWORK_ERROR"
    TIMEOUT_ERROR = "TIMEOUT_ERROR"
    INVALID_RESPONSE = "INVALID_RESPONSE"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


STATUS_CODE_MAP: dict[int, CompletionErrorCode] = {
    400: CompletionErrorCode.INVALID_REQUEST,
    401: CompletionErrorCode.AUTHENTICATION_ERROR,
    429: CompletionErrorCode.RATE_LIMIT_ERROR,
    500: CompletionErrorCode.API_ERROR,
    502: CompletionErrorCode.API_ERROR,
    503: CompletionErrorCode.API_ERROR,
    504: CompletionErrorCode.API_ERROR,
}


class CompletionError(Exception):
    """A classified failure of a completion call.

    Attributes are read-only once the error is constructed.
    """

    def __init__(
        self,
        code: CompletionErrorCode,
        message: str,
        model: str,
        status_code: Optional[int] = None,
        details: Any = None,
    ) -> None:
        super().__init__(message)
        self._code = CompletionErrorCode(code)
        self._message = message
        self._model = model
        self._status_code = status_code
        self._details = details

    @property
    def code(self) -> CompletionErrorCode:
        return self._code

    @property
    def message(self) -> str:
        return self._message

    @property
    def model(self) -> str:
        return self._model

    @property
    def status_code(self) -> Optional[int]:
        return self._status_code

    @property
    def details(self) -> Any:
        return self._details

    def __repr__(self) -> str:
        return (
            f"CompletionError(code={self._code.value!r}, message={self._message!r}, "
            f"model={self._model!r}, status_code={self._status_code!r})"
        )


def error_for_status(
    status_code: int, reason: str, model: str, details: Any = None
) -> CompletionError:
    """Map a non-success HTTP status onto the taxonomy."""
    code = STATUS_CODE_MAP.get(status_code, CompletionErrorCode.UNKNOWN_ERROR)
    if code is CompletionErrorCode.INVALID_REQUEST:
        message = f"Bad request: {reason}"
    elif code is CompletionErrorCode.AUTHENTICATION_ERROR:
        message = "Invalid or expired API key"
    elif code is CompletionErrorCode.RATE_LIMIT_ERROR:
        message = "Rate limit exceeded"
    elif code is CompletionErrorCode.API_ERROR:
        message = f"OpenRouter service error: {reason}"
    else:
        message = reason
    return CompletionError(code, message, model, status_code, details)
