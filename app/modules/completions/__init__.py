"""Structured completion client exports."""

from .client import OpenRouterClient
from .errors import CompletionError, CompletionErrorCode
from .models import CompletionOptions, CompletionResult, OutputSchema, TokenUsage

__all__ = [
    "OpenRouterClient",
    "CompletionError",
    "CompletionErrorCode",
    "CompletionOptions",
    "CompletionResult",
    "OutputSchema",
    "TokenUsage",
]
