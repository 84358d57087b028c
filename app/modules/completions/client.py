"""OpenRouter chat-completions client with strict structured output.

One call performs exactly one HTTP attempt. Every failure path ends in a
``CompletionError`` carrying a code from the closed taxonomy; retry policy
belongs to the caller.
"""

from __future__ import annotations

import asyncio
import json
import math
import time
from typing import Any, Optional

import httpx
from pydantic import ValidationError

from app.core.config import OpenRouterSettings
from app.core.logging import get_logger
from app.modules.completions.errors import (
    CompletionError,
    CompletionErrorCode,
    error_for_status,
)
from app.modules.completions.models import (
    CompletionOptions,
    CompletionResult,
    OutputSchema,
    TokenUsage,
)

DEFAULT_BASE_URL = "https://openrouter.ai/api/v1"
DEFAULT_MODEL = "meta-llama/llama-3.3-70b-instruct:free"
DEFAULT_TIMEOUT_MS = 60_000

logger = get_logger(__name__)

# CompletionOptions field -> wire parameter
_SAMPLING_PARAMS = (
    ("temperature", "temperature"),
    ("max_tokens", "max_tokens"),
    ("top_p", "top_p"),
    ("frequency_penalty", "frequency_penalty"),
    ("presence_penalty", "presence_penalty"),
)


class OpenRouterClient:
    """Issues structured-output chat completion requests to OpenRouter.

    A fresh ``httpx.AsyncClient`` is opened per call inside ``async with`` so
    the connection is released on success, on error and on timeout alike.
    ``transport`` lets tests swap the network for a stub.
    """

    def __init__(
        self,
        api_key: Optional[str],
        *,
        base_url: str = DEFAULT_BASE_URL,
        default_model: str = DEFAULT_MODEL,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        app_url: str = "https://10x-cards.app",
        app_title: str = "10x Cards",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        if not api_key:
            raise ValueError(
                "OpenRouter API key is required. Set OPENROUTER_API_KEY "
                "environment variable or pass api_key explicitly."
            )
        if timeout_ms <= 0:
            raise ValueError("timeout_ms must be positive")
        self._api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.default_model = default_model
        self.timeout_ms = timeout_ms
        self.app_url = app_url
        self.app_title = app_title
        self._transport = transport

    @classmethod
    def from_settings(
        cls,
        cfg: OpenRouterSettings,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "OpenRouterClient":
        return cls(
            cfg.api_key,
            base_url=cfg.base_url,
            default_model=cfg.model,
            timeout_ms=cfg.timeout_ms,
            app_url=cfg.app_url,
            app_title=cfg.app_title,
            transport=transport,
        )

    def build_headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
            "HTTP-Referer": self.app_url,
            "X-Title": self.app_title,
        }

    def build_request_body(
        self,
        system_instructions: str,
        user_content: str,
        output_schema: OutputSchema,
        model: str,
        options: CompletionOptions,
    ) -> dict[str, Any]:
        json_schema: dict[str, Any] = {"name": output_schema.name}
        if output_schema.description is not None:
            json_schema["description"] = output_schema.description
        json_schema["strict"] = True
        json_schema["schema"] = output_schema.schema

        body: dict[str, Any] = {
            "model": model,
            "messages": [
                {"role": "system", "content": system_instructions},
                {"role": "user", "content": user_content},
            ],
            "response_format": {"type": "json_schema", "json_schema": json_schema},
        }
        for attr, wire_name in _SAMPLING_PARAMS:
            value = getattr(options, attr)
            if value is not None:
                body[wire_name] = value
        return body

    async def generate(
        self,
        system_instructions: str,
        user_content: str,
        output_schema: OutputSchema,
        options: Optional[CompletionOptions] = None,
    ) -> CompletionResult[Any]:
        """Run one structured completion and return the validated content.

        Raises:
            CompletionError: on validation, transport, HTTP or parsing failure.
        """
        opts = options or CompletionOptions()
        model = opts.model or self.default_model

        self._validate_request(system_instructions, user_content, output_schema, model)

        body = self.build_request_body(
            system_instructions, user_content, output_schema, model, opts
        )
        started = time.perf_counter()
        response = await self._send(body, model)

        # 3xx is not followed, so anything outside 2xx is a failure
        if not response.is_success:
            raise self._error_from_response(response, model)

        try:
            data = response.json()
        except ValueError as e:
            raise CompletionError(
                CompletionErrorCode.INVALID_RESPONSE,
                f"Response body is not valid JSON: {e}",
                model,
                response.status_code,
            ) from e

        content = self._extract_content(data, model)
        parsed = self._parse_structured(content, output_schema, model)
        duration_ms = max(1, math.ceil((time.perf_counter() - started) * 1000))
        reported_model = data.get("model")
        if not isinstance(reported_model, str) or not reported_model:
            reported_model = model

        logger.info(
            "Completion succeeded in %dms",
            duration_ms,
            extra={"model": reported_model},
        )
        return CompletionResult(
            content=parsed,
            model=reported_model,
            duration_ms=duration_ms,
            usage=self._extract_usage(data),
        )

    def _validate_request(
        self,
        system_instructions: str,
        user_content: str,
        output_schema: OutputSchema,
        model: str,
    ) -> None:
        if not system_instructions or not system_instructions.strip():
            raise CompletionError(
                CompletionErrorCode.INVALID_REQUEST,
                "System message cannot be empty",
                model,
            )
        if not user_content or not user_content.strip():
            raise CompletionError(
                CompletionErrorCode.INVALID_REQUEST,
                "User message cannot be empty",
                model,
            )
        if output_schema is None or not output_schema.name or not output_schema.schema:
            raise CompletionError(
                CompletionErrorCode.INVALID_REQUEST,
                "Response schema must have name and schema fields",
                model,
            )

    async def _send(self, body: dict[str, Any], model: str) -> httpx.Response:
        timeout_s = self.timeout_ms / 1000
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                headers=self.build_headers(),
                timeout=timeout_s,
                transport=self._transport,
            ) as client:
                return await asyncio.wait_for(
                    client.post("/chat/completions", json=body),
                    timeout=timeout_s,
                )
        except (asyncio.TimeoutError, httpx.TimeoutException) as e:
            logger.warning(
                "Completion timed out after %dms", self.timeout_ms, extra={"model": model}
            )
            raise CompletionError(
                CompletionErrorCode.TIMEOUT_ERROR,
                f"Request timed out after {self.timeout_ms}ms",
                model,
            ) from e
        except httpx.TransportError as e:
            logger.warning("Completion transport failure: %s", e, extra={"model": model})
            raise CompletionError(
                CompletionErrorCode.NETWORK_ERROR,
                "Network error: Failed to connect to OpenRouter API",
                model,
                details=str(e),
            ) from e

    def _error_from_response(self, response: httpx.Response, model: str) -> CompletionError:
        details: Optional[dict[str, Any]] = None
        try:
            payload = response.json()
            if isinstance(payload, dict):
                details = payload
        except ValueError:
            # The status code alone still classifies the failure
            pass

        reason = f"HTTP {response.status_code}: {response.reason_phrase}"
        envelope = (details or {}).get("error")
        if isinstance(envelope, dict) and isinstance(envelope.get("message"), str):
            reason = envelope["message"]

        error = error_for_status(response.status_code, reason, model, details)
        logger.warning(
            "Completion failed with HTTP %d (%s)",
            response.status_code,
            error.code.value,
            extra={"model": model},
        )
        return error

    def _extract_content(self, data: Any, model: str) -> str:
        content = None
        if isinstance(data, dict):
            choices = data.get("choices")
            if isinstance(choices, list) and choices and isinstance(choices[0], dict):
                message = choices[0].get("message")
                if isinstance(message, dict):
                    content = message.get("content")
        if not isinstance(content, str) or not content:
            raise CompletionError(
                CompletionErrorCode.INVALID_RESPONSE,
                "Response missing content field",
                model,
            )
        return content

    def _parse_structured(
        self, content: str, output_schema: OutputSchema, model: str
    ) -> Any:
        if output_schema.model is not None:
            try:
                return output_schema.model.model_validate_json(content)
            except ValidationError as e:
                raise CompletionError(
                    CompletionErrorCode.INVALID_RESPONSE,
                    f"Response does not match schema '{output_schema.name}': "
                    f"{e.error_count()} validation error(s)",
                    model,
                    details=e.errors(include_url=False),
                ) from e
        try:
            return json.loads(content)
        except ValueError as e:
            raise CompletionError(
                CompletionErrorCode.INVALID_RESPONSE,
                f"Failed to parse JSON response: {e}",
                model,
            ) from e

    @staticmethod
    def _extract_usage(data: dict[str, Any]) -> Optional[TokenUsage]:
        usage = data.get("usage")
        if not isinstance(usage, dict):
            return None
        counts = {}
        for field in ("prompt_tokens", "completion_tokens", "total_tokens"):
            value = usage.get(field, 0)
            # Usage is informational; a malformed block is dropped, not fatal
            if value is None:
                value = 0
            if isinstance(value, bool) or not isinstance(value, int):
                return None
            counts[field] = value
        return TokenUsage(**counts)
