"""Universal LiteLLM adapter implementing the LLMBackend interface.

Routes completion requests to any LLM provider via LiteLLM's unified API.
Handles JSON/structured response formats, token tracking, timeouts, and
retry with exponential backoff.
"""

from __future__ import annotations

import asyncio
import logging
import os
from typing import Any

import litellm

# Suppress LiteLLM's "Give Feedback / Get Help" and "Provider List" banners
litellm.suppress_debug_info = True

from structured_agent.errors import LLMExecutionError
from structured_agent.providers.base import (
    LLMBackend,
    embed_schema_instruction,
    to_openai_messages,
    usage_count,
)
from structured_agent.schemas.config import BackendConfig
from structured_agent.schemas.messages import ModelRequest, ModelResponse, ResponseMeta

logger = logging.getLogger(__name__)

# Max retries for transient failures
_MAX_RETRIES = 3
_BASE_BACKOFF = 1.0  # seconds

_TRANSIENT_ERRORS = (
    litellm.RateLimitError,
    litellm.ServiceUnavailableError,
    litellm.InternalServerError,
    litellm.APIConnectionError,
    litellm.Timeout,
)


def _short_error_reason(error: Exception) -> str:
    """Extract a short, user-friendly reason from a LiteLLM error.

    Maps error types and status codes to concise descriptions instead
    of dumping full JSON error payloads.
    """
    error_str = str(error).lower()
    if "rate" in error_str or "429" in error_str:
        return "rate limit"
    if "overloaded" in error_str or "529" in error_str:
        return "overloaded"
    if "timeout" in error_str or isinstance(error, TimeoutError):
        return "timeout"
    if "503" in error_str or "unavailable" in error_str:
        return "service unavailable"
    if "500" in error_str or "internal" in error_str:
        return "server error"
    if "connection" in error_str:
        return "connection error"
    return str(error)[:80]


class LiteLLMBackend(LLMBackend):
    """Universal LLM adapter powered by LiteLLM.

    Routes calls to any provider (OpenAI, Anthropic, Google, DeepSeek, etc.)
    through litellm.acompletion(). The request's model identifier wins over
    the configured one, so one backend can serve several models.
    """

    def __init__(self, config: BackendConfig | None = None) -> None:
        self._config = config or BackendConfig(model="")
        # Resolve API key from environment
        self._api_key = (
            os.environ.get(self._config.api_key_env, "") if self._config.api_key_env else ""
        )

    @property
    def name(self) -> str:
        return "litellm"

    @property
    def config(self) -> BackendConfig:
        return self._config

    async def complete(self, request: ModelRequest) -> ModelResponse:
        """Send a completion request via LiteLLM.

        Raises:
            LLMExecutionError: On non-retryable errors, exhausted retries,
                refusals, or empty content.
        """
        kwargs = self._build_completion_kwargs(request)
        response = await self._call_with_retry(kwargs)

        message = response.choices[0].message if response.choices else None
        refusal = getattr(message, "refusal", None) if message else None
        if refusal:
            raise LLMExecutionError(
                f"Model refused to generate response: {refusal}", backend=self.name
            )
        content = (message.content or "") if message else ""
        if not content:
            raise LLMExecutionError("Received empty response from LLM", backend=self.name)

        usage = getattr(response, "usage", None)
        return ModelResponse(
            text=content,
            meta=ResponseMeta(
                backend=self.name,
                model=kwargs["model"],
                input_tokens=usage_count(usage, "prompt_tokens"),
                output_tokens=usage_count(usage, "completion_tokens"),
            ),
        )

    def _build_completion_kwargs(self, request: ModelRequest) -> dict[str, Any]:
        """Build the kwargs dict for litellm.acompletion."""
        messages = request.messages
        response_format: dict[str, Any] = {"type": "json_object"}

        # Request structured output when the model supports it, else embed
        # the schema as text and fall back to plain JSON mode
        if request.target_schema is not None:
            if self._config.supports_structured:
                response_format = {
                    "type": "json_schema",
                    "json_schema": {"name": "response", "schema": request.target_schema},
                }
            else:
                messages = embed_schema_instruction(messages, request.target_schema)

        kwargs: dict[str, Any] = {
            "model": request.model or self._config.model,
            "messages": to_openai_messages(messages),
            "timeout": float(self._config.timeout),
            "response_format": response_format,
            **self._config.generation.to_kwargs(),
            **request.generation_kwargs(),
        }

        if self._api_key:
            kwargs["api_key"] = self._api_key
        if self._config.api_base:
            kwargs["api_base"] = self._config.api_base

        return kwargs

    async def _call_with_retry(self, kwargs: dict[str, Any]) -> litellm.ModelResponse:
        """Call litellm.acompletion with exponential backoff retry.

        Retries on transient errors (rate limits, server errors, timeouts).
        Non-retryable errors (auth, invalid request) are raised immediately.
        """
        last_error: Exception | None = None
        model = kwargs["model"]

        for attempt in range(_MAX_RETRIES):
            try:
                return await litellm.acompletion(**kwargs)
            except litellm.AuthenticationError as e:
                hint = f" Check that {self._config.api_key_env} is set correctly." if (
                    self._config.api_key_env
                ) else ""
                raise LLMExecutionError(
                    f"Authentication failed for {model}.{hint}", e, backend=self.name
                ) from e
            except litellm.BadRequestError as e:
                raise LLMExecutionError(
                    f"Bad request to {model}", e, backend=self.name
                ) from e
            except (*_TRANSIENT_ERRORS, TimeoutError) as e:
                last_error = e

            if attempt < _MAX_RETRIES - 1:
                backoff = _BASE_BACKOFF * (2**attempt)
                logger.warning(
                    "Retry %d/%d for %s (%s, backoff: %.1fs)",
                    attempt + 1,
                    _MAX_RETRIES,
                    model,
                    _short_error_reason(last_error),
                    backoff,
                )
                await asyncio.sleep(backoff)

        raise LLMExecutionError(
            f"Model call to {model} failed after {_MAX_RETRIES} retries",
            last_error,
            backend=self.name,
        ) from last_error
