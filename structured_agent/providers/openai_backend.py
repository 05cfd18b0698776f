"""Adapters for OpenAI-SDK-shaped clients.

Wraps any client exposing ``chat.completions.create`` (the OpenAI SDK and
OpenAI-compatible providers such as DeepSeek). The client is used through
its public surface only, so no SDK import is needed here.
"""

from __future__ import annotations

import logging
from typing import Any

from structured_agent.errors import LLMExecutionError
from structured_agent.providers.base import (
    LLMBackend,
    embed_schema_instruction,
    maybe_await,
    to_openai_messages,
    usage_count,
)
from structured_agent.schemas.messages import (
    ChatMessage,
    ModelRequest,
    ModelResponse,
    ResponseMeta,
)

logger = logging.getLogger(__name__)


class OpenAIClientBackend(LLMBackend):
    """Backend over an OpenAI (or compatible) client instance.

    Uses the native ``json_schema`` response format when a target schema is
    given, and JSON mode otherwise.
    """

    def __init__(self, client: Any) -> None:
        self._client = client

    @property
    def name(self) -> str:
        return "openai"

    @property
    def client(self) -> Any:
        return self._client

    async def complete(self, request: ModelRequest) -> ModelResponse:
        params = self._build_params(request)
        logger.debug(
            "%s request to %s (response_format=%s)",
            self.name, request.model, params["response_format"]["type"],
        )
        try:
            response = await maybe_await(self._client.chat.completions.create(**params))
        except Exception as e:
            raise LLMExecutionError(
                f"Failed to execute {self.name} request", e, backend=self.name
            ) from e

        message = response.choices[0].message if response.choices else None
        refusal = getattr(message, "refusal", None) if message else None
        if refusal:
            raise LLMExecutionError(
                f"Model refused to generate response: {refusal}", backend=self.name
            )
        content = getattr(message, "content", None) if message else None
        if not content:
            raise LLMExecutionError(
                f"Received empty response from {self.name}", backend=self.name
            )

        usage = getattr(response, "usage", None)
        return ModelResponse(
            text=content,
            meta=ResponseMeta(
                backend=self.name,
                model=request.model,
                input_tokens=usage_count(usage, "prompt_tokens"),
                output_tokens=usage_count(usage, "completion_tokens"),
            ),
        )

    def _prepare_messages(self, request: ModelRequest) -> list[ChatMessage]:
        return request.messages

    def _response_format(self, request: ModelRequest) -> dict[str, Any]:
        if request.target_schema is None:
            return {"type": "json_object"}
        return {
            "type": "json_schema",
            "json_schema": {"name": "response", "schema": request.target_schema},
        }

    def _build_params(self, request: ModelRequest) -> dict[str, Any]:
        return {
            "model": request.model,
            "messages": to_openai_messages(self._prepare_messages(request)),
            "response_format": self._response_format(request),
            **request.generation_kwargs(),
        }


class DeepSeekBackend(OpenAIClientBackend):
    """OpenAI-compatible DeepSeek client.

    DeepSeek has no native schema-constrained output, so the schema is
    embedded into the system message and plain JSON mode is requested.
    """

    @property
    def name(self) -> str:
        return "deepseek"

    def _prepare_messages(self, request: ModelRequest) -> list[ChatMessage]:
        if request.target_schema is None:
            return request.messages
        return embed_schema_instruction(request.messages, request.target_schema)

    def _response_format(self, request: ModelRequest) -> dict[str, Any]:
        return {"type": "json_object"}
