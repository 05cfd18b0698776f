"""Adapter for Anthropic-SDK-shaped clients (``messages.create``)."""

from __future__ import annotations

import logging
from typing import Any

from structured_agent.errors import LLMExecutionError
from structured_agent.providers.base import LLMBackend, maybe_await, usage_count
from structured_agent.schemas.messages import ModelRequest, ModelResponse, ResponseMeta

logger = logging.getLogger(__name__)

# Anthropic requires max_tokens on every request
DEFAULT_MAX_TOKENS = 1024
STRUCTURED_OUTPUTS_BETA = "structured-outputs-2025-11-13"


class AnthropicClientBackend(LLMBackend):
    """Backend over an Anthropic client instance.

    System messages are lifted into the ``system`` parameter. A target
    schema is sent through the structured-outputs beta.
    """

    def __init__(self, client: Any) -> None:
        self._client = client

    @property
    def name(self) -> str:
        return "anthropic"

    @property
    def client(self) -> Any:
        return self._client

    async def complete(self, request: ModelRequest) -> ModelResponse:
        params = self._build_params(request)
        logger.debug("anthropic request to %s", request.model)
        try:
            response = await maybe_await(self._client.messages.create(**params))
        except Exception as e:
            raise LLMExecutionError(
                "Failed to execute Anthropic request", e, backend=self.name
            ) from e

        if getattr(response, "stop_reason", None) == "refusal":
            raise LLMExecutionError(
                "Model refused to generate response", backend=self.name
            )
        blocks = getattr(response, "content", None) or []
        if not blocks or getattr(blocks[0], "type", None) != "text":
            raise LLMExecutionError(
                "Received non-text response from Anthropic", backend=self.name
            )
        text = blocks[0].text
        if not text:
            raise LLMExecutionError("Received empty response from Anthropic", backend=self.name)

        usage = getattr(response, "usage", None)
        return ModelResponse(
            text=text,
            meta=ResponseMeta(
                backend=self.name,
                model=request.model,
                input_tokens=usage_count(usage, "input_tokens"),
                output_tokens=usage_count(usage, "output_tokens"),
            ),
        )

    def _build_params(self, request: ModelRequest) -> dict[str, Any]:
        generation = request.generation_kwargs()
        params: dict[str, Any] = {
            "model": request.model,
            "messages": [
                {"role": m.role.value, "content": m.content} for m in request.conversation
            ],
            "max_tokens": generation.get("max_tokens", DEFAULT_MAX_TOKENS),
        }
        for key in ("temperature", "top_p"):
            if key in generation:
                params[key] = generation[key]

        system = request.system_text
        if system:
            params["system"] = system

        if request.target_schema is not None:
            params["extra_body"] = {
                "output_format": {"type": "json_schema", "schema": request.target_schema}
            }
            params["extra_headers"] = {"anthropic-beta": STRUCTURED_OUTPUTS_BETA}

        return params
