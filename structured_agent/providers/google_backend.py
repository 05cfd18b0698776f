"""Adapter for Google GenAI clients (``models.generate_content``)."""

from __future__ import annotations

import logging
from typing import Any

from structured_agent.errors import LLMExecutionError
from structured_agent.providers.base import LLMBackend, maybe_await, usage_count
from structured_agent.schemas.messages import ModelRequest, ModelResponse, ResponseMeta, Role

logger = logging.getLogger(__name__)

# GenerationConfig field -> google-genai config key
_CONFIG_KEYS = {
    "temperature": "temperature",
    "top_p": "top_p",
    "max_tokens": "max_output_tokens",
    "presence_penalty": "presence_penalty",
    "frequency_penalty": "frequency_penalty",
}


class GoogleGenAIBackend(LLMBackend):
    """Backend over a google-genai Client.

    Prefers the async ``client.aio.models`` surface when the client has one.
    Always requests ``application/json`` and passes the target schema
    natively.
    """

    def __init__(self, client: Any) -> None:
        self._client = client

    @property
    def name(self) -> str:
        return "google"

    @property
    def client(self) -> Any:
        return self._client

    def _models(self) -> Any:
        aio = getattr(self._client, "aio", None)
        models = getattr(aio, "models", None)
        if models is not None and callable(getattr(models, "generate_content", None)):
            return models
        return self._client.models

    async def complete(self, request: ModelRequest) -> ModelResponse:
        contents = [
            {
                "role": "model" if m.role == Role.ASSISTANT else "user",
                "parts": [{"text": m.content}],
            }
            for m in request.conversation
        ]
        logger.debug("google request to %s", request.model)
        try:
            result = await maybe_await(
                self._models().generate_content(
                    model=request.model,
                    contents=contents,
                    config=self._build_config(request),
                )
            )
        except Exception as e:
            raise LLMExecutionError(
                "Failed to execute Google GenAI request", e, backend=self.name
            ) from e

        text = getattr(result, "text", None) or self._first_candidate_text(result)
        if not text:
            raise LLMExecutionError("Received empty response from Google GenAI", backend=self.name)

        usage = getattr(result, "usage_metadata", None)
        return ModelResponse(
            text=text,
            meta=ResponseMeta(
                backend=self.name,
                model=request.model,
                input_tokens=usage_count(usage, "prompt_token_count"),
                output_tokens=usage_count(usage, "candidates_token_count"),
            ),
        )

    def _build_config(self, request: ModelRequest) -> dict[str, Any]:
        config: dict[str, Any] = {"response_mime_type": "application/json"}
        for key, value in request.generation_kwargs().items():
            config[_CONFIG_KEYS[key]] = value
        if request.target_schema is not None:
            config["response_json_schema"] = request.target_schema
        system = request.system_text
        if system:
            config["system_instruction"] = system
        return config

    @staticmethod
    def _first_candidate_text(result: Any) -> str:
        candidates = getattr(result, "candidates", None) or []
        if not candidates:
            return ""
        content = getattr(candidates[0], "content", None)
        parts = getattr(content, "parts", None) or []
        if not parts:
            return ""
        return getattr(parts[0], "text", None) or ""
