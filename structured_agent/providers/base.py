"""Abstract base class for all model backends.

Defines the LLMBackend interface that every provider adapter must
implement. The agent interacts exclusively through this interface; it
never calls provider SDKs directly.
"""

from __future__ import annotations

import inspect
import json
from abc import ABC, abstractmethod
from typing import Any

from structured_agent.schemas.messages import (
    ChatMessage,
    ModelRequest,
    ModelResponse,
    Role,
)

SCHEMA_INSTRUCTION = "\n\nYou must output a valid JSON object matching this schema:\n{schema}"


class LLMBackend(ABC):
    """Uniform capability for anything that can complete a chat.

    Subclasses map a ModelRequest onto one external call and normalize the
    reply into a ModelResponse. They must request JSON output whenever the
    provider supports it, surface refusals and empty replies as
    LLMExecutionError, and report token usage only when the provider does.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Backend identifier recorded in response provenance."""

    @abstractmethod
    async def complete(self, request: ModelRequest) -> ModelResponse:
        """Send a completion request and return the raw reply with provenance.

        Args:
            request: Messages, model, optional generation parameters and an
                optional target JSON Schema.

        Returns:
            A ModelResponse with the reply text and call metadata.

        Raises:
            LLMExecutionError: On transport failure, refusal, or empty reply.
        """


def is_backend(instance: object) -> bool:
    """Whether ``instance`` already exposes a callable ``complete``."""
    return callable(getattr(instance, "complete", None))


async def maybe_await(result: Any) -> Any:
    """Await ``result`` if it is awaitable; sync SDK clients return values."""
    if inspect.isawaitable(result):
        return await result
    return result


def embed_schema_instruction(
    messages: list[ChatMessage], schema: dict[str, Any]
) -> list[ChatMessage]:
    """Embed a JSON Schema into the system message as text instructions.

    Appends to the first system message, or prepends a new one when the
    conversation has none. Used by providers without native structured
    output support.
    """
    instruction = SCHEMA_INSTRUCTION.format(schema=json.dumps(schema, indent=2))
    embedded = list(messages)
    for i, message in enumerate(embedded):
        if message.role == Role.SYSTEM:
            embedded[i] = ChatMessage(role=Role.SYSTEM, content=message.content + instruction)
            return embedded
    return [ChatMessage(role=Role.SYSTEM, content=instruction.lstrip()), *embedded]


def to_openai_messages(messages: list[ChatMessage]) -> list[dict[str, str]]:
    """Convert ChatMessages into OpenAI-format dicts."""
    return [{"role": m.role.value, "content": m.content} for m in messages]


def usage_count(usage: object, field: str) -> int | None:
    """Read a token count from a provider usage object, if present."""
    if usage is None:
        return None
    value = getattr(usage, field, None)
    return value if isinstance(value, int) else None
