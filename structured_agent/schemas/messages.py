"""Request/response schemas for model backend calls.

Defines the chat message envelope, tunable generation parameters, and the
uniform request/response pair every backend adapter speaks.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field


class Role(StrEnum):
    """Chat message roles."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class ChatMessage(BaseModel):
    """A single role-tagged chat message."""

    role: Role = Field(description="Who authored the message")
    content: str = Field(description="Message text")


class GenerationConfig(BaseModel):
    """Optional sampling parameters forwarded to the provider.

    Unset fields are omitted from the provider request entirely.
    """

    temperature: float | None = Field(default=None, ge=0.0, le=2.0)
    top_p: float | None = Field(default=None, ge=0.0, le=1.0)
    max_tokens: int | None = Field(default=None, gt=0)
    presence_penalty: float | None = Field(default=None, ge=-2.0, le=2.0)
    frequency_penalty: float | None = Field(default=None, ge=-2.0, le=2.0)

    def to_kwargs(self) -> dict[str, Any]:
        """Return only the parameters that were explicitly set."""
        return self.model_dump(exclude_none=True)


class ModelRequest(BaseModel):
    """Uniform chat-completion request handed to a backend."""

    messages: list[ChatMessage] = Field(description="Ordered conversation messages")
    model: str = Field(description="Provider model identifier")
    config: GenerationConfig | None = Field(
        default=None, description="Optional generation parameters"
    )
    target_schema: dict[str, Any] | None = Field(
        default=None, description="JSON Schema the reply should conform to"
    )

    @property
    def system_text(self) -> str:
        """Concatenated content of all system messages."""
        return "\n\n".join(m.content for m in self.messages if m.role == Role.SYSTEM)

    @property
    def conversation(self) -> list[ChatMessage]:
        """Messages excluding system messages."""
        return [m for m in self.messages if m.role != Role.SYSTEM]

    def generation_kwargs(self) -> dict[str, Any]:
        return self.config.to_kwargs() if self.config else {}


class ResponseMeta(BaseModel):
    """Provenance for one backend call."""

    backend: str = Field(description="Backend name (e.g. 'openai', 'litellm')")
    model: str = Field(description="Model identifier that produced the reply")
    input_tokens: int | None = Field(default=None, ge=0, description="Prompt tokens, if reported")
    output_tokens: int | None = Field(
        default=None, ge=0, description="Completion tokens, if reported"
    )


class ModelResponse(BaseModel):
    """Raw text reply plus provenance. The text is untrusted."""

    text: str = Field(description="Raw string payload returned by the model")
    meta: ResponseMeta = Field(description="Backend, model and token usage")
