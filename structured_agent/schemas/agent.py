"""Agent configuration and result schemas.

Defines the construction-time contract of StructuredAgent (generator and
reviewer specs, schemas, prompt, review budget) and the per-run artifacts
it produces (attempt records and the final result).
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from structured_agent.schemas.messages import GenerationConfig, ResponseMeta
from structured_agent.schemas.validation import ValidationOutcome

GENERATION_STEP = "generation"


def review_step(iteration: int) -> str:
    """Step label for the given 1-based review iteration."""
    return f"review-{iteration}"


class LLMSpec(BaseModel):
    """Which backend and model to use for one role (generator or reviewer).

    ``backend`` is anything the backend factory can resolve: an object with
    an async ``complete`` method, a BackendConfig, or a native provider client.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    backend: Any = Field(description="Backend capability or native provider client")
    model: str = Field(description="Model identifier passed to the backend")
    config: GenerationConfig | None = Field(
        default=None, description="Optional generation parameters"
    )


class AgentConfig(BaseModel):
    """Construction-time configuration for a StructuredAgent."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    generator: LLMSpec = Field(description="Backend producing the first candidate")
    reviewer: LLMSpec | None = Field(
        default=None, description="Backend repairing invalid candidates (default: generator)"
    )
    input_schema: Any = Field(description="JSON Schema dict or pydantic model for inputs")
    output_schema: Any = Field(description="JSON Schema dict or pydantic model for outputs")
    system_prompt: str = Field(description="Task instructions for the generator")
    max_iterations: int = Field(
        default=1, ge=0, description="Review attempts allowed after a failed generation"
    )


class AttemptRecord(BaseModel):
    """One generation or review round."""

    step: str = Field(description="'generation' or 'review-N'")
    result: Any = Field(description="Parsed payload, or the raw text if it did not parse")
    meta: ResponseMeta = Field(description="Provenance of the backend call")
    validation: ValidationOutcome = Field(description="Output-schema validation outcome")


class AgentResult(BaseModel):
    """A schema-valid output plus the attempts that led to it."""

    output: Any = Field(description="The validated payload")
    metadata: list[AttemptRecord] = Field(
        default_factory=list, description="Attempt records, in order"
    )
    ref: Any = Field(default=None, description="Caller-supplied correlation token, echoed")

    @property
    def attempts(self) -> int:
        return len(self.metadata)
