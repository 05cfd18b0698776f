"""Configuration schemas.

Defines the backend configuration used to build LiteLLM backends and the
agent file configuration loaded from TOML.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from structured_agent.schemas.messages import GenerationConfig


class BackendConfig(BaseModel):
    """Configuration for a LiteLLM-routed backend.

    Loaded from the ``[generator]`` / ``[reviewer]`` TOML sections. Provides
    the LiteLLM routing information, capability flag and call timeout.
    """

    model: str = Field(description="LiteLLM model identifier (e.g. 'gpt-4o-mini')")
    api_key_env: str = Field(
        default="", description="Environment variable holding the API key (empty = LiteLLM default)"
    )
    api_base: str = Field(default="", description="Custom API base URL (empty = provider default)")
    supports_structured: bool = Field(
        default=True, description="Whether the model accepts a JSON-schema response format"
    )
    timeout: int = Field(default=120, gt=0, description="Timeout in seconds per model call")
    generation: GenerationConfig = Field(
        default_factory=GenerationConfig, description="Default generation parameters"
    )


class AgentFileConfig(BaseModel):
    """Agent definition loaded from an agent TOML file."""

    system_prompt: str = Field(description="Task instructions for the generator")
    max_iterations: int = Field(default=1, ge=0, description="Review attempts allowed")
    input_schema: dict[str, Any] = Field(description="Input JSON Schema")
    output_schema: dict[str, Any] = Field(description="Output JSON Schema")
    generator: BackendConfig = Field(description="Generator backend")
    reviewer: BackendConfig | None = Field(default=None, description="Optional reviewer backend")
