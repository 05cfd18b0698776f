"""Agent TOML configuration loader.

Loads an agent definition (system prompt, schemas, review budget, and the
generator/reviewer backends) from a TOML file and wires it into a
StructuredAgent backed by LiteLLM.
"""

from __future__ import annotations

import json
import tomllib
from pathlib import Path
from typing import Any

from structured_agent.agent import StructuredAgent
from structured_agent.providers.litellm_backend import LiteLLMBackend
from structured_agent.schemas.agent import AgentConfig, LLMSpec
from structured_agent.schemas.config import AgentFileConfig, BackendConfig


def _load_schema(value: Any, base_dir: Path, key: str) -> dict[str, Any]:
    """Resolve a schema entry: an inline table or a path to a JSON file."""
    if isinstance(value, dict):
        return value
    if not isinstance(value, str):
        raise ValueError(f"'{key}' must be a table or a path to a JSON Schema file")

    path = Path(value)
    if not path.is_absolute():
        path = base_dir / path
    if not path.exists():
        raise ValueError(f"Schema file for '{key}' not found: {path}")
    try:
        schema = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ValueError(f"Schema file for '{key}' is not valid JSON: {e}") from e
    if not isinstance(schema, dict):
        raise ValueError(f"Schema file for '{key}' must contain a JSON object")
    return schema


def load_agent_config(config_path: Path) -> AgentFileConfig:
    """Load an agent definition from a TOML file.

    Args:
        config_path: Path to the agent TOML file. Relative schema paths are
            resolved against the file's directory.

    Returns:
        AgentFileConfig with schemas loaded and backends parsed.

    Raises:
        FileNotFoundError: If the config file does not exist.
        ValueError: If a required section is missing or a schema cannot be read.
    """
    if not config_path.exists():
        raise FileNotFoundError(f"Agent config not found: {config_path}")

    with open(config_path, "rb") as f:
        raw = tomllib.load(f)

    agent_section = raw.get("agent")
    if not agent_section or not isinstance(agent_section, dict):
        raise ValueError(f"No [agent] section found in {config_path}")
    generator_section = raw.get("generator")
    if not generator_section or not isinstance(generator_section, dict):
        raise ValueError(f"No [generator] section found in {config_path}")

    base_dir = config_path.parent
    for key in ("input_schema", "output_schema"):
        if key not in agent_section:
            raise ValueError(f"[agent] section is missing '{key}' in {config_path}")

    reviewer_section = raw.get("reviewer")

    return AgentFileConfig(
        system_prompt=agent_section.get("system_prompt", ""),
        max_iterations=agent_section.get("max_iterations", 1),
        input_schema=_load_schema(agent_section["input_schema"], base_dir, "input_schema"),
        output_schema=_load_schema(agent_section["output_schema"], base_dir, "output_schema"),
        generator=BackendConfig(**generator_section),
        reviewer=BackendConfig(**reviewer_section) if reviewer_section else None,
    )


def _spec(backend_config: BackendConfig) -> LLMSpec:
    return LLMSpec(
        backend=LiteLLMBackend(backend_config),
        model=backend_config.model,
        config=backend_config.generation,
    )


def build_agent(
    file_config: AgentFileConfig, *, max_iterations: int | None = None
) -> StructuredAgent:
    """Build a LiteLLM-backed StructuredAgent from a loaded file config.

    Args:
        file_config: The loaded agent definition.
        max_iterations: Optional override of the configured review budget.
    """
    return StructuredAgent(
        AgentConfig(
            generator=_spec(file_config.generator),
            reviewer=_spec(file_config.reviewer) if file_config.reviewer else None,
            input_schema=file_config.input_schema,
            output_schema=file_config.output_schema,
            system_prompt=file_config.system_prompt,
            max_iterations=(
                file_config.max_iterations if max_iterations is None else max_iterations
            ),
        )
    )
