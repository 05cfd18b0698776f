"""Tests for the structured-agent CLI via CliRunner."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import patch

from typer.testing import CliRunner

from structured_agent import __version__
from structured_agent.agent import StructuredAgent
from structured_agent.cli import app
from structured_agent.schemas.agent import AgentConfig, LLMSpec
from structured_agent.schemas.messages import ModelResponse, ResponseMeta

# NO_COLOR=1 keeps ANSI codes out of the output for substring matching.
# COLUMNS=200 prevents Rich from wrapping long lines.
runner = CliRunner(env={"NO_COLOR": "1", "COLUMNS": "200"})

_OUTPUT_SCHEMA = {
    "type": "object",
    "properties": {"result": {"type": "string"}},
    "required": ["result"],
}
_INPUT_SCHEMA = {"type": "object", "required": ["input"]}


class FakeBackend:
    name = "fake"

    def __init__(self, *replies):
        self._replies = list(replies)
        self.calls = 0

    async def complete(self, request):
        reply = self._replies[min(self.calls, len(self._replies) - 1)]
        self.calls += 1
        if isinstance(reply, Exception):
            raise reply
        return ModelResponse(
            text=reply,
            meta=ResponseMeta(backend=self.name, model=request.model, input_tokens=3, output_tokens=4),
        )


def _agent(backend, max_iterations=1) -> StructuredAgent:
    return StructuredAgent(
        AgentConfig(
            generator=LLMSpec(backend=backend, model="fake-model"),
            input_schema=_INPUT_SCHEMA,
            output_schema=_OUTPUT_SCHEMA,
            system_prompt="Summarize.",
            max_iterations=max_iterations,
        )
    )


def _write_json(tmp_path: Path, name: str, data) -> Path:
    path = tmp_path / name
    path.write_text(json.dumps(data))
    return path


def _invoke_run(tmp_path, agent, payload, *extra):
    input_path = _write_json(tmp_path, "input.json", payload)
    with (
        patch("structured_agent.cli.load_keys_env"),
        patch("structured_agent.cli.load_agent_config"),
        patch("structured_agent.cli.build_agent", return_value=agent),
    ):
        return runner.invoke(
            app, ["run", str(tmp_path / "agent.toml"), "--input", str(input_path), *extra]
        )


class TestVersion:
    def test_version_flag(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert f"structured-agent {__version__}" in result.output

    def test_no_args_shows_help(self):
        result = runner.invoke(app, [])
        assert "run" in result.output
        assert "check" in result.output


class TestCheckCommand:
    def test_schema_ok(self, tmp_path):
        schema = _write_json(tmp_path, "schema.json", _OUTPUT_SCHEMA)
        result = runner.invoke(app, ["check", str(schema)])
        assert result.exit_code == 0
        assert "Schema OK" in result.output

    def test_valid_data(self, tmp_path):
        schema = _write_json(tmp_path, "schema.json", _OUTPUT_SCHEMA)
        data = _write_json(tmp_path, "data.json", {"result": "x"})
        result = runner.invoke(app, ["check", str(schema), str(data)])
        assert result.exit_code == 0
        assert "Valid:" in result.output

    def test_invalid_data_lists_violations(self, tmp_path):
        schema = _write_json(tmp_path, "schema.json", _OUTPUT_SCHEMA)
        data = _write_json(tmp_path, "data.json", {"result": 123})
        result = runner.invoke(app, ["check", str(schema), str(data)])
        assert result.exit_code == 1
        assert "Invalid:" in result.output
        assert "- result: 123 is not of type 'string'" in result.output

    def test_invalid_schema(self, tmp_path):
        schema = _write_json(tmp_path, "schema.json", {"type": 12})
        result = runner.invoke(app, ["check", str(schema)])
        assert result.exit_code == 1
        assert "Invalid schema:" in result.output

    def test_unreadable_json(self, tmp_path):
        schema = tmp_path / "schema.json"
        schema.write_text("{nope")
        result = runner.invoke(app, ["check", str(schema)])
        assert result.exit_code == 1
        assert "Invalid JSON" in result.output


class TestRunCommand:
    def test_prints_validated_output(self, tmp_path):
        backend = FakeBackend('{"result": "ok"}')
        result = _invoke_run(tmp_path, _agent(backend), {"input": "x"})
        assert result.exit_code == 0
        assert '"result": "ok"' in result.output
        assert backend.calls == 1

    def test_ref_and_attempts_table(self, tmp_path):
        backend = FakeBackend('{"result": 1}', '{"result": "fixed"}')
        result = _invoke_run(
            tmp_path, _agent(backend), {"input": "x"}, "--ref", "job-7", "--show-attempts"
        )
        assert result.exit_code == 0
        assert "ref: job-7" in result.output
        assert "generation" in result.output
        assert "review-1" in result.output
        assert '"result": "fixed"' in result.output

    def test_exhausted_budget(self, tmp_path):
        backend = FakeBackend('{"result": 1}')
        result = _invoke_run(tmp_path, _agent(backend), {"input": "x"})
        assert result.exit_code == 1
        assert "after 1 review iterations" in result.output
        assert "review-1" in result.output
        assert backend.calls == 2

    def test_invalid_input(self, tmp_path):
        backend = FakeBackend('{"result": "ok"}')
        result = _invoke_run(tmp_path, _agent(backend), {"other": 1})
        assert result.exit_code == 1
        assert "Input does not match the input schema" in result.output
        assert backend.calls == 0

    def test_model_failure(self, tmp_path):
        backend = FakeBackend(RuntimeError("connection reset"))
        result = _invoke_run(tmp_path, _agent(backend), {"input": "x"})
        assert result.exit_code == 1
        assert "Model call failed" in result.output
        assert "connection reset" in result.output

    def test_missing_config(self, tmp_path):
        input_path = _write_json(tmp_path, "input.json", {"input": "x"})
        with patch("structured_agent.cli.load_keys_env"):
            result = runner.invoke(
                app, ["run", str(tmp_path / "missing.toml"), "--input", str(input_path)]
            )
        assert result.exit_code == 1
        assert "Error loading agent config" in result.output
