"""Tests for structured_agent.prompts: template loading and message building."""

import json
from datetime import datetime

import pytest
from pydantic import BaseModel

from structured_agent.prompts import (
    build_generation_messages,
    build_review_messages,
    dump_json,
    render_prompt,
    to_json_text,
)
from structured_agent.schemas.messages import Role

_SCHEMA_TEXT = json.dumps({"type": "object", "required": ["result"]}, indent=2)


class TestRenderPrompt:
    def test_renders_generation_template(self):
        result = render_prompt("generation", system_prompt="Summarize.", schema=_SCHEMA_TEXT)
        assert result.startswith("Summarize.")
        assert "strict JSON only" in result
        assert '"required": [' in result

    def test_reviewer_persona(self):
        result = render_prompt("reviewer_system")
        assert "strict JSON reviewer" in result
        assert "Output ONLY the corrected JSON" in result

    def test_missing_vars_render_empty(self):
        result = render_prompt("generation")
        assert "strict JSON only" in result

    def test_nonexistent_template_raises(self):
        with pytest.raises(FileNotFoundError, match="Prompt template not found"):
            render_prompt("nonexistent_role")


class TestBuildGenerationMessages:
    def test_system_then_user(self):
        messages = build_generation_messages("Summarize.", _SCHEMA_TEXT, {"input": "x"})
        assert [m.role for m in messages] == [Role.SYSTEM, Role.USER]
        assert "Summarize." in messages[0].content
        assert _SCHEMA_TEXT in messages[0].content
        assert json.loads(messages[1].content) == {"input": "x"}


class TestBuildReviewMessages:
    def test_contains_all_repair_context(self):
        messages = build_review_messages(
            {"result": 123},
            ["result: 123 is not of type 'string'"],
            {"input": "x"},
            _SCHEMA_TEXT,
        )
        assert [m.role for m in messages] == [Role.SYSTEM, Role.USER]
        assert "strict JSON reviewer" in messages[0].content

        user = messages[1].content
        assert 'Original Input Context: {"input": "x"}' in user
        assert '{"result": 123}' in user
        assert "- result: 123 is not of type 'string'" in user
        assert _SCHEMA_TEXT in user

    def test_raw_text_payload_included_verbatim(self):
        messages = build_review_messages(
            "{ result: ", ["'{ result: ' is not of type 'object'"], {"input": "x"}, _SCHEMA_TEXT
        )
        assert "INVALID based on the output schema:\n{ result: \n" in messages[1].content

    def test_multiple_errors_listed(self):
        messages = build_review_messages({}, ["a: bad", "b: bad"], {}, _SCHEMA_TEXT)
        assert "- a: bad\n- b: bad\n" in messages[1].content


class TestToJsonText:
    def test_string_passthrough(self):
        assert to_json_text("raw") == "raw"

    def test_json_serialized(self):
        assert to_json_text({"a": [1, 2]}) == '{"a": [1, 2]}'


class Stamp(BaseModel):
    label: str
    at: datetime


class TestDumpJson:
    def test_model_instance(self):
        assert json.loads(dump_json(Stamp(label="a", at=datetime(2024, 1, 1)))) == {
            "label": "a",
            "at": "2024-01-01T00:00:00",
        }

    def test_nested_datetime(self):
        text = dump_json({"when": datetime(2024, 1, 1, 9, 30)})
        assert text == '{"when": "2024-01-01T09:30:00"}'

    def test_string_input_is_quoted(self):
        assert dump_json("hello") == '"hello"'

    def test_non_ascii_kept(self):
        assert dump_json({"name": "Zoë"}) == '{"name": "Zoë"}'

    def test_generation_message_serializes_model_input(self):
        stamp = Stamp(label="a", at=datetime(2024, 1, 1))
        messages = build_generation_messages("Summarize.", _SCHEMA_TEXT, stamp)
        assert json.loads(messages[1].content)["at"] == "2024-01-01T00:00:00"

    def test_review_message_serializes_model_input(self):
        messages = build_review_messages(
            {}, ["bad"], Stamp(label="a", at=datetime(2024, 1, 1)), _SCHEMA_TEXT
        )
        assert "2024-01-01T00:00:00" in messages[1].content
