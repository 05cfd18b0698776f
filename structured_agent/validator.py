"""Schema compilation and validation.

Turns a schema description into a reusable CompiledValidator and checks
data against it, reporting every violation with its path. Two schema
dialects are accepted: JSON Schema documents (via the ``jsonschema``
library) and pydantic model classes.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from typing import Any

import jsonschema
from jsonschema import validators
from pydantic import BaseModel, PydanticUserError, ValidationError

from structured_agent.errors import InvalidSchemaError, SchemaValidationError
from structured_agent.schemas.validation import ValidationOutcome, Violation

logger = logging.getLogger(__name__)

# Separator used when joining formatted violations into one line
ERROR_SEPARATOR = "; "


class CompiledValidator(ABC):
    """A compiled schema: a reusable predicate plus structured error reporting.

    Stateless after construction, so one instance can be shared across
    concurrent agent runs.
    """

    def __init__(self, json_schema: dict[str, Any]) -> None:
        self._json_schema = json_schema

    @property
    def json_schema(self) -> dict[str, Any]:
        """Canonical JSON Schema form, used for prompts and provider requests."""
        return self._json_schema

    @abstractmethod
    def violations(self, data: Any) -> list[Violation]:
        """Return every violation of ``data`` (empty when valid)."""
        ...

    def is_valid(self, data: Any) -> bool:
        return not self.violations(data)


class JsonSchemaValidator(CompiledValidator):
    """CompiledValidator backed by a ``jsonschema`` validator class."""

    def __init__(self, schema: dict[str, Any]) -> None:
        super().__init__(schema)
        cls = validators.validator_for(schema)
        try:
            cls.check_schema(schema)
        except jsonschema.SchemaError as e:
            raise InvalidSchemaError(e.message) from e
        self._validator = cls(schema, format_checker=cls.FORMAT_CHECKER)

    def violations(self, data: Any) -> list[Violation]:
        errors = sorted(self._validator.iter_errors(data), key=lambda e: e.json_path)
        return [Violation(path=list(e.absolute_path), message=e.message) for e in errors]


class PydanticValidator(CompiledValidator):
    """CompiledValidator backed by a pydantic model class."""

    def __init__(self, model: type[BaseModel]) -> None:
        try:
            json_schema = model.model_json_schema()
        except PydanticUserError as e:
            raise InvalidSchemaError(str(e)) from e
        super().__init__(json_schema)
        self._model = model

    @property
    def model(self) -> type[BaseModel]:
        return self._model

    def violations(self, data: Any) -> list[Violation]:
        try:
            self._model.model_validate(data)
        except ValidationError as e:
            return [
                Violation(path=list(err["loc"]), message=err["msg"])
                for err in e.errors(include_url=False)
            ]
        return []


class SchemaValidator:
    """Compiles schemas and validates data against them."""

    def compile(self, schema: Any) -> CompiledValidator:
        """Compile a JSON Schema dict or a pydantic model class.

        Raises:
            InvalidSchemaError: If the description is not a valid schema.
        """
        if isinstance(schema, CompiledValidator):
            return schema
        if isinstance(schema, type) and issubclass(schema, BaseModel):
            return PydanticValidator(schema)
        if isinstance(schema, dict):
            return JsonSchemaValidator(schema)
        raise InvalidSchemaError(
            f"expected a JSON Schema object or pydantic model, got {type(schema).__name__}"
        )

    def validate(self, validator: CompiledValidator, data: Any) -> None:
        """Validate ``data``; return silently when valid.

        Raises:
            SchemaValidationError: Carrying every violation, in order.
        """
        found = validator.violations(data)
        if found:
            raise SchemaValidationError(found)

    def check(self, validator: CompiledValidator, data: Any) -> ValidationOutcome:
        """Validate ``data`` and return the outcome instead of raising."""
        try:
            self.validate(validator, data)
        except SchemaValidationError as e:
            logger.debug("Validation failed with %d violation(s)", len(e.violations))
            return ValidationOutcome(
                valid=False, errors=[v.render() for v in e.violations]
            )
        return ValidationOutcome(valid=True)

    @staticmethod
    def format_errors(violations: list[Violation]) -> str:
        """Join violations as ``path: message`` pairs for repair prompts."""
        return ERROR_SEPARATOR.join(v.render() for v in violations)


def render_schema(schema: CompiledValidator | dict[str, Any]) -> str:
    """Render a schema as JSON text for embedding into prompts."""
    if isinstance(schema, CompiledValidator):
        schema = schema.json_schema
    return json.dumps(schema, indent=2)
