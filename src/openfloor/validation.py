"""
Structural validation of decoded JSON against the Open Floor schemas.

:class:`SimpleValidator` understands a reduced JSON Schema vocabulary and has
no dependencies. :class:`JsonSchemaValidator` delegates to the ``jsonschema``
library for hosts that want the full vocabulary. Neither raises on bad data;
both report problems as ``<path>: <message>`` strings.
"""

import json
import logging
import math
import re
from collections.abc import Mapping
from typing import Any, Iterable, Optional, Protocol

from pydantic import BaseModel

from openfloor.config import load_schema
from openfloor.models.base import OpenFloorModel
from openfloor.models.envelope import Envelope

logger = logging.getLogger(__name__)


class ValidationResult(BaseModel):
    valid: bool
    errors: list[str] = []


class SchemaValidator(Protocol):
    def validate(self, data: Any, schema: Mapping[str, Any]) -> ValidationResult:
        ...


def _json_type(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (list, tuple)):
        return "array"
    if isinstance(value, Mapping):
        return "object"
    return type(value).__name__


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _matches_type(value: Any, expected: str) -> bool:
    if expected == "object":
        # Arrays pass an object check.
        return isinstance(value, (Mapping, list, tuple))
    if expected == "array":
        return isinstance(value, (list, tuple))
    if expected == "string":
        return isinstance(value, str)
    if expected == "number":
        return _is_number(value)
    if expected == "integer":
        return _is_number(value) and float(value).is_integer()
    if expected == "boolean":
        return isinstance(value, bool)
    if expected == "null":
        return value is None
    return False


def _same_json_value(a: Any, b: Any) -> bool:
    return _json_type(a) == _json_type(b) and a == b


def _render_option(value: Any) -> str:
    return value if isinstance(value, str) else json.dumps(value)


def _render_number(value: float) -> str:
    if isinstance(value, float) and math.isfinite(value) and value.is_integer():
        return str(int(value))
    return str(value)


def _render_path(parts: Iterable[Any]) -> str:
    path = ""
    for part in parts:
        if isinstance(part, int):
            path += f"[{part}]"
        else:
            path += f".{part}" if path else str(part)
    return path


class SimpleValidator:
    """Validates against ``type``, ``required``, ``properties``,
    ``patternProperties``, ``items``, ``enum``, ``minimum``, ``maximum``,
    ``pattern`` and ``anyOf``. Other keywords are ignored.
    """

    def validate(self, data: Any, schema: Mapping[str, Any]) -> ValidationResult:
        errors: list[str] = []
        try:
            self._validate(data, schema, "", errors)
        except Exception as exc:
            logger.debug("Schema validation aborted: %s", exc)
            errors.append(f"Validation error: {exc}")
        return ValidationResult(valid=not errors, errors=errors)

    def _validate(self, data: Any, schema: Mapping[str, Any], path: str, errors: list[str]) -> None:
        where = path or "root"

        expected = schema.get("type")
        if expected:
            allowed = [expected] if isinstance(expected, str) else list(expected)
            if not any(_matches_type(data, name) for name in allowed):
                errors.append(f"{where}: expected {' or '.join(allowed)}, got {_json_type(data)}")
                return

        if isinstance(data, Mapping):
            for name in schema.get("required") or ():
                if name not in data:
                    errors.append(f"{where}: missing required property '{name}'")

            for name, sub_schema in (schema.get("properties") or {}).items():
                if name in data:
                    self._validate(data[name], sub_schema, f"{path}.{name}" if path else name, errors)

            for pattern, sub_schema in (schema.get("patternProperties") or {}).items():
                regex = re.compile(pattern)
                for name, value in data.items():
                    if regex.search(name):
                        self._validate(value, sub_schema, f"{path}.{name}" if path else name, errors)

        items = schema.get("items")
        if isinstance(items, Mapping) and isinstance(data, (list, tuple)):
            for index, item in enumerate(data):
                self._validate(item, items, f"{path}[{index}]", errors)

        options = schema.get("enum")
        if isinstance(options, list) and not any(_same_json_value(data, option) for option in options):
            listed = ", ".join(_render_option(option) for option in options)
            errors.append(f"{where}: value must be one of [{listed}], got {json.dumps(data)}")

        if _is_number(data):
            minimum = schema.get("minimum")
            if _is_number(minimum) and data < minimum:
                errors.append(f"{where}: value {_render_number(data)} is below minimum {_render_number(minimum)}")
            maximum = schema.get("maximum")
            if _is_number(maximum) and data > maximum:
                errors.append(f"{where}: value {_render_number(data)} is above maximum {_render_number(maximum)}")

        pattern = schema.get("pattern")
        if isinstance(data, str) and pattern and not re.search(pattern, data):
            errors.append(f"{where}: string does not match pattern {pattern}")

        branches = schema.get("anyOf")
        if isinstance(branches, list):
            for branch in branches:
                branch_errors: list[str] = []
                self._validate(data, branch, path, branch_errors)
                if not branch_errors:
                    break
            else:
                errors.append(f"{where}: value does not match any of the allowed schemas")


class JsonSchemaValidator:
    """Full JSON Schema validation through the ``jsonschema`` package.

    Install with ``pip install openfloor[jsonschema]``.
    """

    def __init__(self) -> None:
        try:
            import jsonschema
        except ImportError as exc:
            raise ImportError(
                "JsonSchemaValidator requires the 'jsonschema' package: pip install openfloor[jsonschema]"
            ) from exc
        self._jsonschema = jsonschema

    def validate(self, data: Any, schema: Mapping[str, Any]) -> ValidationResult:
        try:
            validator_class = self._jsonschema.validators.validator_for(schema)
            validator = validator_class(schema)
            errors = [
                f"{_render_path(error.absolute_path) or 'root'}: {error.message}"
                for error in validator.iter_errors(data)
            ]
        except self._jsonschema.exceptions.SchemaError as exc:
            errors = [f"Validation error: {exc.message}"]
        return ValidationResult(valid=not errors, errors=errors)


def validate(data: Any, schema: Mapping[str, Any]) -> ValidationResult:
    return SimpleValidator().validate(data, schema)


def _as_wire(data: Any) -> Any:
    if isinstance(data, Envelope):
        return data.to_payload().to_object()
    if isinstance(data, OpenFloorModel):
        return data.to_object()
    return data


def validate_envelope(data: Any, validator: Optional[SchemaValidator] = None) -> ValidationResult:
    """Validate a ``{"openFloor": ...}`` payload (or an :class:`Envelope`)."""
    return (validator or SimpleValidator()).validate(_as_wire(data), load_schema("envelope"))


def validate_dialog_event(data: Any, validator: Optional[SchemaValidator] = None) -> ValidationResult:
    return (validator or SimpleValidator()).validate(_as_wire(data), load_schema("dialog_event"))


def validate_manifest(data: Any, validator: Optional[SchemaValidator] = None) -> ValidationResult:
    return (validator or SimpleValidator()).validate(_as_wire(data), load_schema("manifest"))
