"""Tests for the schema validators and the bundled schema documents."""

import json
from datetime import datetime, timezone

import pytest

from openfloor import (
    DialogEvent,
    SimpleValidator,
    create_basic_manifest,
    validate_dialog_event,
    validate_envelope,
    validate_manifest,
)
from openfloor.config import load_schema, validator_from_name
from openfloor.transport.envelope import build_envelope
from openfloor.validation import JsonSchemaValidator, validate

USER = "tag:example.com,2025:user-1"
AGENT = "tag:example.com,2025:agent-1"


def valid_payload() -> dict:
    return {
        "openFloor": {
            "schema": {"version": "1.0.0"},
            "conversation": {"id": "conv-1"},
            "sender": {"speakerUri": USER},
            "events": [{"eventType": "getManifests", "to": {"speakerUri": AGENT}}],
        }
    }


class TestSimpleValidator:
    """Keyword-by-keyword behaviour and error format"""

    def test_type_mismatch(self):
        result = validate("x", {"type": "number"})
        assert not result.valid
        assert result.errors == ["root: expected number, got string"]

    def test_object_accepts_arrays(self):
        assert validate([], {"type": "object"}).valid

    def test_type_list(self):
        assert validate(None, {"type": ["string", "null"]}).valid
        assert validate(3, {"type": "integer"}).valid
        assert not validate(3.5, {"type": "integer"}).valid
        assert not validate(True, {"type": "number"}).valid

    def test_required(self):
        result = validate({"b": 1}, {"type": "object", "required": ["a", "b"]})
        assert result.errors == ["root: missing required property 'a'"]

    def test_nested_paths(self):
        schema = {"properties": {"a": {"properties": {"b": {"type": "array", "items": {"type": "number"}}}}}}
        result = validate({"a": {"b": [1, "x"]}}, schema)
        assert result.errors == ["a.b[1]: expected number, got string"]

    def test_pattern_properties(self):
        schema = {"patternProperties": {"^x-": {"type": "string"}}}
        result = validate({"x-one": "ok", "x-two": 2, "other": 3}, schema)
        assert result.errors == ["x-two: expected string, got number"]

    def test_enum(self):
        result = validate("x", {"enum": ["a", "b"]})
        assert result.errors == ['root: value must be one of [a, b], got "x"']
        assert not validate(True, {"enum": [1]}).valid
        assert validate(1, {"enum": [1]}).valid

    def test_enum_options_render_as_json(self):
        result = validate("x", {"enum": [True, None, 2.5, "a"]})
        assert result.errors == ['root: value must be one of [true, null, 2.5, a], got "x"']

    def test_minimum_and_maximum(self):
        assert validate(5, {"minimum": 10}).errors == ["root: value 5 is below minimum 10"]
        assert validate(1.5, {"maximum": 1}).errors == ["root: value 1.5 is above maximum 1"]
        assert validate(0, {"minimum": 0, "maximum": 1}).valid

    def test_pattern(self):
        result = validate("abc", {"pattern": "^\\d+$"})
        assert result.errors == ["root: string does not match pattern ^\\d+$"]

    def test_any_of_reports_one_error(self):
        schema = {"anyOf": [{"required": ["a"]}, {"required": ["b"]}]}
        assert validate({"b": 1}, schema).valid
        assert validate({}, schema).errors == ["root: value does not match any of the allowed schemas"]

    def test_never_raises(self):
        result = validate("x", {"pattern": "("})
        assert not result.valid
        assert result.errors[0].startswith("Validation error:")

    def test_unsupported_keywords_ignored(self):
        assert validate({"a": 1}, {"additionalProperties": False, "oneOf": [{"type": "string"}]}).valid


class TestEnvelopeSchema:
    def test_valid(self):
        result = validate_envelope(valid_payload())
        assert result.valid, result.errors

    def test_envelope_model_accepted(self):
        envelope = build_envelope(USER, events=[{"eventType": "bye"}])
        assert validate_envelope(envelope).valid

    def test_missing_required_fields(self):
        result = validate_envelope({"openFloor": {}})
        assert not result.valid
        assert "openFloor: missing required property 'events'" in result.errors

    def test_events_must_be_array(self):
        payload = valid_payload()
        payload["openFloor"]["events"] = "not-an-array"
        result = validate_envelope(payload)
        assert result.errors == ["openFloor.events: expected array, got string"]

    def test_unknown_event_tag(self):
        payload = valid_payload()
        payload["openFloor"]["events"] = [{"eventType": "publishManifest"}]
        result = validate_envelope(payload)
        assert not result.valid
        assert result.errors[0].startswith("openFloor.events[0].eventType: value must be one of")

    def test_addressee_needs_uri_or_url(self):
        payload = valid_payload()
        payload["openFloor"]["events"] = [{"eventType": "invite", "to": {"private": True}}]
        result = validate_envelope(payload)
        assert result.errors == ["openFloor.events[0].to: value does not match any of the allowed schemas"]


class TestDialogEventSchema:
    def test_model_output_is_valid(self):
        dialog_event = DialogEvent(
            id="de-1",
            speaker_uri=USER,
            span={"start_time": datetime(2025, 1, 1, tzinfo=timezone.utc)},
            features={
                "text": {"mime_type": "text/plain", "tokens": [{"value": "Hello world!"}]},
                "image": {"mime_type": "image/png", "tokens": [{"value_url": "https://example.com/image.png"}]},
            },
        )
        result = validate_dialog_event(dialog_event)
        assert result.valid, result.errors

    def test_text_feature_not_required(self):
        data = {
            "id": "de-3",
            "speakerUri": USER,
            "span": {"startTime": "2025-01-01T00:00:00Z"},
            "features": {"image": {"mimeType": "image/png", "tokens": [{"valueUrl": "https://example.com/a.png"}]}},
        }
        assert validate_dialog_event(data).valid

    def test_missing_speaker(self):
        data = {
            "id": "de-4",
            "span": {"startTime": "2025-01-01T00:00:00Z"},
            "features": {"text": {"mimeType": "text/plain", "tokens": [{"value": "Hello world!"}]}},
        }
        result = validate_dialog_event(data)
        assert result.errors == ["root: missing required property 'speakerUri'"]

    def test_confidence_bounds(self):
        data = {
            "id": "de-5",
            "speakerUri": USER,
            "span": {"startOffset": "PT0S"},
            "features": {"text": {"mimeType": "text/plain", "tokens": [{"value": "Hi", "confidence": 1.5}]}},
        }
        result = validate_dialog_event(data)
        assert result.errors == ["features.text.tokens[0].confidence: value 1.5 is above maximum 1"]


class TestManifestSchema:
    def test_model_output_is_valid(self):
        manifest = create_basic_manifest(
            AGENT, "https://agent1.example.com", "Agent1", "ExampleOrg", "A helpful agent.", capabilities=["help"]
        )
        assert validate_manifest(manifest.to_object()).valid

    def test_capability_missing_keyphrases_or_descriptions(self):
        data = {
            "identification": {
                "speakerUri": AGENT,
                "serviceUrl": "https://agent4.example.com",
                "organization": "ExampleOrg",
                "conversationalName": "Agent4",
                "synopsis": "Malformed capability.",
            },
            "capabilities": [{"descriptions": ["No keyphrases."]}, {"keyphrases": ["broken"]}],
        }
        result = validate_manifest(data)
        assert result.errors == [
            "capabilities[0]: missing required property 'keyphrases'",
            "capabilities[1]: missing required property 'descriptions'",
        ]


class TestJsonSchemaValidator:
    """Full engine behind the same contract"""

    @pytest.fixture(autouse=True)
    def _needs_jsonschema(self):
        pytest.importorskip("jsonschema")

    def test_valid(self):
        assert validate_envelope(valid_payload(), validator=JsonSchemaValidator()).valid

    def test_errors_use_path_format(self):
        result = validate_envelope({"openFloor": {}}, validator=JsonSchemaValidator())
        assert not result.valid
        assert "openFloor: 'schema' is a required property" in result.errors

    def test_by_name(self):
        assert isinstance(validator_from_name("jsonschema"), JsonSchemaValidator)


class TestSchemaConfig:
    def test_bundled_schemas(self):
        assert load_schema("envelope")["required"] == ["openFloor"]
        assert "features" in load_schema("dialog_event")["required"]
        assert "identification" in load_schema("manifest")["required"]

    def test_unknown_schema(self):
        with pytest.raises(ValueError):
            load_schema("nope")

    def test_schema_dir_override(self, tmp_path, monkeypatch):
        (tmp_path / "assistant-manifest.json").write_text(json.dumps({"required": ["owner"]}))
        monkeypatch.setenv("OPENFLOOR_SCHEMA_DIR", str(tmp_path))
        assert load_schema("manifest") == {"required": ["owner"]}
        assert validate_manifest({}).errors == ["root: missing required property 'owner'"]

    def test_validator_by_name(self):
        assert isinstance(validator_from_name("simple"), SimpleValidator)
        with pytest.raises(ValueError):
            validator_from_name("strict")
