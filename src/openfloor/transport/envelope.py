"""
Envelope construction and parsing for the ``{"openFloor": ...}`` wire payload.
"""

import json
from typing import Any, Iterable, Optional, Union

from pydantic import BaseModel

from openfloor.config import DEFAULT_SCHEMA_VERSION
from openfloor.errors import OpenFloorError
from openfloor.models.envelope import Conversation, Envelope, Payload, Schema, Sender
from openfloor.models.events import Event
from openfloor.utils import generate_uuid
from openfloor.validation import SchemaValidator, validate_envelope


class PayloadParseResult(BaseModel):
    valid: bool
    errors: list[str] = []
    payload: Optional[Payload] = None


def build_envelope(
    sender_uri: str,
    events: Iterable[Union[Event, dict[str, Any]]] = (),
    conversation_id: Optional[str] = None,
    sender_service_url: Optional[str] = None,
    schema_version: str = DEFAULT_SCHEMA_VERSION,
    schema_url: Optional[str] = None,
) -> Envelope:
    """Build an envelope from ``sender_uri``. A new conversation id is made when none is given."""
    return Envelope(
        schema=Schema(version=schema_version, url=schema_url),
        conversation=Conversation(id=conversation_id or generate_uuid()),
        sender=Sender(speaker_uri=sender_uri, service_url=sender_service_url),
        events=tuple(events),
    )


def build_payload(envelope: Envelope) -> Payload:
    return envelope.to_payload()


def parse_payload(text: str) -> Payload:
    """Parse payload JSON. Raises ParseError or ValidationError."""
    return Payload.from_json(text)


def validate_and_parse_payload(text: str, validator: Optional[SchemaValidator] = None) -> PayloadParseResult:
    """Check payload JSON against the envelope schema, then build it. Never raises."""
    try:
        decoded = json.loads(text)
    except (TypeError, ValueError) as exc:
        return PayloadParseResult(valid=False, errors=[f"Failed to parse JSON: {exc}"])

    result = validate_envelope(decoded, validator)
    if not result.valid:
        return PayloadParseResult(valid=False, errors=result.errors)
    try:
        payload = Payload.from_object(decoded)
    except OpenFloorError as exc:
        return PayloadParseResult(valid=False, errors=[str(exc)])
    return PayloadParseResult(valid=True, payload=payload)
