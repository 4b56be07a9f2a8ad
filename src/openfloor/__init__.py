"""
openfloor — Open Floor protocol for Python.

Envelopes, events and manifests exchanged between conversational agents,
schema validation, and a minimal floor-managing agent toolkit.
"""

from openfloor.agents import BotAgent, ConvenerAgent, EnvelopeBuilder, EventMetadata, FloorManager, OpenFloorAgent
from openfloor.errors import (
    ConversationConflictError,
    OpenFloorError,
    ParseError,
    UnknownEventTypeError,
    ValidationError,
)
from openfloor.floor import FloorState
from openfloor.models.dialog_event import DialogEvent, Feature, Span, TextFeature, Token
from openfloor.models.envelope import Conversant, Conversation, Envelope, Payload, Schema, Sender
from openfloor.models.events import (
    ByeEvent,
    ContextEvent,
    DeclineInviteEvent,
    Event,
    EventType,
    FloorReason,
    GetManifestsEvent,
    GrantFloorEvent,
    InviteEvent,
    PublishManifestsEvent,
    RecommendScope,
    RequestFloorEvent,
    RevokeFloorEvent,
    To,
    UninviteEvent,
    UtteranceEvent,
    YieldFloorEvent,
    create_event,
    create_text_utterance,
)
from openfloor.models.manifest import Capability, Identification, Manifest, SupportedLayers, create_basic_manifest
from openfloor.transport.envelope import (
    PayloadParseResult,
    build_envelope,
    build_payload,
    parse_payload,
    validate_and_parse_payload,
)
from openfloor.validation import (
    JsonSchemaValidator,
    SchemaValidator,
    SimpleValidator,
    ValidationResult,
    validate_dialog_event,
    validate_envelope,
    validate_manifest,
)

__version__ = "0.1.0"
__all__ = [
    "OpenFloorAgent",
    "BotAgent",
    "FloorManager",
    "ConvenerAgent",
    "EnvelopeBuilder",
    "EventMetadata",
    "FloorState",
    "OpenFloorError",
    "ValidationError",
    "ParseError",
    "ConversationConflictError",
    "UnknownEventTypeError",
    "Span",
    "Token",
    "Feature",
    "TextFeature",
    "DialogEvent",
    "Schema",
    "Conversant",
    "Conversation",
    "Sender",
    "Envelope",
    "Payload",
    "Identification",
    "SupportedLayers",
    "Capability",
    "Manifest",
    "EventType",
    "RecommendScope",
    "FloorReason",
    "To",
    "Event",
    "UtteranceEvent",
    "ContextEvent",
    "InviteEvent",
    "UninviteEvent",
    "DeclineInviteEvent",
    "ByeEvent",
    "GetManifestsEvent",
    "PublishManifestsEvent",
    "RequestFloorEvent",
    "GrantFloorEvent",
    "RevokeFloorEvent",
    "YieldFloorEvent",
    "create_event",
    "create_text_utterance",
    "create_basic_manifest",
    "build_envelope",
    "build_payload",
    "parse_payload",
    "validate_and_parse_payload",
    "PayloadParseResult",
    "SchemaValidator",
    "SimpleValidator",
    "JsonSchemaValidator",
    "ValidationResult",
    "validate_envelope",
    "validate_dialog_event",
    "validate_manifest",
]
