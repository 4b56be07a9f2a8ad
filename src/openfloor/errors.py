"""
Open Floor error types.

Construction-time failures raise; schema validation never does (see
:mod:`openfloor.validation`).
"""

from typing import Any, Optional

from openfloor.utils import create_validation_error


class OpenFloorError(Exception):
    def __init__(self, code: str, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.code = code
        self.details = details


class ValidationError(OpenFloorError):
    """An entity could not be constructed from the values it was given."""

    def __init__(self, field: str, value: Any, expected: str):
        super().__init__(
            "validation_error",
            create_validation_error(field, value, expected),
            {"field": field, "value": value, "expected": expected},
        )
        self.field = field
        self.value = value
        self.expected = expected


class ParseError(OpenFloorError):
    def __init__(self, message: str):
        super().__init__("parse_error", message)


class ConversationConflictError(OpenFloorError):
    def __init__(self, active_id: str, inbound_id: str):
        super().__init__(
            "conversation_conflict",
            f"Agent is already in conversation {active_id!r}, got envelope for {inbound_id!r}",
            {"active": active_id, "inbound": inbound_id},
        )
        self.active_id = active_id
        self.inbound_id = inbound_id


class UnknownEventTypeError(OpenFloorError):
    def __init__(self, event_type: Any):
        super().__init__("unknown_event_type", f"Unknown event type: {event_type}", {"eventType": event_type})
        self.event_type = event_type

