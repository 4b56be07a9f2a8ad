"""
Conversation envelope and its ``{"openFloor": ...}`` payload wrapper.
"""

from typing import Any, ClassVar, Optional

from pydantic import Field, field_validator

from openfloor.config import PAYLOAD_KEY
from openfloor.models.base import FrozenDict, NonEmptyStr, OpenFloorModel
from openfloor.models.events import AnyEvent, Event, create_event
from openfloor.models.manifest import Identification
from openfloor.utils import is_valid_uri


class Schema(OpenFloorModel):
    version: NonEmptyStr
    url: Optional[str] = None


class Conversant(OpenFloorModel):
    omit_if_empty: ClassVar[tuple[str, ...]] = ("persistent_state",)

    identification: Identification
    persistent_state: FrozenDict[Any] = Field(default_factory=dict, validate_default=True)


class Conversation(OpenFloorModel):
    omit_if_empty: ClassVar[tuple[str, ...]] = ("conversants",)

    id: NonEmptyStr
    conversants: tuple[Conversant, ...] = ()


class Sender(OpenFloorModel):
    speaker_uri: str
    service_url: Optional[str] = None

    @field_validator("speaker_uri")
    @classmethod
    def _check_uri(cls, value: str) -> str:
        if not value:
            raise ValueError("non-empty string")
        if not is_valid_uri(value):
            raise ValueError("valid URI format")
        return value


class Envelope(OpenFloorModel):
    """One message between conversants: who sent it, in which conversation,
    and the events it carries in order.
    """

    schema_info: Schema = Field(alias="schema")
    conversation: Conversation
    sender: Sender
    events: tuple[AnyEvent, ...]

    @field_validator("events", mode="before")
    @classmethod
    def _resolve_generic_events(cls, value: Any) -> Any:
        if isinstance(value, (list, tuple)):
            return [create_event(item) if type(item) is Event else item for item in value]
        return value

    def to_payload(self) -> "Payload":
        return Payload(open_floor=self)


class Payload(OpenFloorModel):
    open_floor: Envelope = Field(alias=PAYLOAD_KEY)

    @property
    def envelope(self) -> Envelope:
        return self.open_floor
