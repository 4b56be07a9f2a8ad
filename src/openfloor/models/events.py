"""
Envelope events — the twelve tagged variants and the factory that picks one.
"""

from collections.abc import Mapping
from enum import Enum
from typing import Annotated, Any, ClassVar, Literal, Optional, TypeVar, Union

from pydantic import ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from openfloor.errors import UnknownEventTypeError, ValidationError
from openfloor.models.base import FrozenDict, OpenFloorModel
from openfloor.models.dialog_event import DialogEvent, Span, TextFeature, Token
from openfloor.models.manifest import Manifest
from openfloor.utils import generate_uuid

E = TypeVar("E", bound="Event")


class EventType(str, Enum):
    UTTERANCE = "utterance"
    CONTEXT = "context"
    INVITE = "invite"
    UNINVITE = "uninvite"
    DECLINE_INVITE = "declineInvite"
    BYE = "bye"
    GET_MANIFESTS = "getManifests"
    PUBLISH_MANIFESTS = "publishManifests"
    REQUEST_FLOOR = "requestFloor"
    GRANT_FLOOR = "grantFloor"
    REVOKE_FLOOR = "revokeFloor"
    YIELD_FLOOR = "yieldFloor"


class RecommendScope(str, Enum):
    INTERNAL = "internal"
    EXTERNAL = "external"
    ALL = "all"


class FloorReason(str, Enum):
    """Reserved ``reason`` tokens; any other reason is free text."""
    TIMED_OUT = "@timedOut"
    BROKEN_POLICY = "@brokenPolicy"
    OVERRIDE = "@override"
    ERROR = "@error"
    OUT_OF_DOMAIN = "@outOfDomain"
    COMPLETE = "@complete"
    UNAVAILABLE = "@unavailable"
    REFUSED = "@refused"


class To(OpenFloorModel):
    """Addressee of an event. Private events are for the addressee only."""

    omit_if_empty: ClassVar[tuple[str, ...]] = ("private",)

    speaker_uri: Optional[str] = None
    service_url: Optional[str] = None
    private: bool = False

    @model_validator(mode="after")
    def _check_addressee(self) -> "To":
        if not self.speaker_uri and not self.service_url:
            raise ValueError("at least speakerUri or serviceUrl")
        return self


class Event(OpenFloorModel):
    """Fields shared by every event.

    Concrete events are the variant classes below; building ``Event`` itself
    gives a generic event carrying free-form parameters, and
    :meth:`Event.from_object` dispatches on ``eventType`` to the variant.
    """

    omit_if_empty: ClassVar[tuple[str, ...]] = ("parameters",)
    # Parameter names that may also be passed as top-level keywords.
    parameter_keys: ClassVar[tuple[str, ...]] = ()

    event_type: str
    to: Optional[To] = None
    reason: Optional[str] = None
    parameters: FrozenDict[Any] = Field(default_factory=dict, validate_default=True)

    @model_validator(mode="before")
    @classmethod
    def _lift_parameters(cls, data: Any) -> Any:
        if not isinstance(data, Mapping):
            return data
        lifted = {}
        for name in cls.parameter_keys:
            for key in (name, to_camel(name)):
                if key in data:
                    lifted[to_camel(name)] = data[key]
        if not lifted:
            return data
        data = {key: value for key, value in data.items() if key not in lifted and to_camel(key) not in lifted}
        parameters = data.get("parameters")
        if isinstance(parameters, OpenFloorModel):
            parameters = parameters.to_object()
        data["parameters"] = {**(parameters or {}), **lifted}
        return data

    @model_validator(mode="after")
    def _check_event_type(self) -> "Event":
        if self.event_type not in EVENT_CLASSES:
            raise ValueError(f"one of {', '.join(EVENT_CLASSES)}")
        return self

    @classmethod
    def from_object(cls: type[E], data: Mapping[str, Any]) -> E:
        if cls is Event:
            return create_event(data)
        return super().from_object(data)


class UtteranceParameters(OpenFloorModel):
    model_config = ConfigDict(extra="allow")

    dialog_event: DialogEvent


class ContextParameters(OpenFloorModel):
    model_config = ConfigDict(extra="allow")

    dialog_history: tuple[DialogEvent, ...] = ()


class GetManifestsParameters(OpenFloorModel):
    model_config = ConfigDict(extra="allow")

    recommend_scope: RecommendScope = RecommendScope.INTERNAL


class PublishManifestsParameters(OpenFloorModel):
    model_config = ConfigDict(extra="allow")

    servicing_manifests: tuple[Manifest, ...] = ()
    discovery_manifests: tuple[Manifest, ...] = ()


class UtteranceEvent(Event):
    parameter_keys: ClassVar[tuple[str, ...]] = ("dialog_event",)

    event_type: Literal["utterance"] = "utterance"
    parameters: UtteranceParameters

    @property
    def dialog_event(self) -> DialogEvent:
        return self.parameters.dialog_event


class ContextEvent(Event):
    parameter_keys: ClassVar[tuple[str, ...]] = ("dialog_history",)

    event_type: Literal["context"] = "context"
    parameters: ContextParameters = Field(default_factory=ContextParameters)

    @property
    def dialog_history(self) -> tuple[DialogEvent, ...]:
        return self.parameters.dialog_history


class InviteEvent(Event):
    event_type: Literal["invite"] = "invite"


class UninviteEvent(Event):
    event_type: Literal["uninvite"] = "uninvite"


class DeclineInviteEvent(Event):
    event_type: Literal["declineInvite"] = "declineInvite"


class ByeEvent(Event):
    event_type: Literal["bye"] = "bye"


class GetManifestsEvent(Event):
    parameter_keys: ClassVar[tuple[str, ...]] = ("recommend_scope",)

    event_type: Literal["getManifests"] = "getManifests"
    parameters: GetManifestsParameters = Field(default_factory=GetManifestsParameters)

    @property
    def recommend_scope(self) -> RecommendScope:
        return self.parameters.recommend_scope


class PublishManifestsEvent(Event):
    parameter_keys: ClassVar[tuple[str, ...]] = ("servicing_manifests", "discovery_manifests")

    event_type: Literal["publishManifests"] = "publishManifests"
    parameters: PublishManifestsParameters = Field(default_factory=PublishManifestsParameters)

    @property
    def servicing_manifests(self) -> tuple[Manifest, ...]:
        return self.parameters.servicing_manifests

    @property
    def discovery_manifests(self) -> tuple[Manifest, ...]:
        return self.parameters.discovery_manifests


class RequestFloorEvent(Event):
    event_type: Literal["requestFloor"] = "requestFloor"


class GrantFloorEvent(Event):
    event_type: Literal["grantFloor"] = "grantFloor"


class RevokeFloorEvent(Event):
    event_type: Literal["revokeFloor"] = "revokeFloor"


class YieldFloorEvent(Event):
    event_type: Literal["yieldFloor"] = "yieldFloor"


EVENT_CLASSES: dict[str, type[Event]] = {
    EventType.UTTERANCE.value: UtteranceEvent,
    EventType.CONTEXT.value: ContextEvent,
    EventType.INVITE.value: InviteEvent,
    EventType.UNINVITE.value: UninviteEvent,
    EventType.DECLINE_INVITE.value: DeclineInviteEvent,
    EventType.BYE.value: ByeEvent,
    EventType.GET_MANIFESTS.value: GetManifestsEvent,
    EventType.PUBLISH_MANIFESTS.value: PublishManifestsEvent,
    EventType.REQUEST_FLOOR.value: RequestFloorEvent,
    EventType.GRANT_FLOOR.value: GrantFloorEvent,
    EventType.REVOKE_FLOOR.value: RevokeFloorEvent,
    EventType.YIELD_FLOOR.value: YieldFloorEvent,
}

EventVariant = Union[
    UtteranceEvent,
    ContextEvent,
    InviteEvent,
    UninviteEvent,
    DeclineInviteEvent,
    ByeEvent,
    GetManifestsEvent,
    PublishManifestsEvent,
    RequestFloorEvent,
    GrantFloorEvent,
    RevokeFloorEvent,
    YieldFloorEvent,
]
AnyEvent = Annotated[EventVariant, Field(discriminator="event_type")]


def create_event(data: Union[Event, Mapping[str, Any]]) -> Event:
    """Build the event variant named by ``data["eventType"]``.

    A generic :class:`Event` instance is re-read as its variant.
    """
    if isinstance(data, Event):
        if type(data) is not Event:
            return data
        data = data.to_object()
    if not isinstance(data, Mapping):
        raise ValidationError("Event", data, "mapping")

    tag = data.get("eventType", data.get("event_type"))
    if tag is None:
        raise ValidationError("Event.eventType", None, "required field")
    event_class = EVENT_CLASSES.get(tag) if isinstance(tag, str) else None
    if event_class is None:
        raise UnknownEventTypeError(tag)
    return event_class.from_object(data)


def create_text_utterance(
    speaker_uri: str,
    text: str,
    to: Optional[Union[To, dict[str, Any]]] = None,
    confidence: Optional[float] = None,
    lang: Optional[str] = None,
) -> UtteranceEvent:
    """One-token ``text/plain`` utterance from ``speaker_uri``, spanning now."""
    token = Token(value=text, confidence=confidence)
    dialog_event = DialogEvent(
        id=generate_uuid(),
        speaker_uri=speaker_uri,
        span=Span(),
        features={"text": TextFeature(tokens=[token], lang=lang)},
    )
    return UtteranceEvent(dialog_event=dialog_event, to=to)
