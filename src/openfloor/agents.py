"""
Agents that consume one envelope and answer with another.

- OpenFloorAgent: base contract, builds the reply envelope around a hook
- BotAgent: a conversant that follows invitations and floor grants
- FloorManager: mediator that forwards events and hands out the floor
- ConvenerAgent: a bot that can also issue floor directives
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from typing import Any, Optional, Union

from typing_extensions import assert_never

from openfloor.errors import ConversationConflictError, ValidationError
from openfloor.models.envelope import Conversation, Envelope, Schema, Sender
from openfloor.models.events import (
    ByeEvent,
    ContextEvent,
    DeclineInviteEvent,
    Event,
    EventVariant,
    GetManifestsEvent,
    GrantFloorEvent,
    InviteEvent,
    PublishManifestsEvent,
    RequestFloorEvent,
    RevokeFloorEvent,
    To,
    UninviteEvent,
    UtteranceEvent,
    YieldFloorEvent,
    create_text_utterance,
)
from openfloor.models.manifest import Manifest

logger = logging.getLogger(__name__)

INVITE_GRANT_REASON = "Automatic floor grant as a result of invitation"
DEFAULT_REPLY = "Sorry! I'm a simple bot that has not been programmed to do anything yet."


class EventMetadata:
    __slots__ = ("addressed_to_me",)

    def __init__(self, addressed_to_me: bool):
        self.addressed_to_me = addressed_to_me

    def __repr__(self) -> str:
        return f"EventMetadata(addressed_to_me={self.addressed_to_me!r})"


class EnvelopeBuilder:
    """Collects outbound events; :meth:`build` freezes them into an Envelope."""

    def __init__(self, schema: Schema, conversation: Conversation, sender: Sender) -> None:
        self.schema = schema
        self.conversation = conversation
        self.sender = sender
        self._events: list[Event] = []

    def add_event(self, event: Event) -> None:
        self._events.append(event)

    def extend(self, events: Iterable[Event]) -> None:
        self._events.extend(events)

    @property
    def events(self) -> tuple[Event, ...]:
        return tuple(self._events)

    def build(self) -> Envelope:
        return Envelope(
            schema=self.schema,
            conversation=self.conversation,
            sender=self.sender,
            events=tuple(self._events),
        )


class OpenFloorAgent(ABC):
    def __init__(self, manifest: Union[Manifest, Mapping[str, Any]]):
        if isinstance(manifest, Manifest):
            self._manifest = manifest
        elif isinstance(manifest, Mapping):
            self._manifest = Manifest.from_object(manifest)
        else:
            raise ValidationError(f"{type(self).__name__}.manifest", manifest, "Manifest or manifest mapping")

    @property
    def manifest(self) -> Manifest:
        return self._manifest

    @property
    def speaker_uri(self) -> str:
        return self._manifest.identification.speaker_uri

    @property
    def service_url(self) -> str:
        return self._manifest.identification.service_url

    async def process_envelope(self, inbound: Envelope) -> Envelope:
        """Answer ``inbound`` with an envelope in the same conversation, sent by this agent."""
        outbound = EnvelopeBuilder(
            schema=inbound.schema_info,
            conversation=inbound.conversation,
            sender=Sender(speaker_uri=self.speaker_uri, service_url=self.service_url),
        )
        await self.on_envelope(inbound, outbound)
        return outbound.build()

    @abstractmethod
    async def on_envelope(self, inbound: Envelope, outbound: EnvelopeBuilder) -> None:
        ...

    def is_addressed_to_me(self, event: Event) -> bool:
        to = event.to
        if to is None:
            return True
        return to.speaker_uri == self.speaker_uri or to.service_url == self.service_url

    def add_metadata(self, events: Iterable[Event]) -> list[tuple[Event, EventMetadata]]:
        return [(event, EventMetadata(self.is_addressed_to_me(event))) for event in events]


class BotAgent(OpenFloorAgent):
    """A single conversant. Joins on invite, leaves on uninvite, and replies to
    utterances through :meth:`respond_to_utterance`.
    """

    def __init__(self, manifest: Union[Manifest, Mapping[str, Any]]):
        super().__init__(manifest)
        self._current_context: list[ContextEvent] = []
        self._active_conversation: Optional[Conversation] = None
        self._has_floor = False

    @property
    def active_conversation(self) -> Optional[Conversation]:
        return self._active_conversation

    @property
    def has_floor(self) -> bool:
        return self._has_floor

    @property
    def current_context(self) -> tuple[ContextEvent, ...]:
        return tuple(self._current_context)

    async def on_envelope(self, inbound: Envelope, outbound: EnvelopeBuilder) -> None:
        active = self._active_conversation
        if active is not None and active.id != inbound.conversation.id:
            raise ConversationConflictError(active.id, inbound.conversation.id)

        self._current_context = []
        for event, metadata in self.add_metadata(inbound.events):
            if metadata.addressed_to_me:
                self.handle_event(event, inbound, outbound)

    def handle_event(self, event: EventVariant, inbound: Envelope, outbound: EnvelopeBuilder) -> None:
        if isinstance(event, InviteEvent):
            self._active_conversation = Conversation(id=inbound.conversation.id)
            logger.info("%s joined conversation %s", self.speaker_uri, inbound.conversation.id)
            self.handle_event(GrantFloorEvent(reason=INVITE_GRANT_REASON), inbound, outbound)
        elif isinstance(event, GrantFloorEvent):
            self._has_floor = True
        elif isinstance(event, RevokeFloorEvent):
            self._has_floor = False
        elif isinstance(event, UninviteEvent):
            logger.info("%s left conversation %s", self.speaker_uri, inbound.conversation.id)
            self._active_conversation = None
            self._has_floor = False
        elif isinstance(event, ContextEvent):
            self._current_context.append(event)
        elif isinstance(event, UtteranceEvent):
            outbound.extend(self.respond_to_utterance(event, inbound))
        elif isinstance(event, GetManifestsEvent):
            outbound.add_event(PublishManifestsEvent(servicing_manifests=[self._manifest]))
        elif isinstance(
            event,
            (ByeEvent, DeclineInviteEvent, PublishManifestsEvent, RequestFloorEvent, YieldFloorEvent),
        ):
            logger.debug("Ignoring %s event", event.event_type)
        else:
            assert_never(event)

    def respond_to_utterance(self, event: UtteranceEvent, inbound: Envelope) -> list[Event]:
        """Reply events for one inbound utterance. Override to make the bot say something."""
        return [create_text_utterance(self.speaker_uri, DEFAULT_REPLY)]


class FloorManager(OpenFloorAgent):
    """Forwards every event and grants the floor to whoever asks for it."""

    def __init__(self, manifest: Union[Manifest, Mapping[str, Any]]):
        super().__init__(manifest)
        self._active_conversants: dict[str, Manifest] = {}
        self._current_speaker: Optional[str] = None

    @property
    def current_speaker(self) -> Optional[str]:
        return self._current_speaker

    @property
    def active_conversants(self) -> tuple[str, ...]:
        return tuple(self._active_conversants)

    async def on_envelope(self, inbound: Envelope, outbound: EnvelopeBuilder) -> None:
        sender_uri = inbound.sender.speaker_uri
        for event in inbound.events:
            if isinstance(event, ByeEvent):
                self.remove_conversant(sender_uri)
            elif isinstance(event, RequestFloorEvent):
                outbound.add_event(GrantFloorEvent(to=To(speaker_uri=sender_uri)))
                self._current_speaker = sender_uri
                logger.debug("Floor granted to %s", sender_uri)
            outbound.add_event(event)

    def add_conversant(self, manifest: Manifest) -> None:
        self._active_conversants[manifest.identification.speaker_uri] = manifest

    def remove_conversant(self, speaker_uri: str) -> None:
        self._active_conversants.pop(speaker_uri, None)
        if self._current_speaker == speaker_uri:
            self._current_speaker = None


class ConvenerAgent(BotAgent):
    """A bot that can also build floor directives for other conversants.

    The builders only construct events; nothing changes until the caller
    sends them.
    """

    def grant_floor(self, speaker_uri: str, reason: Optional[str] = None) -> GrantFloorEvent:
        return GrantFloorEvent(to=To(speaker_uri=speaker_uri), reason=reason)

    def revoke_floor(self, speaker_uri: str, reason: Optional[str] = None) -> RevokeFloorEvent:
        return RevokeFloorEvent(to=To(speaker_uri=speaker_uri), reason=reason)

    def uninvite_agent(self, speaker_uri: str, reason: Optional[str] = None) -> UninviteEvent:
        return UninviteEvent(to=To(speaker_uri=speaker_uri), reason=reason)

    def invite_agent(
        self, service_url: str, speaker_uri: Optional[str] = None, reason: Optional[str] = None
    ) -> InviteEvent:
        return InviteEvent(to=To(service_url=service_url, speaker_uri=speaker_uri), reason=reason)
