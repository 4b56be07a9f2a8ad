"""
Floor ledger: who holds the floor and who is in the conversation, as a pure
function of the floor and roster events seen so far.
"""

import logging
from collections.abc import Iterable
from typing import Optional

from openfloor.models.base import OpenFloorModel
from openfloor.models.events import (
    ByeEvent,
    Event,
    GrantFloorEvent,
    InviteEvent,
    RevokeFloorEvent,
    UninviteEvent,
    YieldFloorEvent,
    create_event,
)

logger = logging.getLogger(__name__)


def _target(event: Event) -> Optional[str]:
    if event.to is None:
        return None
    return event.to.speaker_uri or event.to.service_url


class FloorState(OpenFloorModel):
    holder: Optional[str] = None
    participants: tuple[str, ...] = ()

    def apply(self, event: Event, sender_uri: Optional[str] = None) -> "FloorState":
        """Return the state after ``event``; ``sender_uri`` is the envelope sender."""
        if type(event) is Event:
            event = create_event(event)
        target = _target(event)

        if isinstance(event, GrantFloorEvent):
            if target:
                return self._with(holder=target)
        elif isinstance(event, RevokeFloorEvent):
            if target and target == self.holder:
                return self._with(holder=None)
        elif isinstance(event, YieldFloorEvent):
            if sender_uri and sender_uri == self.holder:
                return self._with(holder=None)
        elif isinstance(event, InviteEvent):
            if target and target not in self.participants:
                return self._with(participants=(*self.participants, target))
        elif isinstance(event, UninviteEvent):
            if target:
                return self._without(target)
        elif isinstance(event, ByeEvent):
            if sender_uri:
                return self._without(sender_uri)
        return self

    def apply_all(self, events: Iterable[Event], sender_uri: Optional[str] = None) -> "FloorState":
        state = self
        for event in events:
            state = state.apply(event, sender_uri)
        return state

    def _without(self, uri: str) -> "FloorState":
        holder = None if self.holder == uri else self.holder
        participants = tuple(p for p in self.participants if p != uri)
        return self._with(holder=holder, participants=participants)

    def _with(self, **changes) -> "FloorState":
        state = self.model_copy(update=changes)
        logger.debug("Floor state %s -> %s", self, state)
        return state
