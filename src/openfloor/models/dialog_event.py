"""
Dialog events: a single utterance described by one or more feature streams.
"""

import logging
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any, ClassVar, Optional

from pydantic import field_serializer, field_validator, model_validator

from openfloor.models.base import FrozenDict, NonEmptyStr, OpenFloorModel
from openfloor.utils import (
    is_valid_confidence,
    is_valid_encoding,
    milliseconds_to_iso_duration,
    parse_iso_duration,
    resolve_json_path,
)

logger = logging.getLogger(__name__)


def _absent(data: Mapping[str, Any], *keys: str) -> bool:
    return all(data.get(key) is None for key in keys)


def format_timestamp(value: datetime) -> str:
    """ISO-8601 in UTC with millisecond precision and a ``Z`` suffix."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    rendered = value.astimezone(timezone.utc).isoformat(timespec="milliseconds")
    return rendered.replace("+00:00", "Z")


class Span(OpenFloorModel):
    """When a dialog event (or one token of it) happened.

    The start is either an absolute ``start_time`` or a ``start_offset`` in
    milliseconds, never both; likewise for the optional end. A span built
    with no start at all starts now.
    """

    start_time: Optional[datetime] = None
    start_offset: Optional[int] = None
    end_time: Optional[datetime] = None
    end_offset: Optional[int] = None

    @model_validator(mode="before")
    @classmethod
    def _default_start(cls, data: Any) -> Any:
        if isinstance(data, Mapping) and _absent(data, "start_time", "startTime", "start_offset", "startOffset"):
            data = {**data, "startTime": datetime.now(timezone.utc)}
        return data

    @field_validator("start_offset", "end_offset", mode="before")
    @classmethod
    def _parse_offset(cls, value: Any) -> Any:
        if isinstance(value, str):
            return parse_iso_duration(value)
        return value

    @field_validator("start_offset", "end_offset")
    @classmethod
    def _check_offset(cls, value: Optional[int]) -> Optional[int]:
        if value is not None and value < 0:
            raise ValueError("non-negative offset in milliseconds")
        return value

    @model_validator(mode="after")
    def _check_exclusive(self) -> "Span":
        if self.start_time is not None and self.start_offset is not None:
            raise ValueError("either startTime or startOffset, not both")
        if self.end_time is not None and self.end_offset is not None:
            raise ValueError("either endTime or endOffset, not both")
        return self

    @field_serializer("start_time", "end_time")
    def _render_time(self, value: Optional[datetime]) -> Optional[str]:
        return None if value is None else format_timestamp(value)

    @field_serializer("start_offset", "end_offset")
    def _render_offset(self, value: Optional[int]) -> Optional[str]:
        return None if value is None else milliseconds_to_iso_duration(value)


class Token(OpenFloorModel):
    """One recognised unit of a feature.

    Carries exactly one of an inline ``value`` or a ``value_url``. A ``None``
    value counts as absent.
    """

    omit_if_empty: ClassVar[tuple[str, ...]] = ("links",)

    value: Any = None
    value_url: Optional[str] = None
    span: Optional[Span] = None
    confidence: Optional[float] = None
    links: tuple[str, ...] = ()

    @field_validator("confidence")
    @classmethod
    def _check_confidence(cls, value: Optional[float]) -> Optional[float]:
        if value is not None and not is_valid_confidence(value):
            raise ValueError("number between 0 and 1")
        return value

    @model_validator(mode="after")
    def _check_value(self) -> "Token":
        has_value = self.value is not None
        has_url = bool(self.value_url)
        if has_value and has_url:
            raise ValueError("either value or valueUrl, not both")
        if not has_value and not has_url:
            raise ValueError("either value or valueUrl")
        return self

    def get_linked_values(self, dialog_event: "DialogEvent") -> list[tuple[str, Any]]:
        """Follow this token's JSON Path links into the event's features.

        Paths are rooted at the event's feature map, so ``$.text.tokens[0]``
        addresses the first token of the ``text`` feature. Returns ``(link, value)``
        pairs; malformed links are logged and skipped.
        """
        features = {name: feature.to_object() for name, feature in dialog_event.features.items()}
        values: list[tuple[str, Any]] = []
        for link in self.links:
            try:
                values.extend((link, value) for value in resolve_json_path(link, features))
            except ValueError as exc:
                logger.warning("Skipping unresolvable link %r: %s", link, exc)
        return values


class Feature(OpenFloorModel):
    omit_if_empty: ClassVar[tuple[str, ...]] = ("alternates",)

    mime_type: NonEmptyStr
    tokens: tuple[Token, ...]
    alternates: tuple[tuple[Token, ...], ...] = ()
    lang: Optional[str] = None
    encoding: Optional[str] = None
    token_schema: Optional[str] = None

    @field_validator("encoding")
    @classmethod
    def _check_encoding(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not is_valid_encoding(value):
            raise ValueError('"ISO-8859-1", "iso-8859-1", "UTF-8", or "utf-8"')
        return value


class TextFeature(Feature):
    """A ``text/plain`` feature; ``values=[...]`` is shorthand for one token per string."""

    mime_type: NonEmptyStr = "text/plain"
    tokens: tuple[Token, ...] = ()

    @model_validator(mode="before")
    @classmethod
    def _tokens_from_values(cls, data: Any) -> Any:
        if isinstance(data, Mapping) and "values" in data:
            data = dict(data)
            values = data.pop("values") or ()
            data["tokens"] = [*data.get("tokens", ()), *({"value": value} for value in values)]
        return data


class DialogEvent(OpenFloorModel):
    """A single utterance: who spoke, when, and what in which modalities."""

    id: NonEmptyStr
    speaker_uri: NonEmptyStr
    span: Span
    features: FrozenDict[Feature]
    previous_id: Optional[str] = None
    context: Optional[str] = None

    def get_feature(self, name: str) -> Optional[Feature]:
        return self.features.get(name)
