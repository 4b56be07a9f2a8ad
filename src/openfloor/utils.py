"""
Shared helpers: ISO-8601 durations, JSON Path lookups, identifiers and the
small predicates the models validate with.
"""

import math
import re
import uuid
from collections.abc import Mapping
from decimal import Decimal
from typing import Any, Iterable
from urllib.parse import urlsplit

VALID_ENCODINGS = ("ISO-8859-1", "iso-8859-1", "UTF-8", "utf-8")

_DURATION_RE = re.compile(r"^P(?:(\d+)D)?(?:T(?:(\d+)H)?(?:(\d+)M)?(\d+(?:\.\d+)?S)?)?$")
_SUBSTRING_RE = re.compile(r"^(.+)\.substring\((\d+),(\d+)\)$")
_SCHEME_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*$")


def parse_iso_duration(duration: str) -> int:
    """Parse ``P[n]DT[n]H[n]M[n]S`` into whole milliseconds.

    >>> parse_iso_duration("PT1H30M")
    5400000
    """
    match = _DURATION_RE.match(duration) if isinstance(duration, str) else None
    if not match:
        raise ValueError(f"Invalid ISO 8601 duration: {duration}")
    days, hours, minutes, seconds = match.groups()
    total = ((int(days or 0) * 24 + int(hours or 0)) * 60 + int(minutes or 0)) * 60000
    if seconds:
        total += int((Decimal(seconds[:-1]) * 1000).to_integral_value())
    return total


def milliseconds_to_iso_duration(milliseconds: float) -> str:
    """Render milliseconds as ``PT[n]H[n]M[n]S``.

    Sub-second remainders are kept as fractional seconds so that integer
    milliseconds survive a round trip through :func:`parse_iso_duration`.
    """
    if milliseconds < 0:
        raise ValueError(f"Duration must not be negative: {milliseconds}")
    total_seconds, millis = divmod(int(round(milliseconds)), 1000)
    hours, rest = divmod(total_seconds, 3600)
    minutes, seconds = divmod(rest, 60)

    parts: list[str] = []
    if hours:
        parts.append(f"{hours}H")
    if minutes:
        parts.append(f"{minutes}M")
    if millis:
        parts.append(f"{seconds}.{millis:03d}".rstrip("0") + "S")
    elif seconds or not parts:
        parts.append(f"{seconds}S")
    return "PT" + "".join(parts)


def generate_uuid() -> str:
    return str(uuid.uuid4())


def resolve_json_path(path: str, data: Any) -> list[Any]:
    """Resolve a ``$``-rooted JSON Path, with the ``.substring(start,end)`` extension.

    Only dotted property access and ``[n]`` indexing are understood. A path
    that walks off the data yields an empty list; a path that does not start
    with ``$`` is an error.

    >>> resolve_json_path("$.text.tokens[0].value.substring(0,5)",
    ...                   {"text": {"tokens": [{"value": "hello world"}]}})
    ['hello']
    """
    match = _SUBSTRING_RE.match(path)
    if match:
        base_path, start, end = match.groups()
        return [
            value[int(start):int(end)]
            for value in _resolve_basic_path(base_path, data)
            if isinstance(value, str)
        ]
    return _resolve_basic_path(path, data)


def _resolve_basic_path(path: str, data: Any) -> list[Any]:
    if not path.startswith("$"):
        raise ValueError("JSON Path must start with $")

    current = data
    for part in filter(None, re.split(r"[.\[]", path[1:])):
        if part.endswith("]"):
            try:
                index = int(part[:-1])
            except ValueError:
                return []
            if not isinstance(current, list) or not 0 <= index < len(current):
                return []
            current = current[index]
        elif isinstance(current, Mapping) and part in current:
            current = current[part]
        else:
            return []
    return [current]


def is_valid_uri(uri: Any) -> bool:
    """``scheme:rest`` with an RFC 3986 scheme and a non-empty remainder."""
    if not isinstance(uri, str):
        return False
    scheme, sep, rest = uri.partition(":")
    return bool(sep and scheme and rest and _SCHEME_RE.match(scheme))


def is_valid_url(url: Any) -> bool:
    if not isinstance(url, str):
        return False
    try:
        parts = urlsplit(url)
    except ValueError:
        return False
    return bool(parts.scheme and _SCHEME_RE.match(parts.scheme) and (parts.netloc or parts.path))


def is_valid_confidence(confidence: Any) -> bool:
    if isinstance(confidence, bool) or not isinstance(confidence, (int, float)):
        return False
    return not math.isnan(confidence) and 0 <= confidence <= 1


def is_valid_encoding(encoding: Any) -> bool:
    return encoding in VALID_ENCODINGS


def has_required_properties(obj: Any, required: Iterable[str]) -> bool:
    """True when ``obj`` is a mapping holding a non-None value for every name."""
    if not isinstance(obj, Mapping):
        return False
    return all(obj.get(name) is not None for name in required)


def create_validation_error(field: str, value: Any, expected: str) -> str:
    """Format ``<field>: expected <shape>, got <value>``.

    Strings are quoted verbatim; anything else is described by its type name.
    """
    got = f'"{value}"' if isinstance(value, str) else type(value).__name__
    return f"{field}: expected {expected}, got {got}"
