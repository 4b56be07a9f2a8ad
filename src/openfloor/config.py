"""
Protocol constants and the bundled JSON Schema documents.

Schemas ship as package data. A host may point ``OPENFLOOR_SCHEMA_DIR`` at a
directory of replacement documents with the same file names.
"""

import json
import logging
import os
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_SCHEMA_VERSION = "1.0.0"
PAYLOAD_KEY = "openFloor"

SCHEMA_DIR_ENV = "OPENFLOOR_SCHEMA_DIR"

SCHEMA_FILES = {
    "envelope": "conversation-envelope.json",
    "dialog_event": "dialog-event.json",
    "manifest": "assistant-manifest.json",
}


@lru_cache(maxsize=None)
def _read_schema(file_name: str, override_dir: str) -> dict[str, Any]:
    if override_dir:
        path = Path(override_dir) / file_name
        logger.debug("Loading schema %s from %s", file_name, path)
        return json.loads(path.read_text(encoding="utf-8"))
    text = (resources.files("openfloor") / "schemas" / file_name).read_text(encoding="utf-8")
    return json.loads(text)


def load_schema(name: str) -> dict[str, Any]:
    """Return one of the bundled schemas: ``envelope``, ``dialog_event`` or ``manifest``."""
    try:
        file_name = SCHEMA_FILES[name]
    except KeyError:
        raise ValueError(f"Unknown schema {name!r}, expected one of {sorted(SCHEMA_FILES)}") from None
    return _read_schema(file_name, os.environ.get(SCHEMA_DIR_ENV, ""))


def validator_from_name(name: str):
    """Pick a validator engine by name, e.g. from a host's own settings."""
    from openfloor.validation import JsonSchemaValidator, SimpleValidator

    if name == "simple":
        return SimpleValidator()
    if name == "jsonschema":
        return JsonSchemaValidator()
    raise ValueError(f"Unknown validator {name!r}, expected 'simple' or 'jsonschema'")
