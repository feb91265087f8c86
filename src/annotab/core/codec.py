"""Encoding of the opaque blobs stored in single text fields.

Comment content is stored as ``{"v": <version>, "data": <payload>}`` so that
payload shape changes can be detected on read. Rows written before the
envelope existed carry the bare payload object and decode as version 0.
"""

import json
from typing import Any

from annotab.errors import CorruptDataError

CONTENT_VERSION = 1
_VERSION_KEY = "v"
_DATA_KEY = "data"

# Known payload fields and the JSON types they may hold
_CONTENT_FIELD_TYPES: dict[str, tuple[type, ...]] = {
    "author": (str,),
    "commentText": (str,),
    "timestamp": (int, float, str),
}


def encode_content(payload: dict[str, Any]) -> str:
    """Serialize a comment payload (author, commentText, timestamp)."""
    return json.dumps({_VERSION_KEY: CONTENT_VERSION, _DATA_KEY: payload}, ensure_ascii=False, separators=(",", ":"))


def decode_content(raw: str | None) -> dict[str, Any]:
    """Deserialize a comment payload.

    Raises:
        CorruptDataError: If the blob is not a JSON object of a known version,
            or a known payload field holds a value of the wrong type
    """
    document = _load_json(raw, "content")
    if document is None:
        return {}
    if not isinstance(document, dict):
        raise CorruptDataError(f"Malformed content: expected an object, got {type(document).__name__}")

    if _VERSION_KEY not in document:
        payload = document
    else:
        version = document[_VERSION_KEY]
        if type(version) is not int or version != CONTENT_VERSION:
            raise CorruptDataError(f"Unsupported content version: {version!r}")
        payload = document.get(_DATA_KEY)
        if not isinstance(payload, dict):
            raise CorruptDataError("Malformed content: missing data object")

    for name, allowed in _CONTENT_FIELD_TYPES.items():
        value = payload.get(name)
        if value is not None and (isinstance(value, bool) or not isinstance(value, allowed)):
            raise CorruptDataError(f"Malformed content: invalid {name} {value!r}")
    return payload


def encode_config(config: Any) -> str:
    """Serialize a project config blob of any JSON shape."""
    return json.dumps(config, ensure_ascii=False, separators=(",", ":"))


def decode_config(raw: str | None) -> Any:
    """Deserialize a project config blob; empty input reads as ``{}``."""
    document = _load_json(raw, "config")
    return {} if document is None else document


def _load_json(raw: str | None, kind: str) -> Any:
    """Parse a JSON blob, returning None for empty input."""
    if raw is None or not raw.strip():
        return None
    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        raise CorruptDataError(f"Malformed {kind}: {e}") from e
