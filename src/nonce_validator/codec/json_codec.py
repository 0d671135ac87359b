"""Minimal JSON codec for alert payloads and service responses.

``encode`` accepts plain Python values: ``None``, ``bool``, ``int``,
``float``, ``str``, and containers (``list``, ``tuple``, ``dict``).
A ``dict`` whose keys are exactly the integers ``1..N`` encodes as an
array; any other ``dict`` encodes as an object and non-string keys are
dropped. Empty containers always encode as ``{}``.

``decode_fields`` is not a parser: it scans for a few known string fields.
"""

from __future__ import annotations

import math
import re
from typing import Any, Iterable

from nonce_validator.errors import EncodingError, EncodingErrorKind

DEFAULT_RESPONSE_FIELDS = ("status", "message", "dedup_key")

_ESCAPES = {
    "\\": "\\\\",
    '"': '\\"',
    "/": "\\/",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    "\b": "\\b",
    "\f": "\\f",
}
_ESCAPE_RE = re.compile(r'[\\"/\x00-\x1f]')
_UNESCAPES = {"n": "\n", "r": "\r", "t": "\t", "b": "\b", "f": "\f"}
_UNESCAPE_RE = re.compile(r"\\(u[0-9a-fA-F]{4}|.)", re.DOTALL)


def encode(value: Any) -> str:
    return _encode(value, set())


def _escape_char(match: re.Match) -> str:
    char = match.group(0)
    return _ESCAPES.get(char) or "\\u%04x" % ord(char)


def encode_string(text: str) -> str:
    escaped = _ESCAPE_RE.sub(_escape_char, text)
    return f'"{escaped}"'


def _encode(value: Any, in_progress: set[int]) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            raise EncodingError(
                EncodingErrorKind.NOT_FINITE,
                f"Cannot encode non-finite number: {value}",
            )
        return repr(value)
    if isinstance(value, str):
        return encode_string(value)
    if isinstance(value, (list, tuple, dict)):
        return _encode_container(value, in_progress)

    raise EncodingError(
        EncodingErrorKind.UNSUPPORTED_TYPE,
        f"Cannot encode type: {type(value).__name__}",
    )


def _encode_container(value: list | tuple | dict, in_progress: set[int]) -> str:
    identity = id(value)
    if identity in in_progress:
        raise EncodingError(
            EncodingErrorKind.CIRCULAR_REFERENCE, "Circular reference detected"
        )
    in_progress.add(identity)
    try:
        items = _array_items(value)
        if items is not None:
            parts = [_encode(item, in_progress) for item in items]
            return "[" + ",".join(parts) + "]"

        parts = []
        if isinstance(value, dict):
            for key, item in value.items():
                if not isinstance(key, str):
                    continue
                parts.append(f"{encode_string(key)}:{_encode(item, in_progress)}")
        return "{" + ",".join(parts) + "}"
    finally:
        in_progress.discard(identity)


def _array_items(value: list | tuple | dict) -> list[Any] | None:
    """Return the elements in array order, or ``None`` for object encoding."""
    if isinstance(value, (list, tuple)):
        return list(value) if value else None

    if not value:
        return None
    keys = list(value.keys())
    if not all(isinstance(key, int) and not isinstance(key, bool) for key in keys):
        return None
    if set(keys) != set(range(1, len(keys) + 1)):
        return None
    return [value[index] for index in range(1, len(keys) + 1)]


def decode_fields(
    text: str | None,
    names: Iterable[str] = DEFAULT_RESPONSE_FIELDS,
) -> dict[str, str | None]:
    """Pull the named string fields out of a JSON response body.

    Missing fields, an empty body, and unexpected extra content all
    decode to ``None`` for the affected field rather than failing.
    """
    result: dict[str, str | None] = {}
    for name in names:
        result[name] = None
        if not text:
            continue
        pattern = r'"%s"\s*:\s*"((?:[^"\\]|\\.)*)"' % re.escape(name)
        match = re.search(pattern, text, re.DOTALL)
        if match:
            result[name] = _UNESCAPE_RE.sub(_unescape_char, match.group(1))
    return result


def _unescape_char(match: re.Match) -> str:
    token = match.group(1)
    if len(token) == 5:
        return chr(int(token[1:], 16))
    return _UNESCAPES.get(token, token)
