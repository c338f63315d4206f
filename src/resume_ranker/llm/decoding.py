"""Locate and decode JSON embedded in free-form model output.

Models wrap their answers in prose or code fences, so the whole response is
rarely valid JSON. Every extraction stage goes through ``find_json_value``,
which returns the first balanced ``{...}`` or ``[...]`` span that decodes to a
value of the requested kind.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Literal

logger = logging.getLogger(__name__)

JSONKind = Literal["object", "array"]

_DELIMITERS: dict[str, tuple[str, str, type]] = {
    "object": ("{", "}", dict),
    "array": ("[", "]", list),
}


class ExtractionError(ValueError):
    """Raised when a model response holds no usable JSON payload."""


def find_json_value(text: str, kind: JSONKind) -> Any | None:
    if kind not in _DELIMITERS:
        raise ValueError(f"kind must be one of {sorted(_DELIMITERS)}")
    if not text:
        return None

    opener, closer, expected = _DELIMITERS[kind]
    start = text.find(opener)
    while start != -1:
        end = _balanced_end(text, start, opener, closer)
        if end is not None:
            try:
                value = json.loads(text[start : end + 1])
            except json.JSONDecodeError:
                value = None
            if isinstance(value, expected):
                return value
        start = text.find(opener, start + 1)
    return None


def decode_json(text: str, kind: JSONKind, *, error_message: str) -> Any:
    value = find_json_value(text, kind)
    if value is None:
        logger.warning("No JSON %s found in model response (%d chars)", kind, len(text or ""))
        raise ExtractionError(error_message)
    return value


def _balanced_end(text: str, start: int, opener: str, closer: str) -> int | None:
    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue

        if char == '"':
            in_string = True
        elif char == opener:
            depth += 1
        elif char == closer:
            depth -= 1
            if depth == 0:
                return index
    return None
