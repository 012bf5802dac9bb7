"""JSON output and ``.properties`` decoding."""

import json
import re
from enum import Enum
from typing import Any, Dict, List, Tuple
from pathlib import Path
from ..core.errors import SerializationError, DeserializationError

_KEY_END = re.compile(r"(?<!\\)(?:\\\\)*[=:\s]")
_SIMPLE_ESCAPES = {"t": "\t", "n": "\n", "r": "\r", "f": "\f"}


def to_json_string(obj: Any) -> str:
    """Convert object to JSON string with custom serialization support."""
    try:
        return json.dumps(
            obj,
            indent=2,
            sort_keys=True,
            default=_json_serializer,
            ensure_ascii=False,
        )
    except (TypeError, ValueError) as e:
        raise SerializationError(f"Failed to encode object to JSON: {e}") from e


def _json_serializer(obj: Any) -> Any:
    if isinstance(obj, Path):
        return obj.as_posix()
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, (set, frozenset)):
        return sorted(obj, key=str)
    if hasattr(obj, "model_dump"):
        return obj.model_dump()
    if hasattr(obj, "to_dict"):
        return obj.to_dict()
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def parse_properties(text: str) -> Dict[str, str]:
    """Decode Java ``.properties`` content into an insertion-ordered dict.

    Later definitions of a key replace earlier ones but keep the key's
    original position.
    """
    result: Dict[str, str] = {}
    for key, value, _ in iter_properties(text):
        result[key] = value
    return result


def iter_properties(text: str) -> List[Tuple[str, str, int]]:
    """Decode ``.properties`` content into ``(key, value, line_number)`` triples."""
    entries: List[Tuple[str, str, int]] = []
    lines = text.splitlines()
    i = 0
    while i < len(lines):
        start_line = i + 1
        line = lines[i].lstrip()
        i += 1
        if not line or line[0] in "#!":
            continue
        while _continues(line) and i < len(lines):
            line = line[:-1] + lines[i].lstrip()
            i += 1
        if _continues(line):
            line = line[:-1]

        match = _KEY_END.search(line)
        if match is None:
            raw_key, raw_value = line, ""
        else:
            sep = match.end() - 1
            raw_key = line[:sep]
            rest = line[sep:].lstrip(" \t\f")
            if rest[:1] in ("=", ":"):
                rest = rest[1:].lstrip(" \t\f")
            raw_value = rest
        entries.append((_unescape(raw_key), _unescape(raw_value), start_line))
    return entries


def _continues(line: str) -> bool:
    trailing = len(line) - len(line.rstrip("\\"))
    return trailing % 2 == 1


def _unescape(raw: str) -> str:
    out = []
    i = 0
    while i < len(raw):
        ch = raw[i]
        if ch != "\\" or i + 1 == len(raw):
            out.append(ch)
            i += 1
            continue
        nxt = raw[i + 1]
        if nxt == "u":
            digits = raw[i + 2:i + 6]
            if len(digits) != 4 or any(c not in "0123456789abcdefABCDEF" for c in digits):
                raise DeserializationError(f"Malformed \\uxxxx encoding: {raw[i:i + 6]}")
            out.append(chr(int(digits, 16)))
            i += 6
        else:
            out.append(_SIMPLE_ESCAPES.get(nxt, nxt))
            i += 2
    return "".join(out)
