"""
Text helpers for catalog records.
"""
import math
import re
from typing import Any, Iterable

_TAG_PATTERN = re.compile(r"<[^>]*>")
_LEADING_INT_PATTERN = re.compile(r"^\s*([+-]?\d+)")


def strip_markup(text: str) -> str:
    """
    Remove anything between angle brackets (the catalog wraps query matches in <b> tags).

    Deliberately not an HTML parser: entities and malformed markup are left as-is.
    """
    if not text:
        return ""
    return _TAG_PATTERN.sub("", text).strip()


def contains_any_keyword(text: str, keywords: Iterable[str]) -> bool:
    """Case-insensitive substring match against any keyword."""
    lowered = text.lower()
    return any(keyword.lower() in lowered for keyword in keywords)


def safe_parse_int(value: Any, default: int = 0) -> int:
    """
    Parse a leading integer leniently ("12900", " 300원" -> 300); fall back to default.
    """
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else default
    match = _LEADING_INT_PATTERN.match(str(value))
    if not match:
        return default
    try:
        return int(match.group(1))
    except ValueError:
        # Digit run beyond the interpreter's int conversion limit
        return default
