"""Text, numeric, and identifier normalization for raw feed fields.

All functions here are total: unparseable input yields ``None`` (the
"absent" marker) instead of raising, so callers can tell "zero votes"
apart from "field missing".
"""

import math
import re
from collections.abc import Sequence
from typing import Any

# Token that stands in for a blank part of a composite ID.
BLANK_TOKEN = "|"

_INT_PREFIX = re.compile(r"^[+-]?\d+")
_FLOAT_PREFIX = re.compile(r"^[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")
_ID_TOKEN = re.compile(r"[a-z0-9]+")
_WORD_START = re.compile(r"(?<![^\W_])[^\W\d_]")
_UPPER_WORDS = re.compile(r"(?<![^\W_])(isd|ssd|i|ii|iii|iv|v|vi|vii|viii|ix|x|\d+[a-z])(?![^\W_])", re.IGNORECASE)
_SMALL_WORDS = re.compile(r"(?<=\s)(a|an|and|at|by|for|in|of|on|or|the|to)(?=\s)", re.IGNORECASE)

# Known abbreviation fixes, applied after title casing.
_ABBREVIATIONS: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r"(^|[^a-zA-Z0-9])(?:st|saint|st\.)\s", re.IGNORECASE), r"\1St. "),
    (re.compile(r"\stwp($|\s)", re.IGNORECASE), r" Township\1"),
]


def raw_text(value: Any) -> str | None:
    """Return trimmed text, or None for missing/blank input."""
    if value is None:
        return None
    if isinstance(value, float) and math.isnan(value):
        return None
    text = str(value).strip()
    return text or None


def parse_int(value: Any) -> int | None:
    """Parse an integer from a raw field.

    Accepts a leading numeric prefix (``"850 "`` -> 850) the way the
    upstream feeds are written; anything else is absent.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return None if math.isnan(value) or math.isinf(value) else int(value)
    text = raw_text(value)
    if text is None:
        return None
    match = _INT_PREFIX.match(text.replace(",", ""))
    return int(match.group(0)) if match else None


def parse_float(value: Any) -> float | None:
    """Parse a float from a raw field, or None when not parseable."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        number = float(value)
        return None if math.isnan(number) or math.isinf(number) else number
    text = raw_text(value)
    if text is None:
        return None
    match = _FLOAT_PREFIX.match(text.replace(",", ""))
    return float(match.group(0)) if match else None


_TRUE_WORDS = {"1", "y", "yes", "true", "t", "x"}
_FALSE_WORDS = {"0", "n", "no", "false", "f"}


def parse_bool(value: Any) -> bool | None:
    """Parse a yes/no style flag, or None when not recognizable."""
    if isinstance(value, bool):
        return value
    text = raw_text(value)
    if text is None:
        return None
    lowered = text.lower()
    if lowered in _TRUE_WORDS:
        return True
    if lowered in _FALSE_WORDS:
        return False
    return None


def pad_left(value: Any, width: int, char: str = "0") -> str | None:
    """Left-pad a code to a fixed width (``"7"`` -> ``"07"``)."""
    text = raw_text(value)
    if text is None:
        return None
    return text.rjust(width, char)


def title_case(value: str | None) -> str | None:
    """Title-case a display string, keeping codes and numerals upper-case."""
    if value is None:
        return None
    text = value.casefold()
    text = _WORD_START.sub(lambda m: m.group(0).upper(), text)
    text = _SMALL_WORDS.sub(lambda m: m.group(0).lower(), text)
    return _UPPER_WORDS.sub(lambda m: m.group(0).upper(), text)


def normalize_text(value: Any) -> str | None:
    """Return canonical display text for a raw name field.

    Trims, collapses whitespace, case-folds and title-cases, then fixes
    known abbreviations ("St" -> "St.", "Twp" -> "Township"). The result
    is stable under repeated application.
    """
    text = raw_text(value)
    if text is None:
        return None
    text = re.sub(r"\s+", " ", text)
    text = title_case(text) or ""
    for pattern, replacement in _ABBREVIATIONS:
        text = pattern.sub(replacement, text + " ").rstrip()
    text = re.sub(r"\s+", " ", text).strip()
    return text or None


def _kebab(value: Any) -> str:
    return "-".join(_ID_TOKEN.findall(str(value).strip().lower()))


def _id_token(part: Any) -> str:
    if isinstance(part, list | tuple):
        tokens = [_id_token(p) for p in part]
        return "-".join(tokens) if tokens else BLANK_TOKEN
    if part is None or (isinstance(part, float) and math.isnan(part)):
        return BLANK_TOKEN
    token = _kebab(part)
    return token or BLANK_TOKEN


def make_id(parts: Any) -> str | None:
    """Build a deterministic composite identifier.

    A sequence is joined position by position with ``-``; a blank part
    becomes ``BLANK_TOKEN`` rather than being dropped, so two part lists
    that differ only in which positions are blank never share an ID. A bare
    scalar is normalized on its own.

    Args:
        parts: A scalar or a sequence of scalars (nested sequences allowed).

    Returns:
        The identifier, or None when nothing identifying was given.
    """
    if isinstance(parts, Sequence) and not isinstance(parts, str):
        if not parts:
            return None
        return "-".join(_id_token(p) for p in parts)
    if parts is None or isinstance(parts, bool):
        return None
    token = _id_token(parts)
    return None if token == BLANK_TOKEN else token
