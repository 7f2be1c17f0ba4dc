"""Candidate name splitting.

Result feeds carry a single full-name field; display collaborators need
first/middle/last/suffix/nickname parts.
"""

import re
from dataclasses import dataclass

from election_tally.lib.identity.normalizer import raw_text

_SUFFIXES = {"jr", "jr.", "sr", "sr.", "ii", "iii", "iv", "v"}
_NICKNAME = re.compile(r"\s*[\"“(]([^\"”)]+)[\"”)]\s*")
_WRITE_IN = re.compile(r"^write[\s-]*in\b", re.IGNORECASE)


@dataclass(frozen=True)
class NameParts:
    first: str | None = None
    middle: str | None = None
    last: str | None = None
    suffix: str | None = None
    nickname: str | None = None


def is_write_in_name(name: str | None) -> bool:
    """True for the feeds' write-in placeholder names ("WRITE-IN", "Write In**")."""
    return bool(name and _WRITE_IN.match(name.strip()))


def split_name(full_name: str | None, suffix: str | None = None) -> NameParts:
    """Split a full name into parts.

    A quoted or parenthesized token is the nickname, a trailing
    Jr./Sr./roman numeral is the suffix, the last remaining token is the
    last name and the first is the first name. Single-token names (and
    ballot options such as "YES") land in ``last``.

    Args:
        full_name: Raw full-name field.
        suffix: Explicit suffix column, when the feed has one.

    Returns:
        The name parts; all None for a blank name.
    """
    text = raw_text(full_name)
    if text is None:
        return NameParts()

    nickname = None
    nick_match = _NICKNAME.search(text)
    if nick_match:
        nickname = nick_match.group(1).strip() or None
        text = (text[: nick_match.start()] + " " + text[nick_match.end() :]).strip()

    if "," in text:
        head, _, tail = text.partition(",")
        if tail.strip().lower() in _SUFFIXES:
            suffix = suffix or tail.strip()
            text = head.strip()

    tokens = text.split()
    if len(tokens) > 1 and tokens[-1].lower() in _SUFFIXES:
        suffix = suffix or tokens.pop()

    suffix = raw_text(suffix)
    if not tokens:
        return NameParts(suffix=suffix, nickname=nickname)
    if len(tokens) == 1:
        return NameParts(last=tokens[0], suffix=suffix, nickname=nickname)
    return NameParts(
        first=tokens[0],
        middle=" ".join(tokens[1:-1]) or None,
        last=tokens[-1],
        suffix=suffix,
        nickname=nickname,
    )
