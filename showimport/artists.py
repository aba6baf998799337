"""Fallback artist extraction from event titles."""

import re
from typing import Optional

_WITH_RE = re.compile(r" with ", re.IGNORECASE)

_SIMPLE_SEPARATORS = (" / ", " | ", " + ")

# Both halves of an " & " split must be longer than this, so that
# "Tom & Jerry" stays one act.
_AMPERSAND_MIN_LEN = 10


def _split_and_trim(text: str, sep: str) -> list[str]:
    return [part.strip() for part in text.split(sep) if part.strip()]


def _split_with(text: str) -> Optional[tuple[str, str]]:
    """Split "Headliner with Support" at the first case-insensitive " with "."""
    m = _WITH_RE.search(text)
    if not m or m.start() == 0:
        return None
    first = text[:m.start()].strip()
    if not first:
        return None
    return first, text[m.end():]


def parse_artists_from_title(title: str) -> list[str]:
    """
    Guess the billed artists from an event title, headliner first.

    Only used when the crawler did not supply an artist list. Always returns
    at least one name: the whole trimmed title if no separator applies.
    """
    if "," in title:
        artists = _split_and_trim(title, ",")
        if artists:
            # "A with B, C": the headline segment still carries its support act
            head = _split_with(artists[0])
            if head:
                return [head[0], *_split_and_trim(head[1], ","), *artists[1:]]
            return artists

    head = _split_with(title)
    if head:
        return [head[0], *_split_and_trim(head[1], ",")]

    for sep in _SIMPLE_SEPARATORS:
        if sep in title:
            artists = _split_and_trim(title, sep)
            if artists:
                return artists

    if " & " in title:
        parts = title.split(" & ")
        if len(parts) == 2 and all(len(p) > _AMPERSAND_MIN_LEN for p in parts):
            return _split_and_trim(title, " & ")

    return [title.strip()]
