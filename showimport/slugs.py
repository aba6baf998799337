import re
import time
from datetime import datetime, timezone
from typing import Callable

_INVALID_CHARS_RE = re.compile(r"[^a-z0-9\s-]")
_SEPARATOR_RUN_RE = re.compile(r"[\s-]+")

_MAX_SUFFIX = 100


def slugify(*parts: str) -> str:
    """Lower-case, URL-safe slug from one or more text parts."""
    text = " ".join(parts).lower()
    text = _INVALID_CHARS_RE.sub("", text)
    text = _SEPARATOR_RUN_RE.sub("-", text)
    return text.strip("-")


def artist_slug(name: str) -> str:
    return slugify(name)


def venue_slug(name: str, city: str, state: str) -> str:
    return slugify(name, city, state)


def show_slug(event_date: datetime, headliner: str, venue_name: str) -> str:
    # e.g. 2026-01-30-the-national-at-valley-bar
    day = event_date.astimezone(timezone.utc).strftime("%Y-%m-%d")
    return f"{day}-{slugify(headliner)}-at-{slugify(venue_name)}"


def unique_slug(base: str, exists: Callable[[str], bool]) -> str:
    """
    Return `base` if unused, else the first free `base-2` .. `base-100`.

    When every numbered candidate is taken, falls back to a nanosecond
    timestamp suffix.
    """
    if not exists(base):
        return base
    for n in range(2, _MAX_SUFFIX + 1):
        candidate = f"{base}-{n}"
        if not exists(candidate):
            return candidate
    return f"{base}-{time.time_ns()}"
