"""Venue-aware date and time resolution for discovered events."""

import logging
import re
from datetime import date, datetime, timedelta, timezone
from typing import Mapping, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dateutil import parser as dateparser

from showimport.errors import DateParseError

logger = logging.getLogger(__name__)

DEFAULT_TIMEZONE = "America/Phoenix"

STATE_TIMEZONES: dict[str, str] = {
    "AZ": "America/Phoenix",
    "CA": "America/Los_Angeles",
    "NV": "America/Los_Angeles",
    "CO": "America/Denver",
    "NM": "America/Denver",
    "TX": "America/Chicago",
    "NY": "America/New_York",
}

# "7:00pm", after lower-casing and removing spaces
_SHOW_TIME_RE = re.compile(r"(\d{1,2}):(\d{2})(am|pm)")

_DATE_RE = re.compile(r"\d{4}-\d{2}-\d{2}")
_UTC_TIMESTAMP_RE = re.compile(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}Z")
_RFC3339_RE = re.compile(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(\.\d+)?(Z|[+-]\d{2}:\d{2})")


class TimezoneResolver:
    def __init__(self, table: Mapping[str, str] = STATE_TIMEZONES, default: str = DEFAULT_TIMEZONE):
        self.table = {k.upper(): v for k, v in table.items()}
        self.default = default

    def timezone_for(self, state: str) -> str:
        """Return the IANA timezone for a state code, or the default if unmapped."""
        return self.table.get((state or "").upper(), self.default)

    def zone_for(self, state: str) -> ZoneInfo | timezone:
        name = self.timezone_for(state)
        try:
            return ZoneInfo(name)
        except (ZoneInfoNotFoundError, ValueError):
            logger.warning("Timezone %s not available, using UTC", name)
            return timezone.utc


_default_resolver = TimezoneResolver()


def timezone_for_state(state: str) -> str:
    return _default_resolver.timezone_for(state)


def _parse_date(date_str: str) -> datetime:
    """
    Parse the event's date field, trying in order:
      2026-01-25
      2026-01-25T19:00:00Z
      RFC 3339 timestamps with an offset, e.g. 2026-01-25T19:00:00-07:00

    Partial dates ("2026-01"), week dates and timestamps without an offset
    are rejected rather than guessed at.
    """
    if not isinstance(date_str, str):
        raise DateParseError(repr(date_str))
    text = date_str.strip()
    if _DATE_RE.fullmatch(text):
        try:
            return datetime.strptime(text, "%Y-%m-%d").replace(tzinfo=timezone.utc)
        except ValueError:
            pass
    if _UTC_TIMESTAMP_RE.fullmatch(text):
        try:
            return datetime.strptime(text, "%Y-%m-%dT%H:%M:%SZ").replace(tzinfo=timezone.utc)
        except ValueError:
            pass
    if _RFC3339_RE.fullmatch(text):
        try:
            return dateparser.isoparse(text)
        except (ValueError, OverflowError):
            pass
    raise DateParseError(date_str)


def parse_show_time(show_time: Optional[str]) -> Optional[tuple[int, int]]:
    """
    Parse "7:00 pm" / "7:00PM" / "12:30 am" into a 24-hour (hour, minute).

    Returns None when the string is empty or does not look like a show time.
    """
    if not show_time:
        return None
    text = show_time.strip().lower().replace(" ", "")
    m = _SHOW_TIME_RE.match(text)
    if not m:
        return None

    hour, minute, period = int(m.group(1)), int(m.group(2)), m.group(3)
    if period == "pm" and hour != 12:
        hour += 12
    elif period == "am" and hour == 12:
        hour = 0

    if hour > 23 or minute > 59:
        return None
    return hour, minute


def parse_event_date(
    date_str: str,
    show_time: Optional[str],
    state: str,
    resolver: TimezoneResolver = _default_resolver,
) -> datetime:
    """
    Combine the event date and optional show time into a UTC datetime.

    The show time is wall-clock time at the venue, so it is interpreted in the
    timezone of the venue's state. A show time that cannot be parsed is
    ignored and the result is midnight UTC on the event date.
    """
    parsed = _parse_date(date_str)

    hm = parse_show_time(show_time)
    if hm is None:
        if show_time:
            logger.debug("Ignoring unparseable show time %r for %s", show_time, date_str)
        return parsed.astimezone(timezone.utc)

    hour, minute = hm
    local = datetime(parsed.year, parsed.month, parsed.day, hour, minute, tzinfo=resolver.zone_for(state))
    return local.astimezone(timezone.utc)


def parse_scraped_at(value: Optional[str], now: Optional[datetime] = None) -> datetime:
    """Parse the crawler's scrape timestamp, defaulting to now (UTC) if it is missing or unparseable."""
    if isinstance(value, str) and value:
        try:
            parsed = dateparser.isoparse(value)
        except (ValueError, OverflowError, TypeError):
            parsed = None
        if parsed is not None:
            if parsed.tzinfo is None:
                parsed = parsed.replace(tzinfo=timezone.utc)
            return parsed.astimezone(timezone.utc)
    return now or datetime.now(timezone.utc)


def utc_day_bounds(when: datetime) -> tuple[datetime, datetime]:
    """Return [start, end) of the UTC calendar day containing `when`."""
    day: date = when.astimezone(timezone.utc).date()
    start = datetime(day.year, day.month, day.day, tzinfo=timezone.utc)
    return start, start + timedelta(days=1)


def format_when(when: datetime) -> str:
    return when.astimezone(timezone.utc).strftime("%Y-%m-%d %H:%M")
