from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional


class ShowStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    PRIVATE = "private"


class ShowSource(str, Enum):
    USER = "user"
    DISCOVERY = "discovery"


class SetType(str, Enum):
    HEADLINER = "headliner"
    OPENER = "opener"


@dataclass(frozen=True)
class VenueInfo:
    slug: str          # Crawler's venue identifier, e.g. "valley-bar"
    name: str
    city: str
    state: str         # Two-letter code, drives the timezone
    address: Optional[str] = None


@dataclass
class DiscoveredEvent:
    id: str            # External event id from the venue's own system
    venue_slug: str
    title: str
    date: str          # "2026-01-25" or an ISO timestamp
    venue: Optional[str] = None
    image_url: Optional[str] = None
    doors_time: Optional[str] = None   # e.g. "6:30 pm"
    show_time: Optional[str] = None    # e.g. "7:00 pm"
    ticket_url: Optional[str] = None
    artists: list[str] = field(default_factory=list)
    scraped_at: Optional[str] = None
    # Fields of the source object that had the wrong JSON type
    invalid_fields: list[str] = field(default_factory=list, repr=False)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DiscoveredEvent":
        """
        Build an event from one object of the crawler's JSON output.

        A field of the wrong type is blanked and named in `invalid_fields`,
        so the event is reported on its own instead of failing the batch.
        A `scrapedAt` that is not a string is treated as missing.
        """
        invalid: list[str] = []

        def text(key: str) -> Optional[str]:
            value = data.get(key)
            if value is None or isinstance(value, str):
                return value
            invalid.append(key)
            return None

        raw_id = data.get("id")
        if raw_id is None or isinstance(raw_id, str):
            event_id = raw_id or ""
        elif isinstance(raw_id, int) and not isinstance(raw_id, bool):
            event_id = str(raw_id)
        else:
            invalid.append("id")
            event_id = ""

        raw_artists = data.get("artists")
        artists: list[str] = []
        if isinstance(raw_artists, list) and all(a is None or isinstance(a, str) for a in raw_artists):
            artists = [a for a in raw_artists if a is not None]
        elif raw_artists is not None:
            invalid.append("artists")

        scraped_at = data.get("scrapedAt")
        return cls(
            id=event_id,
            venue_slug=text("venueSlug") or "",
            title=text("title") or "",
            date=text("date") or "",
            venue=text("venue"),
            image_url=text("imageUrl"),
            doors_time=text("doorsTime"),
            show_time=text("showTime"),
            ticket_url=text("ticketUrl"),
            artists=artists,
            scraped_at=scraped_at if isinstance(scraped_at, str) else None,
            invalid_fields=invalid,
        )


@dataclass
class Artist:
    name: str
    slug: Optional[str] = None
    id: Optional[int] = field(default=None, repr=False)


@dataclass
class Venue:
    name: str
    city: str
    state: str
    address: Optional[str] = None
    verified: bool = False
    slug: Optional[str] = None
    id: Optional[int] = field(default=None, repr=False)


@dataclass
class Show:
    title: str
    event_date: datetime               # Always UTC
    status: ShowStatus = ShowStatus.APPROVED
    source: ShowSource = ShowSource.USER
    city: Optional[str] = None
    state: Optional[str] = None
    description: Optional[str] = None
    price: Optional[float] = None
    age_requirement: Optional[str] = None
    source_venue: Optional[str] = None
    source_event_id: Optional[str] = None
    scraped_at: Optional[datetime] = None
    duplicate_of_show_id: Optional[int] = None
    slug: Optional[str] = None
    # Populated by DB layer after insert
    id: Optional[int] = field(default=None, repr=False)


@dataclass
class ShowArtist:
    show_id: int
    artist_id: int
    position: int      # 0 = headliner, 1+ = openers in billing order
    set_type: SetType


class OutcomeKind(Enum):
    IMPORTED = "imported"
    DUPLICATE = "duplicate"
    REJECTED = "rejected"
    PENDING_REVIEW = "pending_review"
    ERROR = "error"


@dataclass(frozen=True)
class Outcome:
    kind: OutcomeKind
    show_id: Optional[int] = None       # Matched show for DUPLICATE / REJECTED / PENDING_REVIEW
    show_title: Optional[str] = None
    reason: Optional[str] = None        # ERROR only

    @classmethod
    def imported(cls) -> "Outcome":
        return cls(OutcomeKind.IMPORTED)

    @classmethod
    def error(cls, reason: str) -> "Outcome":
        return cls(OutcomeKind.ERROR, reason=reason)


@dataclass
class ImportResult:
    total: int = 0
    imported: int = 0
    duplicates: int = 0
    rejected: int = 0
    pending_review: int = 0
    errors: int = 0
    messages: list[str] = field(default_factory=list)
    outcomes: list[Outcome] = field(default_factory=list)

    def record(self, outcome: Outcome, message: str) -> None:
        self.outcomes.append(outcome)
        self.messages.append(message)
        if outcome.kind is OutcomeKind.IMPORTED:
            self.imported += 1
        elif outcome.kind is OutcomeKind.DUPLICATE:
            self.duplicates += 1
        elif outcome.kind is OutcomeKind.REJECTED:
            self.rejected += 1
        elif outcome.kind is OutcomeKind.PENDING_REVIEW:
            self.pending_review += 1
        else:
            self.errors += 1

    def merge(self, other: "ImportResult") -> None:
        self.total += other.total
        self.imported += other.imported
        self.duplicates += other.duplicates
        self.rejected += other.rejected
        self.pending_review += other.pending_review
        self.errors += other.errors
        self.messages.extend(other.messages)
        self.outcomes.extend(other.outcomes)


@dataclass(frozen=True)
class EventKey:
    id: str
    venue_slug: str


@dataclass
class EventStatus:
    id: str
    venue_slug: str
    exists: bool = False
    show_id: Optional[int] = None
    status: Optional[ShowStatus] = None
