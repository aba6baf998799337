import logging
import sqlite3
from datetime import datetime
from typing import Callable, Optional

import showimport.db as db_module
from showimport import slugs
from showimport.artists import parse_artists_from_title
from showimport.dates import parse_scraped_at
from showimport.errors import DuplicateEventError
from showimport.models import (
    Artist,
    DiscoveredEvent,
    Outcome,
    OutcomeKind,
    SetType,
    Show,
    ShowArtist,
    ShowSource,
    ShowStatus,
    Venue,
    VenueInfo,
)

logger = logging.getLogger(__name__)


def build_description(event: DiscoveredEvent) -> Optional[str]:
    """e.g. "Doors: 6:30 pm | Show: 7:00 pm | Tickets: https://..." """
    parts = []
    if event.doors_time:
        parts.append(f"Doors: {event.doors_time}")
    if event.show_time:
        parts.append(f"Show: {event.show_time}")
    if event.ticket_url:
        parts.append(f"Tickets: {event.ticket_url}")
    return " | ".join(parts) if parts else None


def artist_names_for(event: DiscoveredEvent, extract: Callable[[str], list[str]] = parse_artists_from_title) -> list[str]:
    """The crawler's artist list if it sent one, else names guessed from the title."""
    names = event.artists if event.artists else extract(event.title)
    return [n.strip() for n in names if n and n.strip()]


def find_or_create_venue(conn: sqlite3.Connection, info: VenueInfo) -> tuple[Venue, bool]:
    """
    Find a venue by case-insensitive (name, city), creating it unverified if absent.

    Returns (venue, created). Must run inside the caller's transaction.
    """
    venue = db_module.find_venue(conn, info.name, info.city)
    if venue is not None:
        if not venue.slug:
            venue.slug = _unique(conn, "venues", slugs.venue_slug(venue.name, venue.city, venue.state), venue.id)
            db_module.set_slug(conn, "venues", venue.id, venue.slug)
        return venue, False

    venue = Venue(
        name=info.name,
        city=info.city,
        state=info.state,
        address=info.address,
        verified=False,
        slug=_unique(conn, "venues", slugs.venue_slug(info.name, info.city, info.state)),
    )
    db_module.insert_venue(conn, venue)
    logger.info("Created unverified venue %s (%s, %s)", venue.name, venue.city, venue.state)
    return venue, True


def find_or_create_artist(conn: sqlite3.Connection, name: str) -> tuple[Artist, bool]:
    artist = db_module.find_artist_by_name(conn, name)
    if artist is not None:
        return artist, False
    artist = Artist(name=name, slug=_unique(conn, "artists", slugs.artist_slug(name)))
    db_module.insert_artist(conn, artist)
    return artist, True


def _unique(conn: sqlite3.Connection, table: str, base: str, exclude_id: Optional[int] = None) -> str:
    return slugs.unique_slug(base, lambda candidate: db_module.slug_exists(conn, table, candidate, exclude_id))


class ShowWriter:
    """Creates a show with its venue and artist links in one transaction."""

    def __init__(self, conn: sqlite3.Connection, extract: Callable[[str], list[str]] = parse_artists_from_title):
        self.conn = conn
        self.extract = extract

    def commit(self, event: DiscoveredEvent, event_date: datetime, venue: VenueInfo, outcome: Outcome) -> int:
        """
        Persist the event as a new show and return its id.

        Either every row for the show is written or none are. Raises
        DuplicateEventError if another import inserted the same event first.
        """
        try:
            with self.conn:
                return self._write(event, event_date, venue, outcome)
        except sqlite3.IntegrityError:
            existing = db_module.find_show_by_source(self.conn, event.venue_slug, event.id)
            if existing is not None:
                raise DuplicateEventError(existing.id) from None
            raise

    def _write(self, event: DiscoveredEvent, event_date: datetime, info: VenueInfo, outcome: Outcome) -> int:
        conn = self.conn
        flagged = outcome.kind is OutcomeKind.PENDING_REVIEW

        artist_names = artist_names_for(event, self.extract)
        headliner = artist_names[0] if artist_names else ""

        show = Show(
            title=event.title,
            event_date=event_date,
            city=info.city,
            state=info.state,
            description=build_description(event),
            status=ShowStatus.PENDING if flagged else ShowStatus.APPROVED,
            source=ShowSource.DISCOVERY,
            source_venue=event.venue_slug,
            source_event_id=event.id,
            scraped_at=parse_scraped_at(event.scraped_at),
            duplicate_of_show_id=outcome.show_id if flagged else None,
            slug=_unique(conn, "shows", slugs.show_slug(event_date, headliner, info.name)),
        )
        db_module.insert_show(conn, show)

        venue, _ = find_or_create_venue(conn, info)
        db_module.insert_show_venue(conn, show.id, venue.id)

        linked: set[int] = set()
        for name in artist_names:
            artist, _ = find_or_create_artist(conn, name)
            if artist.id in linked:
                continue
            position = len(linked)
            db_module.insert_show_artist(conn, ShowArtist(
                show_id=show.id,
                artist_id=artist.id,
                position=position,
                set_type=SetType.HEADLINER if position == 0 else SetType.OPENER,
            ))
            linked.add(artist.id)

        return show.id
