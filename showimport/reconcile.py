"""
Import reconciliation: turns a crawler batch into catalog shows.

Each event is resolved, classified and (unless this is a dry run) written in
its own transaction, so one bad event never stops the rest of the batch.
"""

import json
import logging
import sqlite3
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Literal

import showimport.db as db_module
from showimport.classify import DuplicateClassifier
from showimport.dates import TimezoneResolver, format_when, parse_event_date
from showimport.errors import BatchFormatError, DateParseError, DuplicateEventError, UnknownVenueError
from showimport.models import (
    DiscoveredEvent,
    EventKey,
    EventStatus,
    ImportResult,
    Outcome,
    OutcomeKind,
    ShowStatus,
)
from showimport.venues import VenueRegistry
from showimport.writer import ShowWriter

logger = logging.getLogger(__name__)


@dataclass
class EventBatch:
    shape: Literal["array", "venue_map"]
    events: list[DiscoveredEvent]


def _event_objects(items: Any, where: str) -> list[DiscoveredEvent]:
    if not isinstance(items, list):
        raise BatchFormatError(f"{where}: expected an array of events")
    events = []
    for i, item in enumerate(items):
        if not isinstance(item, dict):
            raise BatchFormatError(f"{where}[{i}]: expected an event object, got {type(item).__name__}")
        events.append(DiscoveredEvent.from_dict(item))
    return events


def parse_batch(text: str | bytes) -> EventBatch:
    """
    Decode a crawler document.

    Accepts either a flat array of events, or an object mapping venue slugs to
    arrays of events (flattened in document order). Anything else raises
    BatchFormatError.
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise BatchFormatError(f"invalid JSON: {exc}") from exc

    if isinstance(data, list):
        return EventBatch("array", _event_objects(data, "$"))
    if isinstance(data, dict):
        events: list[DiscoveredEvent] = []
        for key, items in data.items():
            events.extend(_event_objects(items, f"$.{key}"))
        return EventBatch("venue_map", events)
    raise BatchFormatError(f"expected an array or an object of arrays, got {type(data).__name__}")


def load_batch(path: Path) -> EventBatch:
    return parse_batch(path.read_bytes())


class Reconciler:
    def __init__(
        self,
        conn: sqlite3.Connection,
        registry: VenueRegistry,
        timezones: TimezoneResolver | None = None,
        writer: ShowWriter | None = None,
    ):
        self.conn = conn
        self.registry = registry
        self.timezones = timezones or TimezoneResolver()
        self.classifier = DuplicateClassifier(conn)
        self.writer = writer or ShowWriter(conn)

    def import_file(self, path: Path, dry_run: bool = False) -> ImportResult:
        """Import one crawler JSON file. BatchFormatError aborts before any event is processed."""
        batch = load_batch(path)
        logger.debug("%s: %d events (%s)", path, len(batch.events), batch.shape)
        return self.import_events(batch.events, dry_run=dry_run)

    def import_events(self, events: Iterable[DiscoveredEvent], dry_run: bool = False) -> ImportResult:
        result = ImportResult()
        for event in events:
            result.total += 1
            outcome, message = self.import_event(event, dry_run=dry_run)
            result.record(outcome, message)
            logger.debug(message)
        return result

    def import_event(self, event: DiscoveredEvent, dry_run: bool = False) -> tuple[Outcome, str]:
        if event.invalid_fields:
            reason = f"Invalid field types ({', '.join(event.invalid_fields)}) for event {event.id or '?'}"
            return Outcome.error(reason), f"SKIP: {reason}"

        if not event.id or not event.venue_slug:
            reason = f"Missing required fields (id={event.id}, venueSlug={event.venue_slug})"
            return Outcome.error(reason), f"SKIP: {reason}"

        try:
            venue = self.registry.lookup(event.venue_slug)
        except UnknownVenueError as exc:
            return Outcome.error(str(exc)), f"ERROR: {exc}"

        try:
            event_date = parse_event_date(event.date, event.show_time, venue.state, self.timezones)
        except DateParseError as exc:
            return Outcome.error(str(exc)), f"ERROR: Failed to parse date for {event.title}: {exc}"

        where = f"{event.title} at {venue.name} on {format_when(event_date)}"

        try:
            outcome = self.classifier.classify(event, event_date, venue)
        except sqlite3.Error as exc:
            return Outcome.error(str(exc)), f"ERROR: Failed to check duplicates: {exc}"

        if outcome.kind is OutcomeKind.DUPLICATE:
            return outcome, f"DUPLICATE: {where} (ID: {event.id}) already imported as show #{outcome.show_id}"
        if outcome.kind is OutcomeKind.REJECTED:
            return outcome, f"REJECTED: {where} matches previously rejected show #{outcome.show_id}"

        flagged = outcome.kind is OutcomeKind.PENDING_REVIEW
        review_note = f" (potential duplicate of show #{outcome.show_id}: {outcome.show_title})" if flagged else ""

        if dry_run:
            if flagged:
                return outcome, f"WOULD FLAG FOR REVIEW: {where}{review_note}"
            return outcome, f"WOULD IMPORT: {where}"

        try:
            show_id = self.writer.commit(event, event_date, venue, outcome)
        except DuplicateEventError as exc:
            dup = Outcome(OutcomeKind.DUPLICATE, show_id=exc.show_id)
            return dup, f"DUPLICATE: {where} (ID: {event.id}) already imported as show #{exc.show_id}"
        except sqlite3.Error as exc:
            logger.warning("Failed to create show for %s/%s: %s", event.venue_slug, event.id, exc)
            return Outcome.error(str(exc)), f"ERROR: Failed to create show: {exc}"

        logger.debug("Created show #%d for %s/%s", show_id, event.venue_slug, event.id)
        if flagged:
            return outcome, f"FLAGGED FOR REVIEW: {where}{review_note}"
        return outcome, f"IMPORTED: {where}"


def check_events(conn: sqlite3.Connection, keys: list[EventKey]) -> list[EventStatus]:
    """
    Report, for each (event id, venue slug), whether it is already a show.

    Lets the crawler skip events the catalog already knows about.
    """
    valid = [k for k in keys if k.id and k.venue_slug]
    found = db_module.get_event_statuses(conn, valid) if valid else {}

    statuses = []
    for key in keys:
        status = EventStatus(id=key.id, venue_slug=key.venue_slug)
        row = found.get((key.venue_slug, key.id))
        if row is not None:
            status.exists = True
            status.show_id = row["id"]
            status.status = ShowStatus(row["status"])
        statuses.append(status)
    return statuses


def parse_event_keys(text: str | bytes) -> list[EventKey]:
    """Decode [{"id": ..., "venueSlug": ...}, ...] (or {"events": [...]}) into EventKeys."""
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise BatchFormatError(f"invalid JSON: {exc}") from exc
    if isinstance(data, dict):
        data = data.get("events")
    if not isinstance(data, list) or not all(isinstance(item, dict) for item in data):
        raise BatchFormatError("expected an array of {id, venueSlug} objects")
    return [
        EventKey(id="" if item.get("id") is None else str(item["id"]), venue_slug=item.get("venueSlug") or "")
        for item in data
    ]
