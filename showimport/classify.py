"""
Duplicate classification for discovered events.

Rules are checked in order and the first match wins:

1. Exact key: a show with the same (venue slug, external id) exists -> DUPLICATE
2. Rejection memory: a rejected show at the same venue on the same UTC day
   -> REJECTED, so a later scrape cannot resurrect content an admin turned down
3. Headliner match: a live show at the same venue on the same UTC day whose
   headliner matches the event's first artist -> PENDING_REVIEW (still imported,
   as pending, pointing at the matched show)
4. Otherwise -> IMPORTED
"""

import logging
import sqlite3
from datetime import datetime

import showimport.db as db_module
from showimport.dates import utc_day_bounds
from showimport.models import DiscoveredEvent, Outcome, OutcomeKind, ShowStatus, VenueInfo

logger = logging.getLogger(__name__)


class DuplicateClassifier:
    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn

    def classify(self, event: DiscoveredEvent, event_date: datetime, venue: VenueInfo) -> Outcome:
        existing = db_module.find_show_by_source(self.conn, event.venue_slug, event.id)
        if existing is not None:
            return Outcome(OutcomeKind.DUPLICATE, show_id=existing.id, show_title=existing.title)

        start, end = utc_day_bounds(event_date)

        rejected = db_module.find_show_at_venue_on_day(
            self.conn, venue.name, start, end, ShowStatus.REJECTED,
        )
        if rejected is not None:
            return Outcome(OutcomeKind.REJECTED, show_id=rejected.id, show_title=rejected.title)

        headliner = event.artists[0].strip() if event.artists else ""
        if headliner:
            match = db_module.find_show_by_headliner(self.conn, headliner, venue.name, start, end)
            if match is not None:
                logger.debug("%s shares headliner %r with show #%d", event.title, headliner, match.id)
                return Outcome(OutcomeKind.PENDING_REVIEW, show_id=match.id, show_title=match.title)

        return Outcome.imported()
