"""Assign slugs to catalog rows created before slugs existed."""

import logging
import sqlite3

import showimport.db as db_module
from showimport import slugs
from showimport.db import from_db_timestamp

logger = logging.getLogger(__name__)


def _assign(conn: sqlite3.Connection, table: str, row_id: int, base: str, label: str) -> bool:
    slug = slugs.unique_slug(base, lambda c: db_module.slug_exists(conn, table, c, row_id))
    try:
        with conn:
            db_module.set_slug(conn, table, row_id, slug)
    except sqlite3.Error as exc:
        logger.error("Error updating %s %d (%s): %s", table, row_id, label, exc)
        return False
    logger.info("%s %d: %s -> %s", table, row_id, label, slug)
    return True


def backfill_slugs(conn: sqlite3.Connection) -> dict[str, int]:
    """
    Fill NULL or empty slugs on artists, venues and shows.

    Returns the number of rows updated per table. A row that fails to update
    is logged and skipped.
    """
    updated = {"artists": 0, "venues": 0, "shows": 0}

    for row in db_module.rows_missing_slug(conn, "artists"):
        if _assign(conn, "artists", row["id"], slugs.artist_slug(row["name"]), row["name"]):
            updated["artists"] += 1

    for row in db_module.rows_missing_slug(conn, "venues"):
        base = slugs.venue_slug(row["name"], row["city"], row["state"])
        if _assign(conn, "venues", row["id"], base, row["name"]):
            updated["venues"] += 1

    for row in db_module.rows_missing_slug(conn, "shows"):
        headliner = db_module.get_headliner_name(conn, row["id"]) or "unknown"
        venue_name = db_module.get_first_venue_name(conn, row["id"]) or "unknown"
        base = slugs.show_slug(from_db_timestamp(row["event_date"]), headliner, venue_name)
        if _assign(conn, "shows", row["id"], base, row["title"]):
            updated["shows"] += 1

    return updated
