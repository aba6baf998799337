import pytest

import showimport.db as db_module
from showimport.models import DiscoveredEvent, VenueInfo
from showimport.reconcile import Reconciler
from showimport.venues import VenueRegistry


@pytest.fixture
def conn(tmp_path):
    conn = db_module.connect(tmp_path / "shows.db")
    yield conn
    conn.close()


@pytest.fixture
def registry():
    return VenueRegistry([
        VenueInfo("valley-bar", "Valley Bar", "Phoenix", "AZ", "130 N Central Ave"),
        VenueInfo("crescent-ballroom", "Crescent Ballroom", "Phoenix", "AZ", "308 N 2nd Ave"),
        VenueInfo("mohawk", "Mohawk", "Austin", "TX", "912 Red River St"),
    ])


@pytest.fixture
def reconciler(conn, registry):
    return Reconciler(conn, registry)


def make_event(**overrides) -> DiscoveredEvent:
    fields = {
        "id": "evt-1",
        "venue_slug": "valley-bar",
        "title": "Band A",
        "date": "2026-01-25",
        "show_time": "7:00 pm",
        "scraped_at": "2026-01-20T12:00:00Z",
    }
    fields.update(overrides)
    return DiscoveredEvent(**fields)


def set_status(conn, show_id, status):
    with conn:
        conn.execute("UPDATE shows SET status = ? WHERE id = ?", (status, show_id))


def table_counts(conn):
    return {
        table: db_module.count_rows(conn, table)
        for table in ("shows", "venues", "artists", "show_venues", "show_artists")
    }
