import showimport.db as db_module
from showimport.backfill import backfill_slugs
from showimport.models import Artist, Venue, VenueInfo
from showimport.writer import find_or_create_venue

from conftest import make_event


def test_backfill_assigns_missing_slugs(reconciler, conn):
    reconciler.import_event(make_event(title="The National"))
    show = db_module.find_show_by_source(conn, "valley-bar", "evt-1")
    with conn:
        conn.execute("UPDATE shows SET slug = NULL")
        conn.execute("UPDATE venues SET slug = ''")
        db_module.insert_artist(conn, Artist(name="The National's Cousin"))

    updated = backfill_slugs(conn)

    assert updated == {"artists": 1, "venues": 1, "shows": 1}
    assert db_module.get_show(conn, show.id).slug == "2026-01-26-the-national-at-valley-bar"
    assert db_module.find_venue(conn, "Valley Bar", "Phoenix").slug == "valley-bar-phoenix-az"
    assert db_module.find_artist_by_name(conn, "The National's Cousin").slug == "the-nationals-cousin"
    assert db_module.count_with_slug(conn, "artists") == 2


def test_backfill_avoids_existing_slugs(conn):
    with conn:
        db_module.insert_artist(conn, Artist(name="Turnstile", slug="turnstile"))
        db_module.insert_artist(conn, Artist(name="turnstile!"))

    backfill_slugs(conn)

    assert db_module.find_artist_by_name(conn, "turnstile!").slug == "turnstile-2"


def test_show_without_links_uses_placeholders(conn):
    with conn:
        conn.execute(
            "INSERT INTO shows (title, event_date, created_at) VALUES (?, ?, ?)",
            ("Mystery Gig", "2026-05-01T03:00:00Z", "2026-01-01T00:00:00Z"),
        )

    backfill_slugs(conn)

    row = conn.execute("SELECT slug FROM shows").fetchone()
    assert row["slug"] == "2026-05-01-unknown-at-unknown"


def test_found_venue_gets_slug(conn):
    with conn:
        db_module.insert_venue(conn, Venue(name="Valley Bar", city="Phoenix", state="AZ", verified=True))
        venue, created = find_or_create_venue(conn, VenueInfo("valley-bar", "VALLEY BAR", "phoenix", "AZ"))

    assert created is False
    assert venue.verified is True
    assert venue.name == "Valley Bar"
    assert venue.slug == "valley-bar-phoenix-az"
