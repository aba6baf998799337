"""
SQLite catalog storage.

Write helpers never commit: callers own the transaction, normally with
``with conn:`` so that a whole show graph commits or rolls back together.
"""

import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Optional

from showimport.models import (
    Artist,
    EventKey,
    SetType,
    Show,
    ShowArtist,
    ShowSource,
    ShowStatus,
    Venue,
)

_TS_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

_SLUG_TABLES = {"artists", "venues", "shows"}

# Keep well under SQLite's bound-parameter limit
_STATUS_CHUNK = 400


def connect(db_path: Path, read_only: bool = False) -> sqlite3.Connection:
    """
    Open the catalog, creating the file and schema if needed.

    A read-only connection never touches the filesystem: an existing file is
    opened with ``mode=ro`` and a missing one is stood in for by an empty
    in-memory catalog.
    """
    if read_only and str(db_path) != ":memory:":
        if db_path.exists():
            conn = sqlite3.connect(f"{db_path.resolve().as_uri()}?mode=ro", uri=True)
            conn.row_factory = sqlite3.Row
            return conn
        db_path = Path(":memory:")

    if str(db_path) != ":memory:":
        db_path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    _create_schema(conn)
    return conn


def _create_schema(conn: sqlite3.Connection) -> None:
    conn.executescript("""
        CREATE TABLE IF NOT EXISTS artists (
            id          INTEGER PRIMARY KEY AUTOINCREMENT,
            name        TEXT NOT NULL,
            slug        TEXT UNIQUE,
            created_at  TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS venues (
            id          INTEGER PRIMARY KEY AUTOINCREMENT,
            name        TEXT NOT NULL,
            slug        TEXT UNIQUE,
            address     TEXT,
            city        TEXT NOT NULL,
            state       TEXT NOT NULL,
            verified    INTEGER NOT NULL DEFAULT 0,
            created_at  TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS shows (
            id                    INTEGER PRIMARY KEY AUTOINCREMENT,
            title                 TEXT NOT NULL,
            slug                  TEXT UNIQUE,
            event_date            TEXT NOT NULL,
            city                  TEXT,
            state                 TEXT,
            price                 REAL,
            age_requirement       TEXT,
            description           TEXT,
            status                TEXT NOT NULL DEFAULT 'approved'
                                  CHECK (status IN ('pending', 'approved', 'rejected', 'private')),
            source                TEXT NOT NULL DEFAULT 'user'
                                  CHECK (source IN ('user', 'discovery')),
            source_venue          TEXT,
            source_event_id       TEXT,
            scraped_at            TEXT,
            duplicate_of_show_id  INTEGER REFERENCES shows(id),
            created_at            TEXT NOT NULL
        );

        CREATE UNIQUE INDEX IF NOT EXISTS idx_shows_source_event
            ON shows(source_venue, source_event_id)
            WHERE source = 'discovery';

        CREATE INDEX IF NOT EXISTS idx_shows_event_date ON shows(event_date);

        CREATE TABLE IF NOT EXISTS show_venues (
            show_id   INTEGER NOT NULL REFERENCES shows(id),
            venue_id  INTEGER NOT NULL REFERENCES venues(id),
            PRIMARY KEY (show_id, venue_id)
        );

        CREATE TABLE IF NOT EXISTS show_artists (
            show_id    INTEGER NOT NULL REFERENCES shows(id),
            artist_id  INTEGER NOT NULL REFERENCES artists(id),
            position   INTEGER NOT NULL DEFAULT 0,
            set_type   TEXT NOT NULL CHECK (set_type IN ('headliner', 'opener')),
            PRIMARY KEY (show_id, artist_id)
        );

        CREATE INDEX IF NOT EXISTS idx_show_artists_position ON show_artists(show_id, position);
    """)
    conn.commit()


def to_db_timestamp(dt: datetime) -> str:
    return dt.astimezone(timezone.utc).strftime(_TS_FORMAT)


def from_db_timestamp(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    return datetime.strptime(value, _TS_FORMAT).replace(tzinfo=timezone.utc)


def _now() -> str:
    return to_db_timestamp(datetime.now(timezone.utc))


# --- Slugs ---

def slug_exists(conn: sqlite3.Connection, table: str, slug: str, exclude_id: Optional[int] = None) -> bool:
    if table not in _SLUG_TABLES:
        raise ValueError(f"no slug column on table {table!r}")
    row = conn.execute(
        f"SELECT 1 FROM {table} WHERE slug = ? AND id IS NOT ? LIMIT 1",
        (slug, exclude_id),
    ).fetchone()
    return row is not None


def set_slug(conn: sqlite3.Connection, table: str, row_id: int, slug: str) -> None:
    if table not in _SLUG_TABLES:
        raise ValueError(f"no slug column on table {table!r}")
    conn.execute(f"UPDATE {table} SET slug = ? WHERE id = ?", (slug, row_id))


def rows_missing_slug(conn: sqlite3.Connection, table: str) -> list[sqlite3.Row]:
    if table not in _SLUG_TABLES:
        raise ValueError(f"no slug column on table {table!r}")
    return conn.execute(
        f"SELECT * FROM {table} WHERE slug IS NULL OR slug = '' ORDER BY id"
    ).fetchall()


def count_with_slug(conn: sqlite3.Connection, table: str) -> int:
    if table not in _SLUG_TABLES:
        raise ValueError(f"no slug column on table {table!r}")
    return conn.execute(
        f"SELECT COUNT(*) FROM {table} WHERE slug IS NOT NULL AND slug != ''"
    ).fetchone()[0]


# --- Artists ---

def find_artist_by_name(conn: sqlite3.Connection, name: str) -> Optional[Artist]:
    row = conn.execute(
        "SELECT id, name, slug FROM artists WHERE LOWER(name) = LOWER(?) ORDER BY id LIMIT 1",
        (name,),
    ).fetchone()
    if row is None:
        return None
    return Artist(id=row["id"], name=row["name"], slug=row["slug"])


def insert_artist(conn: sqlite3.Connection, artist: Artist) -> int:
    cursor = conn.execute(
        "INSERT INTO artists (name, slug, created_at) VALUES (?, ?, ?)",
        (artist.name, artist.slug, _now()),
    )
    artist.id = cursor.lastrowid
    return artist.id


# --- Venues ---

def find_venue(conn: sqlite3.Connection, name: str, city: str) -> Optional[Venue]:
    row = conn.execute(
        """
        SELECT id, name, slug, address, city, state, verified
        FROM venues
        WHERE LOWER(name) = LOWER(?) AND LOWER(city) = LOWER(?)
        ORDER BY id
        LIMIT 1
        """,
        (name, city),
    ).fetchone()
    if row is None:
        return None
    return _row_to_venue(row)


def insert_venue(conn: sqlite3.Connection, venue: Venue) -> int:
    cursor = conn.execute(
        """
        INSERT INTO venues (name, slug, address, city, state, verified, created_at)
        VALUES (:name, :slug, :address, :city, :state, :verified, :created_at)
        """,
        {
            "name":       venue.name,
            "slug":       venue.slug,
            "address":    venue.address,
            "city":       venue.city,
            "state":      venue.state,
            "verified":   1 if venue.verified else 0,
            "created_at": _now(),
        },
    )
    venue.id = cursor.lastrowid
    return venue.id


def _row_to_venue(row: sqlite3.Row) -> Venue:
    return Venue(
        id=row["id"],
        name=row["name"],
        slug=row["slug"],
        address=row["address"],
        city=row["city"],
        state=row["state"],
        verified=bool(row["verified"]),
    )


# --- Shows ---

_SHOW_COLUMNS = """
    shows.id, shows.title, shows.slug, shows.event_date, shows.city, shows.state,
    shows.price, shows.age_requirement, shows.description, shows.status, shows.source,
    shows.source_venue, shows.source_event_id, shows.scraped_at, shows.duplicate_of_show_id
"""


def insert_show(conn: sqlite3.Connection, show: Show) -> int:
    cursor = conn.execute(
        """
        INSERT INTO shows (
            title, slug, event_date, city, state, price, age_requirement, description,
            status, source, source_venue, source_event_id, scraped_at, duplicate_of_show_id,
            created_at
        )
        VALUES (
            :title, :slug, :event_date, :city, :state, :price, :age_requirement, :description,
            :status, :source, :source_venue, :source_event_id, :scraped_at, :duplicate_of_show_id,
            :created_at
        )
        """,
        {
            "title":                show.title,
            "slug":                 show.slug,
            "event_date":           to_db_timestamp(show.event_date),
            "city":                 show.city,
            "state":                show.state,
            "price":                show.price,
            "age_requirement":      show.age_requirement,
            "description":          show.description,
            "status":               show.status.value,
            "source":               show.source.value,
            "source_venue":         show.source_venue,
            "source_event_id":      show.source_event_id,
            "scraped_at":           to_db_timestamp(show.scraped_at) if show.scraped_at else None,
            "duplicate_of_show_id": show.duplicate_of_show_id,
            "created_at":           _now(),
        },
    )
    show.id = cursor.lastrowid
    return show.id


def get_show(conn: sqlite3.Connection, show_id: int) -> Optional[Show]:
    row = conn.execute(f"SELECT {_SHOW_COLUMNS} FROM shows WHERE id = ?", (show_id,)).fetchone()
    return _row_to_show(row) if row else None


def find_show_by_source(conn: sqlite3.Connection, source_venue: str, source_event_id: str) -> Optional[Show]:
    row = conn.execute(
        f"""
        SELECT {_SHOW_COLUMNS}
        FROM shows
        WHERE source_venue = ? AND source_event_id = ?
        ORDER BY id
        LIMIT 1
        """,
        (source_venue, source_event_id),
    ).fetchone()
    return _row_to_show(row) if row else None


def find_show_at_venue_on_day(
    conn: sqlite3.Connection,
    venue_name: str,
    start: datetime,
    end: datetime,
    status: ShowStatus,
) -> Optional[Show]:
    """First show with `status` at a venue (matched by name) with start <= event_date < end."""
    row = conn.execute(
        f"""
        SELECT {_SHOW_COLUMNS}
        FROM shows
        JOIN show_venues ON shows.id = show_venues.show_id
        JOIN venues ON show_venues.venue_id = venues.id
        WHERE LOWER(venues.name) = LOWER(?)
          AND shows.event_date >= ? AND shows.event_date < ?
          AND shows.status = ?
        ORDER BY shows.id
        LIMIT 1
        """,
        (venue_name, to_db_timestamp(start), to_db_timestamp(end), status.value),
    ).fetchone()
    return _row_to_show(row) if row else None


def find_show_by_headliner(
    conn: sqlite3.Connection,
    headliner: str,
    venue_name: str,
    start: datetime,
    end: datetime,
    exclude_statuses: Iterable[ShowStatus] = (ShowStatus.REJECTED, ShowStatus.PRIVATE),
) -> Optional[Show]:
    excluded = [s.value for s in exclude_statuses]
    placeholders = ", ".join("?" for _ in excluded) or "NULL"
    row = conn.execute(
        f"""
        SELECT {_SHOW_COLUMNS}
        FROM shows
        JOIN show_artists ON shows.id = show_artists.show_id
        JOIN artists ON show_artists.artist_id = artists.id
        JOIN show_venues ON shows.id = show_venues.show_id
        JOIN venues ON show_venues.venue_id = venues.id
        WHERE LOWER(artists.name) = LOWER(?) AND show_artists.set_type = ?
          AND LOWER(venues.name) = LOWER(?)
          AND shows.event_date >= ? AND shows.event_date < ?
          AND shows.status NOT IN ({placeholders})
        ORDER BY shows.id
        LIMIT 1
        """,
        (
            headliner, SetType.HEADLINER.value, venue_name,
            to_db_timestamp(start), to_db_timestamp(end), *excluded,
        ),
    ).fetchone()
    return _row_to_show(row) if row else None


def get_headliner_name(conn: sqlite3.Connection, show_id: int) -> Optional[str]:
    row = conn.execute(
        """
        SELECT artists.name
        FROM show_artists
        JOIN artists ON show_artists.artist_id = artists.id
        WHERE show_artists.show_id = ?
        ORDER BY show_artists.set_type != 'headliner', show_artists.position
        LIMIT 1
        """,
        (show_id,),
    ).fetchone()
    return row["name"] if row else None


def get_first_venue_name(conn: sqlite3.Connection, show_id: int) -> Optional[str]:
    row = conn.execute(
        """
        SELECT venues.name
        FROM show_venues
        JOIN venues ON show_venues.venue_id = venues.id
        WHERE show_venues.show_id = ?
        ORDER BY venues.id
        LIMIT 1
        """,
        (show_id,),
    ).fetchone()
    return row["name"] if row else None


def get_show_artists(conn: sqlite3.Connection, show_id: int) -> list[tuple[ShowArtist, str]]:
    rows = conn.execute(
        """
        SELECT show_artists.show_id, show_artists.artist_id, show_artists.position,
               show_artists.set_type, artists.name
        FROM show_artists
        JOIN artists ON show_artists.artist_id = artists.id
        WHERE show_artists.show_id = ?
        ORDER BY show_artists.position
        """,
        (show_id,),
    ).fetchall()
    return [
        (
            ShowArtist(
                show_id=r["show_id"],
                artist_id=r["artist_id"],
                position=r["position"],
                set_type=SetType(r["set_type"]),
            ),
            r["name"],
        )
        for r in rows
    ]


def get_event_statuses(conn: sqlite3.Connection, keys: list[EventKey]) -> dict[tuple[str, str], sqlite3.Row]:
    """Look up discovery-sourced shows by (venue slug, event id), in chunks."""
    found: dict[tuple[str, str], sqlite3.Row] = {}
    pairs = [(k.venue_slug, k.id) for k in keys]
    for i in range(0, len(pairs), _STATUS_CHUNK):
        chunk = pairs[i:i + _STATUS_CHUNK]
        values = ", ".join("(?, ?)" for _ in chunk)
        params = [p for pair in chunk for p in pair]
        rows = conn.execute(
            f"""
            SELECT id, source_venue, source_event_id, status
            FROM shows
            WHERE source = 'discovery'
              AND (source_venue, source_event_id) IN (VALUES {values})
            """,
            params,
        ).fetchall()
        for r in rows:
            found[(r["source_venue"], r["source_event_id"])] = r
    return found


# --- Links ---

def insert_show_venue(conn: sqlite3.Connection, show_id: int, venue_id: int) -> None:
    conn.execute("INSERT INTO show_venues (show_id, venue_id) VALUES (?, ?)", (show_id, venue_id))


def insert_show_artist(conn: sqlite3.Connection, link: ShowArtist) -> None:
    conn.execute(
        "INSERT INTO show_artists (show_id, artist_id, position, set_type) VALUES (?, ?, ?, ?)",
        (link.show_id, link.artist_id, link.position, link.set_type.value),
    )


def count_rows(conn: sqlite3.Connection, table: str) -> int:
    if table not in _SLUG_TABLES | {"show_venues", "show_artists"}:
        raise ValueError(f"unknown table {table!r}")
    return conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]


def _row_to_show(row: sqlite3.Row) -> Show:
    return Show(
        id=row["id"],
        title=row["title"],
        slug=row["slug"],
        event_date=from_db_timestamp(row["event_date"]),
        city=row["city"],
        state=row["state"],
        price=row["price"],
        age_requirement=row["age_requirement"],
        description=row["description"],
        status=ShowStatus(row["status"]),
        source=ShowSource(row["source"]),
        source_venue=row["source_venue"],
        source_event_id=row["source_event_id"],
        scraped_at=from_db_timestamp(row["scraped_at"]),
        duplicate_of_show_id=row["duplicate_of_show_id"],
    )
