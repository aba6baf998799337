import sqlite3

import pytest

import showimport.db as db_module


def test_read_only_connection_to_missing_file_creates_nothing(tmp_path):
    path = tmp_path / "data" / "shows.db"
    conn = db_module.connect(path, read_only=True)
    assert db_module.count_rows(conn, "shows") == 0
    conn.close()
    assert not path.exists()
    assert not path.parent.exists()


def test_read_only_connection_rejects_writes(tmp_path):
    path = tmp_path / "shows.db"
    db_module.connect(path).close()

    conn = db_module.connect(path, read_only=True)
    assert db_module.count_rows(conn, "venues") == 0
    with pytest.raises(sqlite3.OperationalError):
        with conn:
            conn.execute("INSERT INTO artists (name, created_at) VALUES ('Band A', '2026-01-20T12:00:00Z')")
    conn.close()
