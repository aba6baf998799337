import json
import sys

import pytest

from showimport import cli


def _run(monkeypatch, tmp_path, *argv):
    monkeypatch.setenv("SHOWIMPORT_DATABASE_PATH", str(tmp_path / "cli.db"))
    monkeypatch.setattr(sys, "argv", [
        "showimport",
        "--config", str(tmp_path / "missing.toml"),
        "--env", str(tmp_path / "missing.env"),
        *argv,
    ])
    cli.main()


def _write_batch(tmp_path, name, events):
    path = tmp_path / name
    path.write_text(json.dumps(events))
    return path


def test_import_then_check(monkeypatch, tmp_path, capsys):
    _write_batch(tmp_path, "scraped-1.json", [
        {"id": "e1", "title": "Band A", "date": "2026-01-25", "venueSlug": "valley-bar", "showTime": "7:00 pm"},
    ])
    _write_batch(tmp_path, "scraped-2.json", {
        "crescent-ballroom": [
            {"id": "e2", "title": "Band B", "date": "2026-01-26", "venueSlug": "crescent-ballroom"},
        ],
    })

    _run(monkeypatch, tmp_path, "import", "--input", str(tmp_path / "scraped-*.json"), "--verbose",
         "--report", str(tmp_path / "report.html"))
    out = capsys.readouterr().out
    assert "IMPORTED: Band A at Valley Bar on 2026-01-26 02:00" in out
    assert "Imported:         2" in out
    assert (tmp_path / "report.html").exists()

    keys = tmp_path / "keys.json"
    keys.write_text(json.dumps([{"id": "e1", "venueSlug": "valley-bar"}, {"id": "zz", "venueSlug": "valley-bar"}]))
    _run(monkeypatch, tmp_path, "check", str(keys))
    payload = json.loads(capsys.readouterr().out)
    assert payload["events"]["e1"] == {"exists": True, "showId": 1, "status": "approved"}
    assert payload["events"]["zz"] == {"exists": False}


def test_import_exits_nonzero_on_event_errors(monkeypatch, tmp_path, capsys):
    _write_batch(tmp_path, "scraped.json", [
        {"id": "e1", "title": "Band A", "date": "2026-01-25", "venueSlug": "nowhere"},
    ])
    with pytest.raises(SystemExit) as excinfo:
        _run(monkeypatch, tmp_path, "import", "--input", str(tmp_path / "scraped.json"))
    assert excinfo.value.code == 1
    assert "Errors:           1" in capsys.readouterr().out


def test_dry_run_does_not_create_database(monkeypatch, tmp_path, capsys):
    _write_batch(tmp_path, "scraped.json", [
        {"id": "e1", "title": "Band A", "date": "2026-01-25", "venueSlug": "valley-bar"},
    ])
    _run(monkeypatch, tmp_path, "import", "--input", str(tmp_path / "scraped.json"), "--dry-run", "--verbose")
    out = capsys.readouterr().out
    assert "This was a DRY RUN" in out
    assert "WOULD IMPORT: Band A at Valley Bar" in out
    assert not (tmp_path / "cli.db").exists()


def test_dry_run_reads_existing_database(monkeypatch, tmp_path, capsys):
    _write_batch(tmp_path, "scraped.json", [
        {"id": "e1", "title": "Band A", "date": "2026-01-25", "venueSlug": "valley-bar"},
    ])
    _run(monkeypatch, tmp_path, "import", "--input", str(tmp_path / "scraped.json"))
    before = (tmp_path / "cli.db").read_bytes()
    capsys.readouterr()

    _run(monkeypatch, tmp_path, "import", "--input", str(tmp_path / "scraped.json"), "--dry-run", "--verbose")
    assert "DUPLICATE: Band A at Valley Bar" in capsys.readouterr().out
    assert (tmp_path / "cli.db").read_bytes() == before


def test_check_without_database(monkeypatch, tmp_path, capsys):
    keys = tmp_path / "keys.json"
    keys.write_text(json.dumps([{"id": "e1", "venueSlug": "valley-bar"}]))
    _run(monkeypatch, tmp_path, "check", str(keys))
    assert json.loads(capsys.readouterr().out) == {"events": {"e1": {"exists": False}}}
    assert not (tmp_path / "cli.db").exists()


def test_no_matching_files(monkeypatch, tmp_path):
    with pytest.raises(SystemExit) as excinfo:
        _run(monkeypatch, tmp_path, "import", "--input", str(tmp_path / "none-*.json"))
    assert excinfo.value.code == 1
