import os
from pathlib import Path

import pytest

import showimport.config as cfg_module

_ENV_NAMES = ("SHOWIMPORT_DATABASE_PATH", "SHOWIMPORT_DATABASE_TIMEOUT", "SHOWIMPORT_VENUES_MOHAWK")


@pytest.fixture
def clean_env(monkeypatch):
    # setenv first so each variable is removed again on teardown, even after
    # load() writes it into os.environ from a .env file
    for name in _ENV_NAMES:
        monkeypatch.setenv(name, "unset")
        monkeypatch.delenv(name)
    return monkeypatch


def test_missing_config_uses_defaults(tmp_path, clean_env):
    cfg = cfg_module.load(tmp_path / "nope.toml", tmp_path / "nope.env")
    assert cfg_module.get_database_path(cfg) == Path("data/shows.db")
    assert cfg_module.get_venues(cfg) == {}


def test_env_file_sets_database_path(tmp_path, clean_env):
    env_path = tmp_path / ".env"
    env_path.write_text('# local settings\nSHOWIMPORT_DATABASE_PATH="/tmp/from-env.db"\n')

    cfg = cfg_module.load(tmp_path / "nope.toml", env_path)
    assert cfg_module.get_database_path(cfg) == Path("/tmp/from-env.db")


def test_shell_environment_wins_over_env_file(tmp_path, clean_env):
    clean_env.setenv("SHOWIMPORT_DATABASE_PATH", "/tmp/from-shell.db")
    env_path = tmp_path / ".env"
    env_path.write_text("SHOWIMPORT_DATABASE_PATH=/tmp/from-env.db\n")

    cfg = cfg_module.load(tmp_path / "nope.toml", env_path)
    assert cfg_module.get_database_path(cfg) == Path("/tmp/from-shell.db")
    assert os.environ["SHOWIMPORT_DATABASE_PATH"] == "/tmp/from-shell.db"


def test_env_variables_map_to_section_and_key(tmp_path, clean_env):
    config_path = tmp_path / "config.toml"
    config_path.write_text(
        '[database]\npath = "from-toml.db"\n\n'
        '[venues.mohawk]\nname = "Mohawk"\ncity = "Austin"\nstate = "TX"\n'
    )
    env_path = tmp_path / ".env"
    env_path.write_text("SHOWIMPORT_DATABASE_TIMEOUT=30\nSHOWIMPORT_VENUES_MOHAWK=off\n")

    cfg = cfg_module.load(config_path, env_path)
    assert cfg["database"] == {"path": "from-toml.db", "timeout": "30"}
    assert cfg_module.get_venues(cfg)["mohawk"]["name"] == "Mohawk"
