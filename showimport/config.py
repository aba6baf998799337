import os
import tomllib
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

_DEFAULT_CONFIG_PATH = Path("config.toml")
_DEFAULT_ENV_PATH = Path(".env")

ENV_PREFIX = "SHOWIMPORT_"


def load(path: Path = _DEFAULT_CONFIG_PATH, env_path: Path = _DEFAULT_ENV_PATH) -> dict[str, Any]:
    """
    Load config.toml (if present), then overlay SHOWIMPORT_* variables.

    Variables come from the shell and from `env_path`. A variable already set
    in the shell is never replaced by the .env file. Each variable names a
    section and a key, split at the first underscore after the prefix:

      SHOWIMPORT_DATABASE_PATH  -> cfg["database"]["path"]
    """
    cfg: dict[str, Any] = {}
    if path.exists():
        with open(path, "rb") as f:
            cfg = tomllib.load(f)

    if env_path.exists():
        load_dotenv(env_path, override=False)
    _apply_env_vars(cfg, os.environ)
    return cfg


def _apply_env_vars(cfg: dict, environ) -> None:
    for name, value in environ.items():
        if not name.startswith(ENV_PREFIX):
            continue
        section, _, key = name[len(ENV_PREFIX):].lower().partition("_")
        if not section or not key:
            continue
        table = cfg.setdefault(section, {})
        # [venues.*] and similar tables of tables are only set from the TOML file
        if not isinstance(table, dict) or isinstance(table.get(key), dict):
            continue
        table[key] = value


def get_database_path(cfg: dict) -> Path:
    return Path(cfg.get("database", {}).get("path", "data/shows.db"))


def get_venues(cfg: dict) -> dict[str, dict]:
    """Return the venues section, filtering to only enabled venues."""
    venues = cfg.get("venues", {})
    return {key: v for key, v in venues.items() if isinstance(v, dict) and v.get("enabled", True)}
