"""Application configuration management."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import ValidationError

from pomoplan.models import AppConfig

log = logging.getLogger(__name__)

_CONFIG_DIR = Path.home() / ".config" / "pomoplan"
_DB_DIR = Path.home() / ".local" / "share" / "pomoplan"

_CONFIG_FILE = _CONFIG_DIR / "config.json"


def load_config() -> AppConfig:
    """Load config from disk, returning defaults if none exists."""
    if _CONFIG_FILE.exists():
        try:
            data = json.loads(_CONFIG_FILE.read_text())
            return AppConfig(**data)
        except (json.JSONDecodeError, TypeError, ValidationError):
            log.warning("Ignoring unreadable config file %s", _CONFIG_FILE)
    return AppConfig()


def save_config(config: AppConfig) -> Path:
    """Write config to disk. Returns the config file path."""
    _CONFIG_DIR.mkdir(parents=True, exist_ok=True)
    _CONFIG_FILE.write_text(config.model_dump_json(indent=2))
    return _CONFIG_FILE


def get_db_path() -> Path:
    """Resolve the database path from config (or default)."""
    config = load_config()
    if config.db_path is not None:
        p = Path(config.db_path)
        p.parent.mkdir(parents=True, exist_ok=True)
        return p
    _DB_DIR.mkdir(parents=True, exist_ok=True)
    return _DB_DIR / "pomoplan.db"


def set_db_path(path: str) -> AppConfig:
    """Set a custom database path and save config."""
    resolved = Path(path).expanduser().resolve()
    if resolved.is_dir():
        resolved = resolved / "pomoplan.db"
    resolved.parent.mkdir(parents=True, exist_ok=True)
    config = load_config()
    config.db_path = str(resolved)
    save_config(config)
    return config


def reset_db_path() -> AppConfig:
    """Reset to the default local database path."""
    config = load_config()
    config.db_path = None
    save_config(config)
    return config


def set_log_level(level: str) -> AppConfig:
    """Persist the logging level used by the CLI."""
    name = level.upper()
    if not isinstance(logging.getLevelName(name), int):
        raise ValueError(f"Unknown log level: {level}")
    config = load_config()
    config.log_level = name
    save_config(config)
    return config
