"""Per-user timer settings, created lazily with defaults."""

from __future__ import annotations

import logging

from pomoplan.db import Database
from pomoplan.models import SettingsUpdate, UserSettings

log = logging.getLogger(__name__)


def get_or_create_settings(db: Database, user_id: str) -> UserSettings:
    """Return the user's settings, inserting the defaults on first access."""
    settings = db.get_settings(user_id)
    if settings is not None:
        return settings
    log.info("Creating default settings for %s", user_id)
    return db.create_settings(UserSettings(user_id=user_id))


def update_settings(db: Database, user_id: str, update: SettingsUpdate) -> UserSettings:
    """Apply *update* to the user's settings and return the stored row."""
    get_or_create_settings(db, user_id)
    updated = db.update_settings(user_id, update)
    if updated is None:  # pragma: no cover - row was just ensured
        raise LookupError(f"No settings for {user_id}")
    return updated
