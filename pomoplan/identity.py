"""Who is using the app. Every read and write is scoped to this user."""

from __future__ import annotations

import logging
from typing import Optional

from pomoplan import config as cfg

log = logging.getLogger(__name__)


class Identity:
    """Local stand-in for the identity provider, backed by the config file."""

    def get_current_user(self) -> Optional[str]:
        return cfg.load_config().user

    def sign_in(self, name: str) -> str:
        """Remember *name* as the current user and return it."""
        name = name.strip()
        if not name:
            raise ValueError("User name must not be empty.")
        config = cfg.load_config()
        config.user = name
        cfg.save_config(config)
        log.info("Signed in as %s", name)
        return name

    def sign_out(self) -> None:
        config = cfg.load_config()
        config.user = None
        cfg.save_config(config)
        log.info("Signed out")
