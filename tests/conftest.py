"""Shared fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

from pomoplan.db import Database


@pytest.fixture()
def database(tmp_path: Path):
    """Provide a fresh database file for each test."""
    db = Database.connect(tmp_path / "test.db")
    yield db
    db.close()
