"""
Root-level shared test fixtures.

Keeps every test away from the user's real ~/.sentinel directory.
"""

from __future__ import annotations

import pytest

from sentinel.config import reset_config

SENTINEL_ENV = [
    "SENTINEL_HOME",
    "SENTINEL_STORE_FILE",
    "SENTINEL_OBSERVER_FILE",
    "SENTINEL_BACKUP_DIR",
    "SENTINEL_TICK_SECONDS",
    "SENTINEL_PASTE_WINDOW",
    "SENTINEL_TOTP_PERIOD",
    "SENTINEL_LOG_LEVEL",
]


@pytest.fixture
def clean_env(monkeypatch):
    """Remove Sentinel env vars that leak between tests."""
    for key in SENTINEL_ENV:
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def sentinel_home(tmp_path, monkeypatch, clean_env):
    """Point the config singleton at a temp directory."""
    home = tmp_path / "sentinel"
    monkeypatch.setenv("SENTINEL_HOME", str(home))
    reset_config()
    yield home
    reset_config()
