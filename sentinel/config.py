"""
Centralized configuration for Sentinel.

All configuration is loaded from environment variables with sensible defaults.

Usage:
    from sentinel.config import get_config
    cfg = get_config()
    print(cfg.home)              # "~/.sentinel" or $SENTINEL_HOME
    print(cfg.store_file)        # "~/.sentinel/identities.json"
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

DEFAULT_HOME = Path.home() / ".sentinel"


@dataclass(frozen=True)
class TimingConfig:
    """Clock-driven behaviour: code ticker, paste highlight, TOTP window."""

    tick_seconds: float = 1.0
    paste_window: float = 1.5
    totp_period: int = 30


@dataclass(frozen=True)
class Config:
    """Top-level Sentinel configuration."""

    home: Path = DEFAULT_HOME
    store_file: Path = field(default_factory=lambda: DEFAULT_HOME / "identities.json")
    observer_file: Path = field(default_factory=lambda: DEFAULT_HOME / "observer.json")
    backup_dir: Path = field(default_factory=lambda: DEFAULT_HOME / "backups")

    timing: TimingConfig = field(default_factory=TimingConfig)

    log_level: str = "WARNING"


# Singleton
_config: Config | None = None


def get_config() -> Config:
    """Get or create the singleton config from environment variables."""
    global _config
    if _config is not None:
        return _config
    _config = _load_from_env()
    return _config


def _load_from_env() -> Config:
    """Load configuration from environment variables."""
    home = Path(os.environ.get("SENTINEL_HOME", DEFAULT_HOME)).expanduser()

    timing = TimingConfig(
        tick_seconds=float(os.environ.get("SENTINEL_TICK_SECONDS", "1.0")),
        paste_window=float(os.environ.get("SENTINEL_PASTE_WINDOW", "1.5")),
        totp_period=int(os.environ.get("SENTINEL_TOTP_PERIOD", "30")),
    )

    return Config(
        home=home,
        store_file=Path(os.environ.get("SENTINEL_STORE_FILE", home / "identities.json")),
        observer_file=Path(os.environ.get("SENTINEL_OBSERVER_FILE", home / "observer.json")),
        backup_dir=Path(os.environ.get("SENTINEL_BACKUP_DIR", home / "backups")),
        timing=timing,
        log_level=os.environ.get("SENTINEL_LOG_LEVEL", "WARNING").upper(),
    )


def reset_config() -> None:
    """Reset the singleton config (for testing)."""
    global _config
    _config = None
