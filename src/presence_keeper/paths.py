"""Helpers for locating application directories."""

from __future__ import annotations

from pathlib import Path

from platformdirs import PlatformDirs


APP_NAME = "PresenceKeeper"
APP_AUTHOR = "PresenceKeeper"


def get_data_dir() -> Path:
    """Return the base directory for logs and transcripts."""
    dirs = PlatformDirs(appname=APP_NAME, appauthor=APP_AUTHOR, roaming=True)
    path = Path(dirs.user_log_path)
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_log_path() -> Path:
    return get_data_dir() / "presence-keeper.log"
