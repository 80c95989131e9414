from __future__ import annotations

import os
from pathlib import Path

APP_ENV_HOME = "FOCUSDAY_HOME"
APP_ENV_DB = "FOCUSDAY_DB"


def project_root() -> Path:
    """
    Repository/project root directory.
    Contains focusday/, api/, cli/, config/.
    """
    return Path(__file__).parent.parent.resolve()


def app_home() -> Path:
    """
    User-writable home for focusday.
    Override with FOCUSDAY_HOME.
    """
    if os.environ.get(APP_ENV_HOME):
        return Path(os.environ[APP_ENV_HOME]).expanduser().resolve()
    return (Path.home() / ".focusday").resolve()


def config_dir() -> Path:
    d = app_home() / "config"
    d.mkdir(parents=True, exist_ok=True)
    return d


def data_dir() -> Path:
    d = app_home() / "data"
    d.mkdir(parents=True, exist_ok=True)
    return d


def log_dir() -> Path:
    d = app_home() / "logs"
    d.mkdir(parents=True, exist_ok=True)
    return d


def db_path() -> Path:
    """
    Canonical DB path for focusday.

    Resolution order:
    1. FOCUSDAY_DB env var (explicit override)
    2. ~/.focusday/data/focusday.db (default)
    """
    if os.environ.get(APP_ENV_DB):
        return Path(os.environ[APP_ENV_DB]).expanduser().resolve()
    return data_dir() / "focusday.db"
