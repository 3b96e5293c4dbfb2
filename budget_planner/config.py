"""Configuration management for the budget planner.

This module centralizes all configuration values including the storage
location, document defaults, and environment variable overrides.
"""

from __future__ import annotations

import logging
import os
import platform
from pathlib import Path
from typing import Any, Dict, Optional, Union

APP_DIR_NAME = "budget_planner"

# Environment overrides
DATA_PATH_ENV = "BUDGET_PLANNER_DATA_PATH"
LOG_LEVEL_ENV = "BUDGET_PLANNER_LOG_LEVEL"

# Project-relative hidden directory, used when present in the working directory
LOCAL_DIR_NAME = f".{APP_DIR_NAME}"

DATA_FILENAME = "data.json"
BACKUPS_DIRNAME = "backups"

DEFAULT_CONFIG: Dict[str, Any] = {
    "currency": "USD",
    "dateFormat": "yyyy-MM-dd",
    "defaultCategories": True,
    "version": "1.0.0",
}

DEFAULT_ALERT_THRESHOLD = 0.8
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def platform_data_dir() -> Path:
    """Return the OS-convention application data directory."""
    home = Path.home()
    system = platform.system()
    if system == "Windows":
        base = os.getenv("APPDATA") or str(home / "AppData" / "Roaming")
        return Path(base) / APP_DIR_NAME
    if system == "Darwin":
        return home / "Library" / "Application Support" / APP_DIR_NAME
    xdg_data = os.getenv("XDG_DATA_HOME") or str(home / ".local" / "share")
    return Path(xdg_data) / APP_DIR_NAME


def resolve_storage_path(custom_path: Optional[Union[str, Path]] = None) -> Path:
    """Resolve the data directory.

    Priority: explicit path > environment variable > local hidden
    directory (if it exists) > platform default.
    """
    if custom_path:
        return Path(custom_path)

    env_path = os.getenv(DATA_PATH_ENV)
    if env_path:
        return Path(env_path)

    local_dir = Path.cwd() / LOCAL_DIR_NAME
    if local_dir.exists():
        return local_dir

    return platform_data_dir()


def ensure_data_directories(data_path: Path) -> None:
    """Create the data directory and its backups folder if they don't exist."""
    for directory in [data_path, data_path / BACKUPS_DIRNAME]:
        directory.mkdir(parents=True, exist_ok=True)


def default_config() -> Dict[str, Any]:
    return dict(DEFAULT_CONFIG)


def setup_logging(level: Optional[str] = None) -> None:
    """Configure a stream handler for the package logger.

    The level falls back to ``BUDGET_PLANNER_LOG_LEVEL`` and then WARNING.
    """
    resolved = (level or os.getenv(LOG_LEVEL_ENV, "WARNING")).upper()
    logger = logging.getLogger(APP_DIR_NAME)
    logger.setLevel(resolved)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
