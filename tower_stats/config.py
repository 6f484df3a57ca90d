"""
Configuration management for Tower Stats.

Resolves where runs are stored and how strictly reports are parsed.
Settings come from an optional YAML file, with the database path
overridable from the environment.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

from .core.report_parser import MIN_MATCHED_FIELDS

logger = logging.getLogger(__name__)

APP_DIR_NAME = "tower-stats"
DB_ENV_VAR = "TOWER_STATS_DB"


def get_config_dir() -> Path:
    """Get the configuration directory, creating it if needed."""
    # Use XDG_CONFIG_HOME if set, otherwise ~/.config
    config_home = os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config")
    config_dir = Path(config_home) / APP_DIR_NAME
    config_dir.mkdir(parents=True, exist_ok=True)
    return config_dir


def get_config_path() -> Path:
    """Get the path to the config file."""
    return get_config_dir() / "config.yaml"


def get_data_dir() -> Path:
    """Get the data directory, creating it if needed."""
    data_home = os.environ.get("XDG_DATA_HOME", Path.home() / ".local" / "share")
    data_dir = Path(data_home) / APP_DIR_NAME
    data_dir.mkdir(parents=True, exist_ok=True)
    return data_dir


def default_db_path() -> Path:
    return get_data_dir() / "tower_stats.db"


@dataclass
class Settings:
    """Resolved application settings.

    With no arguments, stores runs in the default data directory and
    requires three matched fields before text counts as a report.
    """
    db_path: Path = field(default_factory=default_db_path)
    min_matched_fields: int = MIN_MATCHED_FIELDS
    log_level: str = "WARNING"


def load_config(path: Optional[Path] = None) -> dict:
    """Load configuration from disk."""
    config_path = path or get_config_path()
    if config_path.exists():
        try:
            with open(config_path) as f:
                data = yaml.safe_load(f)
        except (yaml.YAMLError, IOError) as e:
            logger.warning("Could not read %s (%s); using defaults", config_path, e)
            return {}
        if isinstance(data, dict):
            return data
        logger.warning("%s is not a YAML mapping; using defaults", config_path)
    return {}


def load_settings(path: Optional[Path] = None) -> Settings:
    """
    Resolve settings.

    Priority for the database path:
    1. TOWER_STATS_DB environment variable
    2. db_path in the config file
    3. Default data directory
    """
    config = load_config(path)
    settings = Settings()

    if config.get("db_path"):
        settings.db_path = Path(config["db_path"]).expanduser()
    env_db = os.environ.get(DB_ENV_VAR)
    if env_db:
        settings.db_path = Path(env_db).expanduser()

    min_fields = config.get("min_matched_fields")
    if isinstance(min_fields, int) and min_fields > 0:
        settings.min_matched_fields = min_fields

    log_level = config.get("log_level")
    if isinstance(log_level, str) and log_level.strip():
        settings.log_level = log_level.strip().upper()

    return settings
