"""
Configuration loader — reads reposync.yml into the SyncConfig model.

This is the primary entry point for loading configuration. It reads
YAML, validates against Pydantic schemas, and returns typed domain
objects.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

import yaml
from pydantic import ValidationError

from reposync.core.models.config import SyncConfig

logger = logging.getLogger(__name__)

# Default config filename
CONFIG_FILE = "reposync.yml"
CONFIG_ENV_VAR = "REPOSYNC_CONFIG"


class ConfigError(Exception):
    """Raised when configuration is invalid or missing."""


def user_config_path() -> Path:
    """Per-user configuration location (~/.config/reposync/config.yml)."""
    base = os.environ.get("XDG_CONFIG_HOME") or str(Path.home() / ".config")
    return Path(base) / "reposync" / "config.yml"


def find_config_file(start_dir: Path | None = None) -> Path | None:
    """Locate the configuration file.

    Search order: $REPOSYNC_CONFIG, ./reposync.yml, then the per-user
    config file.

    Args:
        start_dir: Directory to look in for reposync.yml (default: cwd).

    Returns:
        Path to the config file, or None if not found.
    """
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path).expanduser()

    candidate = (start_dir or Path.cwd()) / CONFIG_FILE
    if candidate.is_file():
        return candidate

    user_path = user_config_path()
    if user_path.is_file():
        return user_path

    return None


def load_config(path: Path | None = None) -> SyncConfig:
    """Load and validate configuration.

    Args:
        path: Explicit path to the config file. If None, searches.

    Returns:
        Validated SyncConfig model.

    Raises:
        ConfigError: If the file is missing or invalid.
    """
    if path is None:
        path = find_config_file()

    if path is None:
        raise ConfigError(
            f"No {CONFIG_FILE} found. Create {user_config_path()} "
            f"or specify --config / ${CONFIG_ENV_VAR}."
        )

    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    logger.debug("Loading config from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    # The YAML may wrap everything under a "reposync" key or be flat
    if isinstance(data.get("reposync"), dict):
        data = data["reposync"]

    try:
        config = SyncConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in {path}: {e}") from e

    logger.debug("Loaded config for package '%s'", config.target.package)
    return config
