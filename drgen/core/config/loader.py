"""
Configuration loader — reads drgen.yml into a ``Settings`` model.

The file is optional. When present it supplies defaults for the CLI;
explicit command-line options always win.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError

logger = logging.getLogger(__name__)

CONFIG_FILE = "drgen.yml"


class ConfigError(Exception):
    """Raised when drgen.yml is unreadable or invalid."""


class Settings(BaseModel):
    """Project-level defaults."""

    in_dir: str = "in"
    out_dir: str = "out"
    max_decision_len: int = Field(default=80, ge=2)
    include_date: bool = True


def find_config_file(start_dir: Path | None = None) -> Path | None:
    """Search for drgen.yml starting from ``start_dir`` (default cwd), walking up."""
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        candidate = current / CONFIG_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break
        current = parent

    return None


def load_settings(path: Path | None = None) -> Settings:
    """Load settings from ``path``, or from the nearest drgen.yml.

    Returns defaults when no file is found and ``path`` is None.

    Raises:
        ConfigError: If an explicit path is missing or any file is invalid.
    """
    if path is None:
        path = find_config_file()
        if path is None:
            logger.debug("No %s found, using defaults", CONFIG_FILE)
            return Settings()
    elif not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    try:
        settings = Settings.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in {path}: {e}") from e

    logger.info("Loaded settings from %s", path)
    return settings
