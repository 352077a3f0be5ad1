"""
Configuration loader — reads devsetup.yml into a ProvisionConfig.

The config file is optional: without one, the built-in defaults
provision the standard project. When present, it is validated
against the pydantic schema and any problem raises ConfigError.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml

from devsetup.core.models.config import ProvisionConfig

logger = logging.getLogger(__name__)

# Default config filename, looked up in the target directory
CONFIG_FILE = "devsetup.yml"


class ConfigError(Exception):
    """Raised when provisioning configuration is invalid or missing."""


def find_config_file(target: Path | None = None) -> Path | None:
    """Return ``<target>/devsetup.yml`` if it exists.

    Args:
        target: Target project directory (default: cwd).
    """
    candidate = (target or Path.cwd()).resolve() / CONFIG_FILE
    return candidate if candidate.is_file() else None


def load_config(path: Path | None = None, target: Path | None = None) -> ProvisionConfig:
    """Load and validate provisioning configuration.

    Args:
        path: Explicit config file. Must exist when given.
        target: Target directory searched when ``path`` is None.

    Returns:
        Validated ProvisionConfig (defaults when no file is found).

    Raises:
        ConfigError: If an explicit file is missing, or any file is invalid.
    """
    if path is None:
        path = find_config_file(target)
        if path is None:
            logger.debug("No %s found — using built-in defaults", CONFIG_FILE)
            return ProvisionConfig()
    elif not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    logger.debug("Loading provisioning config from %s", path)

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
        config = ProvisionConfig.model_validate(data)
    except Exception as e:
        raise ConfigError(f"Invalid provisioning configuration: {e}") from e

    logger.info(
        "Loaded config from %s: %d dependencies, %d dev dependencies",
        path,
        len(config.dependencies),
        len(config.dev_dependencies),
    )
    return config


def dump_config(config: ProvisionConfig) -> str:
    """Render a config as YAML (the effective config for ``config show``)."""
    data = config.model_dump(mode="json")
    return yaml.safe_dump(data, sort_keys=False, default_flow_style=False)
