"""
Settings for bundlefs.

Defaults can be changed per user with a YAML file in the platformdirs config
directory and per process with environment variables. Explicit arguments to
the extraction functions always win over both.
"""

import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional

import platformdirs
import yaml

from bundlefs.constants import (
    APP_NAME,
    BASE_DIR_ENV_VAR,
    CONFIG_FILE_NAME,
    DEFAULT_NAME_PREFIX,
    LOG_DIR_ENV_VAR,
    LOG_LEVEL_ENV_VAR,
    NAME_PREFIX_ENV_VAR,
)
from bundlefs.exceptions import ConfigFileError, ConfigurationError
from bundlefs.log_utils import add_file_logging, logger, set_log_level

_ENV_OVERRIDES = {
    "name_prefix": NAME_PREFIX_ENV_VAR,
    "base_dir": BASE_DIR_ENV_VAR,
    "log_level": LOG_LEVEL_ENV_VAR,
    "log_dir": LOG_DIR_ENV_VAR,
}

_settings: Optional["Settings"] = None


@dataclass(frozen=True)
class Settings:
    """Resolved bundlefs settings."""

    name_prefix: str = DEFAULT_NAME_PREFIX
    """Prefix for temporary destination names"""

    base_dir: str = ""
    """Directory temporary destinations are created in; empty means the cwd"""

    log_level: str = "INFO"
    """Level name applied to the bundlefs logger"""

    log_dir: Optional[str] = None
    """Directory for the rotating log file; None disables file logging"""


def get_config_file() -> Path:
    """Return the default configuration file path in the user config directory."""
    return Path(platformdirs.user_config_dir(APP_NAME)) / CONFIG_FILE_NAME


def _read_config_file(config_file: Path) -> Dict[str, Any]:
    """
    Parse the YAML configuration file.

    Returns an empty mapping when the file does not exist or is empty.

    Raises:
        ConfigFileError: If the file cannot be read, is not valid YAML, or its
            top level is not a mapping.
    """
    if not config_file.exists():
        return {}

    try:
        with open(config_file, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigFileError(
            f"Could not read configuration file {config_file}", details=str(e)
        ) from e
    except yaml.YAMLError as e:
        raise ConfigFileError(
            f"Invalid YAML in configuration file {config_file}", details=str(e)
        ) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigFileError(
            f"Configuration file {config_file} must contain a mapping",
            details=f"got {type(data).__name__}",
        )
    return data


def load_settings(config_file: Optional[Path] = None) -> Settings:
    """
    Build Settings from defaults, the YAML config file and the environment.

    Parameters:
        config_file (Optional[Path]): Explicit config file; defaults to
            `bundlefs.yaml` in the platformdirs user config directory.

    Returns:
        Settings: The resolved settings.

    Raises:
        ConfigFileError: If the config file exists but cannot be parsed.
        ConfigurationError: If a configured value has the wrong type.
    """
    path = Path(config_file) if config_file else get_config_file()
    raw = _read_config_file(path)

    known = {f.name for f in fields(Settings)}
    values: Dict[str, Any] = {}
    for key, value in raw.items():
        name = str(key).lower()
        if name not in known:
            logger.warning("Ignoring unknown configuration key %r in %s", key, path)
            continue
        if value is not None and not isinstance(value, str):
            raise ConfigurationError(
                f"Configuration key {key!r} must be a string",
                details=f"got {type(value).__name__}",
            )
        values[name] = value

    for name, env_var in _ENV_OVERRIDES.items():
        env_value = os.environ.get(env_var)
        if env_value is not None:
            values[name] = env_value

    if values.get("name_prefix") is None:
        values.pop("name_prefix", None)
    if values.get("base_dir") is None:
        values.pop("base_dir", None)
    if not values.get("log_level"):
        values.pop("log_level", None)
    if not values.get("log_dir"):
        values["log_dir"] = None

    settings = replace(Settings(), **values)
    logger.debug("Loaded settings %s", settings)
    return settings


def get_settings() -> Settings:
    """Return the process-wide settings, loading them on first use."""
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings


def reset_settings() -> None:
    """Forget cached settings so the next get_settings() reloads them."""
    global _settings
    _settings = None


def apply_logging_settings(settings: Settings) -> None:
    """Apply the log level and optional file logging from settings."""
    set_log_level(settings.log_level)
    if settings.log_dir:
        add_file_logging(Path(settings.log_dir), settings.log_level)
