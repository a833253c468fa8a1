"""
Configuration management for Tiergate.

Loads YAML configuration from file with sensible defaults and validation.
Supports environment variable substitution using ${ENV_VAR} syntax.
"""

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from tiergate.exceptions import InvalidConfigurationError
from tiergate.logging_config import get_logger

logger = get_logger(__name__)


LICENSE_KEY_ENV_VAR = "TIERGATE_LICENSE_KEY"

VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
VALID_LOG_FORMATS = ["json", "console"]


_ENV_REF = re.compile(r"\$\{(?P<name>[^}:]+)(?::(?P<default>[^}]*))?\}")


def _expand_env_vars(value: Any) -> Any:
    """
    Substitute ``${VAR}`` and ``${VAR:default}`` references.

    Strings are expanded in place; mappings and lists are walked
    recursively; anything else is returned as is. An unset variable with no
    default expands to an empty string.
    """
    if isinstance(value, str):
        return _ENV_REF.sub(
            lambda m: os.environ.get(m.group("name"), m.group("default") or ""),
            value,
        )
    if isinstance(value, dict):
        return {key: _expand_env_vars(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_expand_env_vars(item) for item in value]
    return value


@dataclass
class LicenseConfig:
    """
    License configuration.

    Attributes:
        key: Distributable license key string
        key_file: Path to a file holding the license key
        check_interval_seconds: Revalidation interval (0 disables it)
        require_valid: Abort startup instead of falling back to community
    """

    key: str = ""
    key_file: str = ""
    check_interval_seconds: int = 3600
    require_valid: bool = False


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "INFO"
    file: str = ""
    format: str = "json"


@dataclass
class TiergateConfig:
    """Main Tiergate configuration."""

    license: LicenseConfig = field(default_factory=LicenseConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def get_default_config_path() -> str:
    """Get the default configuration file path."""
    return os.path.expanduser("~/.tiergate/config.yaml")


def get_default_config() -> TiergateConfig:
    """
    Get default configuration with sensible defaults.

    Returns:
        TiergateConfig: Default configuration object
    """
    config = TiergateConfig()
    _apply_env_overrides(config)
    return config


def _read_yaml(path: Path) -> Any:
    try:
        with path.open("r", encoding="utf-8") as f:
            return yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise InvalidConfigurationError(f"{path} is not valid YAML: {e}") from e
    except OSError as e:
        raise InvalidConfigurationError(f"cannot read {path}: {e}") from e


def load_config(config_path: Optional[str] = None) -> TiergateConfig:
    """
    Load, expand and validate the YAML configuration.

    A missing or empty file yields the defaults (environment overrides
    still apply).

    Args:
        config_path: Configuration file; defaults to ~/.tiergate/config.yaml

    Returns:
        TiergateConfig: The validated configuration

    Raises:
        InvalidConfigurationError: If the file is unreadable, malformed or
            fails validation
    """
    path = Path(config_path or get_default_config_path()).expanduser()

    if not path.exists():
        logger.debug("config_file_missing", path=str(path))
        return get_default_config()

    raw = _read_yaml(path)
    if raw is None:
        logger.debug("config_file_empty", path=str(path))
        return get_default_config()
    if not isinstance(raw, dict):
        raise InvalidConfigurationError(f"{path}: top level must be a mapping")

    try:
        config = _build_config_from_dict(_expand_env_vars(raw))
        _apply_env_overrides(config)
        _validate_config(config)
    except InvalidConfigurationError as e:
        raise InvalidConfigurationError(f"{path}: {e}") from e

    logger.debug("config_loaded", path=str(path))
    return config


def _section(config_data: Dict[str, Any], name: str) -> Dict[str, Any]:
    section = config_data.get(name) or {}
    if not isinstance(section, dict):
        raise InvalidConfigurationError(f"'{name}' section must be a mapping")
    return section


def _as_int(value: Any, name: str) -> int:
    if isinstance(value, bool):
        raise InvalidConfigurationError(f"{name} must be an integer, got {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise InvalidConfigurationError(f"{name} must be an integer, got {value!r}") from e


def _as_bool(value: Any, name: str) -> bool:
    # Env var expansion turns booleans into strings.
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "yes", "1", "on"):
        return True
    if isinstance(value, str) and value.strip().lower() in ("false", "no", "0", "off", ""):
        return False
    raise InvalidConfigurationError(f"{name} must be a boolean, got {value!r}")


def _build_config_from_dict(config_data: Dict[str, Any]) -> TiergateConfig:
    """
    Build TiergateConfig from dictionary loaded from YAML.

    Merges user configuration with defaults.

    Raises:
        InvalidConfigurationError: If a section or value has the wrong type
    """
    defaults = TiergateConfig()

    license_data = _section(config_data, 'license')
    key_file = license_data.get('key_file') or defaults.license.key_file
    license_config = LicenseConfig(
        key=str(license_data.get('key') or defaults.license.key).strip(),
        key_file=os.path.expanduser(str(key_file)) if key_file else "",
        check_interval_seconds=_as_int(
            license_data.get('check_interval_seconds', defaults.license.check_interval_seconds),
            "check_interval_seconds",
        ),
        require_valid=_as_bool(
            license_data.get('require_valid', defaults.license.require_valid),
            "require_valid",
        ),
    )

    logging_data = _section(config_data, 'logging')
    log_file = logging_data.get('file') or defaults.logging.file
    logging_config = LoggingConfig(
        level=str(logging_data.get('level', defaults.logging.level)),
        file=os.path.expanduser(str(log_file)) if log_file else "",
        format=str(logging_data.get('format', defaults.logging.format)),
    )

    return TiergateConfig(license=license_config, logging=logging_config)


def _apply_env_overrides(config: TiergateConfig) -> None:
    """
    Fill the license key from TIERGATE_LICENSE_KEY.

    The environment is only consulted when the file configures neither a
    key nor a key file.
    """
    env_key = os.environ.get(LICENSE_KEY_ENV_VAR, "").strip()
    if env_key and not config.license.key and not config.license.key_file:
        config.license.key = env_key
        logger.debug(f"Using license key from {LICENSE_KEY_ENV_VAR}")


def _validate_config(config: TiergateConfig) -> None:
    """
    Validate configuration values.

    Args:
        config: Configuration to validate

    Raises:
        InvalidConfigurationError: If configuration is invalid
    """
    if config.license.key and config.license.key_file:
        raise InvalidConfigurationError("license key and key_file are mutually exclusive")

    if config.license.check_interval_seconds < 0:
        raise InvalidConfigurationError(
            f"check_interval_seconds must be non-negative, "
            f"got {config.license.check_interval_seconds}"
        )

    if config.logging.level.upper() not in VALID_LOG_LEVELS:
        raise InvalidConfigurationError(
            f"logging level must be one of {VALID_LOG_LEVELS}, "
            f"got '{config.logging.level}'"
        )

    if config.logging.format not in VALID_LOG_FORMATS:
        raise InvalidConfigurationError(
            f"logging format must be one of {VALID_LOG_FORMATS}, "
            f"got '{config.logging.format}'"
        )
