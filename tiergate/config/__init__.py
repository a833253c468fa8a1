"""
Configuration management for Tiergate.

Handles loading and validation of configuration files.
"""

from tiergate.config.settings import (
    LICENSE_KEY_ENV_VAR,
    LicenseConfig,
    LoggingConfig,
    TiergateConfig,
    get_default_config,
    get_default_config_path,
    load_config,
)

__all__ = [
    "LICENSE_KEY_ENV_VAR",
    "LicenseConfig",
    "LoggingConfig",
    "TiergateConfig",
    "get_default_config",
    "get_default_config_path",
    "load_config",
]
