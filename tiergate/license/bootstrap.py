"""
Copyright (C) 2026 Garudex Labs.  All Rights Reserved.
Tiergate, a product of Garudex Labs

Startup wiring for the license manager.

Applies the startup policy: load the configured key, then either fall back
to the community edition or abort, depending on ``require_valid``.
"""

from pathlib import Path
from typing import Optional

from tiergate.config.settings import LicenseConfig, TiergateConfig
from tiergate.exceptions import InvalidConfigurationError, LicenseRequiredError, VerificationError
from tiergate.license.manager import Clock, LicenseManager
from tiergate.license.verifier import LicenseVerifier
from tiergate.logging_config import get_logger

logger = get_logger(__name__)


def resolve_license_key(config: LicenseConfig) -> Optional[str]:
    """
    Return the configured license key, reading ``key_file`` if set.

    Raises:
        InvalidConfigurationError: If ``key_file`` cannot be read
    """
    if config.key:
        return config.key.strip()
    if config.key_file:
        path = Path(config.key_file).expanduser()
        try:
            key = path.read_text().strip()
        except OSError as e:
            raise InvalidConfigurationError(f"Failed to read license key file '{path}': {e}") from e
        return key or None
    return None


def init_license_manager(
    config: TiergateConfig,
    verifier: Optional[LicenseVerifier] = None,
    clock: Optional[Clock] = None,
) -> LicenseManager:
    """
    Build a LicenseManager and load the configured license.

    Without a key, or when the key fails to verify and ``require_valid`` is
    off, the manager runs as the community edition. Periodic revalidation
    starts only after a successful load and a positive check interval.

    Args:
        config: Loaded configuration
        verifier: Verifier to use (defaults to the embedded public key)
        clock: Clock for the manager (defaults to UTC now)

    Returns:
        The initialized LicenseManager

    Raises:
        LicenseRequiredError: If ``require_valid`` is set and no valid
            license could be loaded
        InvalidConfigurationError: If the key file cannot be read
    """
    manager = LicenseManager(verifier=verifier, clock=clock)
    license_config = config.license

    key = resolve_license_key(license_config)
    if key is None:
        if license_config.require_valid:
            raise LicenseRequiredError("A valid license key is required but none is configured")
        logger.info("No license key configured, running as community edition")
        manager.set_community_edition()
        return manager

    try:
        license = manager.load_license(key)
    except VerificationError as e:
        if license_config.require_valid:
            raise LicenseRequiredError(f"A valid license key is required: {e.code}: {e}") from e
        logger.warning(f"Failed to load license key, running as community edition: {e.code}")
        manager.set_community_edition()
        return manager

    logger.info(f"License loaded, tier={license.tier.value}")

    if license_config.check_interval_seconds > 0:
        manager.start_periodic_revalidation(key, license_config.check_interval_seconds)

    return manager
