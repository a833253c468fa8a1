"""
Structured logging for Tiergate.

structlog is layered over the stdlib logging module: JSON lines in
production, coloured console output for development. A correlation ID bound
through structlog's context variables is merged into every event, so one
revalidation pass or one request can be followed across modules.

License events carry identifiers, tier and failure codes only. Customer
name, email and metadata from a License never reach the logs.
"""

import logging
import sys
import uuid
from pathlib import Path
from typing import Any, Optional

import structlog

CORRELATION_ID_KEY = "correlation_id"


def set_correlation_id(correlation_id: Optional[str] = None) -> str:
    """
    Bind a correlation ID to the current context, generating one if needed.

    Returns:
        The bound correlation ID
    """
    correlation_id = correlation_id or uuid.uuid4().hex
    structlog.contextvars.bind_contextvars(**{CORRELATION_ID_KEY: correlation_id})
    return correlation_id


def get_correlation_id() -> Optional[str]:
    return structlog.contextvars.get_contextvars().get(CORRELATION_ID_KEY)


def clear_correlation_id() -> None:
    structlog.contextvars.unbind_contextvars(CORRELATION_ID_KEY)


def _build_handler(log_file: Optional[Path], level: int) -> logging.Handler:
    if log_file is None:
        handler: logging.Handler = logging.StreamHandler(sys.stderr)
    else:
        log_file = Path(log_file).expanduser()
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(log_file, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("%(message)s"))
    return handler


def setup_logging(
    level: str = "INFO",
    log_file: Optional[Path] = None,
    json_format: bool = True,
) -> None:
    """
    Configure structlog and the root stdlib logger.

    Calling it again replaces the previous configuration.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_file: Write to this file instead of stderr.
        json_format: JSON lines when True, console rendering otherwise.
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    root.addHandler(_build_handler(log_file, numeric_level))
    root.setLevel(numeric_level)

    renderer = (
        structlog.processors.JSONRenderer()
        if json_format
        else structlog.dev.ConsoleRenderer(colors=True)
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Return a logger named ``tiergate.<name>``."""
    return structlog.get_logger(f"tiergate.{name}")


# License event helpers

def log_license_loaded(
    logger: structlog.stdlib.BoundLogger,
    license_id: str,
    tier: str,
    **kwargs: Any,
) -> None:
    logger.info(
        "license_loaded",
        event_type="license_loaded",
        license_id=license_id,
        tier=tier,
        **kwargs,
    )


def log_license_verification_failure(
    logger: structlog.stdlib.BoundLogger,
    error_code: str,
    license_id: Optional[str] = None,
    **kwargs: Any,
) -> None:
    """
    Log a rejected license key.

    Args:
        logger: Logger instance
        error_code: Failure kind ("invalid_format", "invalid_signature",
            "not_yet_valid", "expired")
        license_id: License ID, when the failure happened after the payload
            was parsed
        **kwargs: Additional context to log
    """
    if license_id is not None:
        kwargs["license_id"] = license_id
    logger.warning(
        "license_verification_failure",
        event_type="license_verification_failure",
        error_code=error_code,
        **kwargs,
    )


def log_license_demoted(
    logger: structlog.stdlib.BoundLogger,
    license_id: str,
    previous_tier: str,
    tier: str,
    reason: str,
    **kwargs: Any,
) -> None:
    """
    Log a fall back to the community edition after a failed revalidation.

    Args:
        logger: Logger instance
        license_id: License that stopped verifying
        previous_tier: Tier held before the demotion
        tier: Tier now in effect
        reason: Failure code that caused the demotion
        **kwargs: Additional context to log
    """
    logger.warning(
        "license_demoted",
        event_type="license_demoted",
        license_id=license_id,
        previous_tier=previous_tier,
        tier=tier,
        reason=reason,
        **kwargs,
    )
