"""
Exception hierarchy for Tiergate.

All custom exceptions inherit from TiergateError base class.
"""

from typing import Any, Dict, Optional


class TiergateError(Exception):
    """Base exception for all Tiergate errors."""
    pass


# Verification Errors
class VerificationError(TiergateError):
    """
    Base exception for license verification failures.

    Each subclass carries a stable ``code`` so callers can branch on the
    specific failure kind (for example to tell "expired" from "corrupt").
    """

    code = "verification_failed"


class InvalidFormatError(VerificationError):
    """Raised when a license key, envelope, or payload is malformed or has an unsupported version."""

    code = "invalid_format"


class InvalidSignatureError(VerificationError):
    """Raised when the Ed25519 signature does not match the payload."""

    code = "invalid_signature"


class NotYetValidError(VerificationError):
    """Raised when the current time precedes the license issue time."""

    code = "not_yet_valid"

    def __init__(self, message: str, license_id: Optional[str] = None):
        self.license_id = license_id
        super().__init__(message)


class LicenseExpiredError(VerificationError):
    """Raised when the current time is at or after the license expiry time."""

    code = "expired"

    def __init__(self, message: str, license_id: Optional[str] = None):
        self.license_id = license_id
        super().__init__(message)


# Issuance Errors
class SigningError(TiergateError):
    """Raised when a license cannot be signed (bad private key, bad input)."""
    pass


# Configuration Errors
class ConfigurationError(TiergateError):
    """Base exception for configuration-related errors."""
    pass


class InvalidConfigurationError(ConfigurationError):
    """Raised when configuration is invalid or malformed."""
    pass


class InvalidPublicKeyError(ConfigurationError):
    """Raised when the verification public key cannot be loaded."""
    pass


class LicenseRequiredError(ConfigurationError):
    """Raised at startup when a valid license is required but none could be loaded."""
    pass


# Entitlement Errors
class EntitlementError(TiergateError):
    """
    Base exception for entitlement gate misses.

    These map to an "upgrade required" outcome (HTTP 402), never to a plain
    authorization failure.
    """

    code = "entitlement_required"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert exception to dictionary format for API responses.

        Returns:
            Dictionary with error code, message, and details
        """
        return {
            "code": self.code,
            "message": self.message,
            "details": dict(self.details),
        }


class EntitlementRequiredError(EntitlementError):
    """
    Raised when the current license does not include a feature or tier.

    Example:
        >>> raise EntitlementRequiredError(
        ...     "Feature 'saml' requires the enterprise plan",
        ...     feature="saml",
        ...     required_tier="enterprise",
        ...     current_tier="pro",
        ... )
    """

    code = "entitlement_required"

    def __init__(
        self,
        message: str,
        feature: Optional[str] = None,
        required_tier: Optional[str] = None,
        current_tier: Optional[str] = None,
    ):
        self.feature = feature
        self.required_tier = required_tier
        self.current_tier = current_tier
        details: Dict[str, Any] = {}
        if feature is not None:
            details["feature"] = feature
        if required_tier is not None:
            details["required_tier"] = required_tier
        if current_tier is not None:
            details["current_tier"] = current_tier
        super().__init__(message, details)


class LimitExceededError(EntitlementError):
    """Raised when current usage has reached a license limit."""

    code = "limit_exceeded"

    def __init__(self, limit_name: str, current: int, limit: Optional[int]):
        self.limit_name = limit_name
        self.current = current
        self.limit = limit
        super().__init__(
            "usage limit reached",
            {"limit_type": limit_name, "current": current, "limit": limit},
        )
