"""
Unit tests for exception hierarchy.
"""

import pytest

from tiergate.exceptions import (
    ConfigurationError,
    EntitlementError,
    EntitlementRequiredError,
    InvalidConfigurationError,
    InvalidFormatError,
    InvalidPublicKeyError,
    InvalidSignatureError,
    LicenseExpiredError,
    LicenseRequiredError,
    LimitExceededError,
    NotYetValidError,
    SigningError,
    TiergateError,
    VerificationError,
)


class TestExceptionHierarchy:
    """Test that exception hierarchy is correctly defined."""

    def test_base_exception(self):
        """Test that TiergateError is the base exception."""
        error = TiergateError("test error")
        assert isinstance(error, Exception)
        assert str(error) == "test error"

    def test_verification_errors_inherit_from_base(self):
        assert issubclass(VerificationError, TiergateError)
        for error in (InvalidFormatError, InvalidSignatureError, NotYetValidError, LicenseExpiredError):
            assert issubclass(error, VerificationError)

    def test_verification_codes_are_distinct(self):
        codes = {
            InvalidFormatError.code,
            InvalidSignatureError.code,
            NotYetValidError.code,
            LicenseExpiredError.code,
        }
        assert codes == {"invalid_format", "invalid_signature", "not_yet_valid", "expired"}

    def test_verification_errors_do_not_overlap(self):
        assert not issubclass(LicenseExpiredError, NotYetValidError)
        assert not issubclass(InvalidSignatureError, InvalidFormatError)

    def test_configuration_errors_inherit_from_base(self):
        assert issubclass(ConfigurationError, TiergateError)
        assert issubclass(InvalidConfigurationError, ConfigurationError)
        assert issubclass(InvalidPublicKeyError, ConfigurationError)
        assert issubclass(LicenseRequiredError, ConfigurationError)

    def test_signing_error_inherits_from_base(self):
        assert issubclass(SigningError, TiergateError)

    def test_expired_error_carries_license_id(self):
        with pytest.raises(VerificationError) as exc_info:
            raise LicenseExpiredError("license expired", license_id="lic_1")
        assert exc_info.value.license_id == "lic_1"
        assert exc_info.value.code == "expired"


class TestEntitlementErrors:
    """Test entitlement error payloads."""

    def test_entitlement_required_to_dict(self):
        error = EntitlementRequiredError(
            "Feature 'saml' requires the enterprise plan",
            feature="saml",
            required_tier="enterprise",
        )
        assert isinstance(error, EntitlementError)
        assert error.to_dict() == {
            "code": "entitlement_required",
            "message": "Feature 'saml' requires the enterprise plan",
            "details": {"feature": "saml", "required_tier": "enterprise"},
        }

    def test_tier_gate_details(self):
        error = EntitlementRequiredError("too low", required_tier="business", current_tier="pro")
        assert error.to_dict()["details"] == {"required_tier": "business", "current_tier": "pro"}

    def test_limit_exceeded_to_dict(self):
        error = LimitExceededError("max_users", 5, 5)
        assert error.to_dict() == {
            "code": "limit_exceeded",
            "message": "usage limit reached",
            "details": {"limit_type": "max_users", "current": 5, "limit": 5},
        }
