"""
Copyright (C) 2026 Garudex Labs.  All Rights Reserved.
Tiergate, a product of Garudex Labs

License verification (runtime side).

The verifier holds only the Ed25519 public key that ships inside the
package. It is a pure function of (key string, clock): it never logs,
never retries and never touches the network.

Verification order, stopping at the first failure:

1. decode the distributable string            -> InvalidFormatError
2. parse the envelope, check format version   -> InvalidFormatError
3. check the signature over the raw payload   -> InvalidSignatureError
4. parse the payload into a License           -> InvalidFormatError
5. check the validity window against ``now``  -> NotYetValidError / LicenseExpiredError

Nothing inside the payload is read before step 3 succeeds.
"""

import json
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional, Union

from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PublicKey

from tiergate.exceptions import (
    InvalidFormatError,
    InvalidPublicKeyError,
    InvalidSignatureError,
    LicenseExpiredError,
    NotYetValidError,
)
from tiergate.license.codec import SUPPORTED_FORMAT_VERSIONS, SignedLicense
from tiergate.license.model import (
    License,
    LicenseType,
    Limits,
    Tier,
    default_limits,
    ensure_utc,
)


EMBEDDED_PUBLIC_KEY_PATH = Path(__file__).parent / "keys" / "public.pem"


class LicenseVerifier:
    """
    Authenticates and temporally validates license keys.

    Example:
        >>> verifier = LicenseVerifier.from_embedded_key()
        >>> license = verifier.verify(key_string, datetime.now(timezone.utc))
    """

    def __init__(self, public_key: Ed25519PublicKey):
        """
        Initialize verifier with an Ed25519 public key.

        Raises:
            InvalidPublicKeyError: If the key is not an Ed25519 public key
        """
        if not isinstance(public_key, Ed25519PublicKey):
            raise InvalidPublicKeyError(f"Key is not an Ed25519 public key, got {type(public_key)}")
        self._public_key = public_key

    @classmethod
    def from_public_key_pem(cls, public_key_pem: Union[str, bytes]) -> "LicenseVerifier":
        """
        Create a verifier from a SubjectPublicKeyInfo PEM public key.

        Raises:
            InvalidPublicKeyError: If the PEM cannot be loaded or is not Ed25519
        """
        if not public_key_pem:
            raise InvalidPublicKeyError("public_key_pem cannot be empty")
        try:
            public_key = serialization.load_pem_public_key(
                public_key_pem.encode() if isinstance(public_key_pem, str) else public_key_pem,
            )
        except (ValueError, UnsupportedAlgorithm) as e:
            raise InvalidPublicKeyError(f"Failed to load public key: {e}") from e
        return cls(public_key)

    @classmethod
    def from_public_key_bytes(cls, raw: bytes) -> "LicenseVerifier":
        """
        Create a verifier from a raw 32-byte Ed25519 public key.

        Raises:
            InvalidPublicKeyError: If the key is not 32 bytes
        """
        try:
            return cls(Ed25519PublicKey.from_public_bytes(raw))
        except ValueError as e:
            raise InvalidPublicKeyError(f"Invalid public key size: {e}") from e

    @classmethod
    def from_embedded_key(cls) -> "LicenseVerifier":
        """
        Create a verifier from the public key packaged with this build.

        Raises:
            InvalidPublicKeyError: If the packaged key is missing or invalid
        """
        try:
            pem = EMBEDDED_PUBLIC_KEY_PATH.read_bytes()
        except OSError as e:
            raise InvalidPublicKeyError(f"Embedded public key not readable: {e}") from e
        return cls.from_public_key_pem(pem)

    def verify(self, license_key: str, now: datetime) -> License:
        """
        Verify a distributable license key.

        Args:
            license_key: Distributable license key string
            now: Current time; naive values are taken as UTC

        Returns:
            The verified License

        Raises:
            InvalidFormatError: Malformed key, envelope or payload, or
                unsupported format version
            InvalidSignatureError: Signature does not match the payload
            NotYetValidError: ``now`` precedes ``issued_at``
            LicenseExpiredError: ``now`` is at or after ``expires_at``
        """
        signed = SignedLicense.from_key_string(license_key)
        return self.verify_signed(signed, now)

    def verify_signed(self, signed: SignedLicense, now: datetime) -> License:
        """
        Verify an already decoded SignedLicense.

        See verify() for the failure modes.
        """
        if signed.format_version not in SUPPORTED_FORMAT_VERSIONS:
            raise InvalidFormatError(
                f"unsupported license format version: {signed.format_version}"
            )

        try:
            self._public_key.verify(signed.signature, signed.payload)
        except (InvalidSignature, ValueError) as e:
            raise InvalidSignatureError("invalid license signature") from e

        license = _decode_payload(signed.payload)

        now = ensure_utc(now)
        if now < license.issued_at:
            raise NotYetValidError(
                f"license is not valid until {license.issued_at.isoformat()}",
                license_id=license.id,
            )
        if license.expires_at is not None and now >= license.expires_at:
            raise LicenseExpiredError(
                f"license expired at {license.expires_at.isoformat()}",
                license_id=license.id,
            )

        return license


def _decode_payload(payload: bytes) -> License:
    """
    Parse authenticated payload bytes into a License.

    Must only be called after the payload signature has been verified.
    """
    try:
        data = json.loads(payload.decode("utf-8"))
    except (UnicodeDecodeError, ValueError) as e:
        raise InvalidFormatError(f"unmarshalling license: {e}") from e

    if not isinstance(data, dict):
        raise InvalidFormatError("license payload must be a JSON object")

    license_id = data.get("id")
    if not isinstance(license_id, str) or not license_id:
        raise InvalidFormatError("license id is missing")

    try:
        tier = Tier(data.get("tier"))
        license_type = LicenseType(data.get("type", LicenseType.SUBSCRIPTION.value))
    except ValueError as e:
        raise InvalidFormatError(f"invalid license field: {e}") from e

    issued_at = _parse_timestamp(data.get("issued_at"), "issued_at")
    if issued_at is None:
        raise InvalidFormatError("issued_at is missing")
    expires_at = _parse_timestamp(data.get("expires_at"), "expires_at")

    try:
        return License(
            id=license_id,
            customer_id=_optional_str(data, "customer_id"),
            customer_name=_optional_str(data, "customer_name"),
            email=_optional_str(data, "email"),
            type=license_type,
            tier=tier,
            issued_at=issued_at,
            expires_at=expires_at,
            features=frozenset(_parse_features(data.get("features"))),
            limits=_parse_limits(data.get("limits"), tier),
            metadata=_parse_metadata(data.get("metadata")),
        )
    except ValueError as e:
        raise InvalidFormatError(f"invalid license: {e}") from e


def _optional_str(data: Dict[str, Any], key: str) -> str:
    value = data.get(key, "")
    if value is None:
        return ""
    if not isinstance(value, str):
        raise InvalidFormatError(f"{key} must be a string")
    return value


def _parse_timestamp(value: Any, field_name: str) -> Optional[datetime]:
    if value is None:
        return None
    if not isinstance(value, str):
        raise InvalidFormatError(f"{field_name} must be an ISO-8601 string")
    text = value[:-1] + "+00:00" if value.endswith("Z") else value
    try:
        return ensure_utc(datetime.fromisoformat(text))
    except ValueError as e:
        raise InvalidFormatError(f"invalid {field_name}: {e}") from e


def _parse_features(value: Any) -> list:
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise InvalidFormatError("features must be a list of strings")
    return value


def _parse_limits(value: Any, tier: Tier) -> Limits:
    # Missing limits fall back to the tier defaults.
    if value is None:
        return default_limits(tier)
    if not isinstance(value, dict):
        raise InvalidFormatError("limits must be an object")
    for name, limit in value.items():
        if not isinstance(limit, int) or isinstance(limit, bool) or limit < 0:
            raise InvalidFormatError(f"limit {name!r} must be a non-negative integer")
    return Limits.from_mapping(value, defaults=default_limits(tier))


def _parse_metadata(value: Any) -> Dict[str, str]:
    if value is None:
        return {}
    if not isinstance(value, dict) or not all(
        isinstance(k, str) and isinstance(v, str) for k, v in value.items()
    ):
        raise InvalidFormatError("metadata must be an object of strings")
    return dict(value)
