"""
Copyright (C) 2026 Garudex Labs.  All Rights Reserved.
Tiergate, a product of Garudex Labs

Wire format for signed licenses.

Format version 1:

    payload   = canonical JSON of the License (sorted keys, no whitespace)
    envelope  = {"license": b64(payload), "signature": b64(sig), "version": 1}
    key       = b64(canonical JSON of envelope)

Any change to the payload or envelope rules is a breaking change and needs
a new FORMAT_VERSION. Decoding the payload back into a License is done only
by the verifier, after the signature has been checked.
"""

import base64
import binascii
import json
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional

from tiergate.exceptions import InvalidFormatError, InvalidSignatureError
from tiergate.license.model import License, ensure_utc


FORMAT_VERSION = 1
SUPPORTED_FORMAT_VERSIONS = frozenset({FORMAT_VERSION})


def canonical_json(data: Dict[str, Any]) -> bytes:
    """Serialize a dictionary to canonical JSON bytes."""
    return json.dumps(
        data,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=True,
    ).encode("utf-8")


def format_timestamp(value: Optional[datetime]) -> Optional[str]:
    """Format a timestamp as ISO-8601 UTC with microseconds."""
    if value is None:
        return None
    return ensure_utc(value).isoformat(timespec="microseconds")


def encode_payload(license: License) -> bytes:
    """
    Canonically serialize a License to payload bytes.

    Args:
        license: License to serialize

    Returns:
        UTF-8 JSON bytes with stable field order
    """
    return canonical_json({
        "id": license.id,
        "customer_id": license.customer_id,
        "customer_name": license.customer_name,
        "email": license.email,
        "type": license.type.value,
        "tier": license.tier.value,
        "issued_at": format_timestamp(license.issued_at),
        "expires_at": format_timestamp(license.expires_at),
        "features": sorted(license.features),
        "limits": license.limits.to_dict(),
        "metadata": dict(license.metadata),
    })


def _b64decode(value: str) -> bytes:
    return base64.b64decode(value.encode("ascii"), validate=True)


@dataclass(frozen=True)
class SignedLicense:
    """
    A license payload and its detached Ed25519 signature.

    Attributes:
        payload: Canonical serialization of the License (unverified bytes)
        signature: Ed25519 signature over ``payload``
        format_version: Wire format version
    """
    payload: bytes
    signature: bytes
    format_version: int = FORMAT_VERSION

    def to_envelope(self) -> Dict[str, Any]:
        """Return the JSON envelope as a dictionary."""
        return {
            "license": base64.b64encode(self.payload).decode("ascii"),
            "signature": base64.b64encode(self.signature).decode("ascii"),
            "version": self.format_version,
        }

    def to_key_string(self) -> str:
        """Encode as the distributable license key string."""
        return base64.b64encode(canonical_json(self.to_envelope())).decode("ascii")

    @classmethod
    def from_key_string(cls, key: str) -> "SignedLicense":
        """
        Decode a distributable license key string.

        Only the envelope is interpreted here; the payload stays opaque.

        Args:
            key: Distributable license key

        Returns:
            SignedLicense with raw payload and signature bytes

        Raises:
            InvalidFormatError: If the key or envelope is malformed, or the
                format version is not supported
            InvalidSignatureError: If the signature field cannot be decoded
        """
        if not isinstance(key, str) or not key.strip():
            raise InvalidFormatError("license key is empty")

        try:
            envelope_bytes = _b64decode("".join(key.split()))
        except (binascii.Error, ValueError) as e:
            raise InvalidFormatError(f"decoding license key: {e}") from e

        try:
            envelope = json.loads(envelope_bytes.decode("utf-8"))
        except (UnicodeDecodeError, ValueError) as e:
            raise InvalidFormatError(f"parsing license key: {e}") from e

        if not isinstance(envelope, dict):
            raise InvalidFormatError("license envelope must be a JSON object")

        version = envelope.get("version")
        if not isinstance(version, int) or isinstance(version, bool):
            raise InvalidFormatError("license envelope is missing a format version")
        if version not in SUPPORTED_FORMAT_VERSIONS:
            raise InvalidFormatError(f"unsupported license format version: {version}")

        encoded_payload = envelope.get("license")
        encoded_signature = envelope.get("signature")
        if not isinstance(encoded_payload, str) or not isinstance(encoded_signature, str):
            raise InvalidFormatError("license envelope must contain license and signature strings")

        try:
            payload = _b64decode(encoded_payload)
        except (binascii.Error, ValueError) as e:
            raise InvalidFormatError(f"decoding license data: {e}") from e

        try:
            signature = _b64decode(encoded_signature)
        except (binascii.Error, ValueError) as e:
            raise InvalidSignatureError(f"decoding signature: {e}") from e

        return cls(payload=payload, signature=signature, format_version=version)
