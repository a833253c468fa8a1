"""
Unit tests for the wire codec and the license signer.
"""

import base64
import json
from datetime import datetime, timezone

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey
from cryptography.hazmat.primitives.asymmetric import ec

from tiergate.exceptions import InvalidFormatError, InvalidSignatureError, SigningError
from tiergate.license.codec import (
    FORMAT_VERSION,
    SignedLicense,
    canonical_json,
    encode_payload,
    format_timestamp,
)
from tiergate.license.signer import LicenseSigner


def _key_from_envelope(envelope) -> str:
    return base64.b64encode(json.dumps(envelope).encode()).decode()


class TestCanonicalEncoding:
    """Test canonical payload encoding."""

    def test_canonical_json_is_sorted_and_compact(self):
        assert canonical_json({"b": 1, "a": [1, 2]}) == b'{"a":[1,2],"b":1}'

    def test_payload_is_stable_for_equal_licenses(self, make_license):
        a = make_license(features=["webhooks", "api_access"])
        b = make_license(features=["api_access", "webhooks"])
        assert encode_payload(a) == encode_payload(b)

    def test_payload_fields(self, make_license):
        payload = json.loads(encode_payload(make_license(features=["webhooks", "api_access"])))
        assert payload["tier"] == "pro"
        assert payload["type"] == "subscription"
        assert payload["features"] == ["api_access", "webhooks"]
        assert payload["limits"]["max_users"] == 5
        assert payload["issued_at"].endswith("+00:00")

    def test_perpetual_expiry_encoded_as_null(self, make_license):
        payload = json.loads(encode_payload(make_license(expires_at=None)))
        assert payload["expires_at"] is None

    def test_format_timestamp_has_microseconds(self):
        assert format_timestamp(datetime(2026, 1, 2, 3, 4, 5, tzinfo=timezone.utc)) == "2026-01-02T03:04:05.000000+00:00"
        assert format_timestamp(None) is None


class TestSignedLicenseEnvelope:
    """Test envelope encoding and decoding."""

    def test_key_string_round_trip(self):
        signed = SignedLicense(payload=b'{"id":"x"}', signature=b"\x01" * 64)
        decoded = SignedLicense.from_key_string(signed.to_key_string())
        assert decoded == signed
        assert decoded.format_version == FORMAT_VERSION

    def test_envelope_shape(self):
        envelope = SignedLicense(payload=b"p", signature=b"s").to_envelope()
        assert set(envelope) == {"license", "signature", "version"}
        assert envelope["version"] == 1

    @pytest.mark.parametrize("key", ["", "   ", "not base64 at all!!", base64.b64encode(b"not json").decode()])
    def test_malformed_key_is_invalid_format(self, key):
        with pytest.raises(InvalidFormatError):
            SignedLicense.from_key_string(key)

    def test_non_object_envelope_is_invalid_format(self):
        with pytest.raises(InvalidFormatError):
            SignedLicense.from_key_string(_key_from_envelope([1, 2, 3]))

    @pytest.mark.parametrize("version", [None, "1", True, 0, 2, 99])
    def test_unsupported_version_is_invalid_format(self, version):
        envelope = {"license": base64.b64encode(b"p").decode(), "signature": base64.b64encode(b"s").decode()}
        if version is not None:
            envelope["version"] = version
        with pytest.raises(InvalidFormatError):
            SignedLicense.from_key_string(_key_from_envelope(envelope))

    def test_bad_payload_encoding_is_invalid_format(self):
        envelope = {"license": "***", "signature": base64.b64encode(b"s").decode(), "version": 1}
        with pytest.raises(InvalidFormatError):
            SignedLicense.from_key_string(_key_from_envelope(envelope))

    def test_bad_signature_encoding_is_invalid_signature(self):
        envelope = {"license": base64.b64encode(b"p").decode(), "signature": "***", "version": 1}
        with pytest.raises(InvalidSignatureError):
            SignedLicense.from_key_string(_key_from_envelope(envelope))


class TestLicenseSigner:
    """Test license signing."""

    def test_signature_is_deterministic(self, signer, make_license):
        license = make_license()
        assert signer.sign(license) == signer.sign(license)
        assert signer.sign_to_string(license) == signer.sign_to_string(license)

    def test_signature_covers_payload(self, signer, private_key, make_license):
        signed = signer.sign(make_license())
        assert len(signed.signature) == 64
        private_key.public_key().verify(signed.signature, signed.payload)

    def test_from_private_key_pem(self, private_key, make_license):
        pem = private_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.BestAvailableEncryption(b"secret"),
        )
        signer = LicenseSigner.from_private_key_pem(pem, passphrase="secret")
        assert signer.public_key_pem() == private_key.public_key().public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        )

    def test_wrong_passphrase_raises_signing_error(self, private_key):
        pem = private_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.BestAvailableEncryption(b"secret"),
        )
        with pytest.raises(SigningError):
            LicenseSigner.from_private_key_pem(pem, passphrase="wrong")

    def test_non_ed25519_key_rejected(self):
        ec_key = ec.generate_private_key(ec.SECP256R1())
        pem = ec_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        )
        with pytest.raises(SigningError):
            LicenseSigner.from_private_key_pem(pem)
        with pytest.raises(SigningError):
            LicenseSigner(ec_key)

    def test_empty_pem_rejected(self):
        with pytest.raises(SigningError):
            LicenseSigner.from_private_key_pem("")

    def test_missing_key_file(self, temp_dir):
        with pytest.raises(FileNotFoundError):
            LicenseSigner.from_private_key_file(temp_dir / "missing.pem")

    def test_from_private_key_file(self, key_files, make_license):
        private_path, _ = key_files
        signer = LicenseSigner.from_private_key_file(private_path)
        assert isinstance(signer.sign_to_string(make_license()), str)

    def test_different_keys_produce_different_signatures(self, signer, make_license):
        other = LicenseSigner(Ed25519PrivateKey.generate())
        license = make_license()
        assert signer.sign(license).signature != other.sign(license).signature
