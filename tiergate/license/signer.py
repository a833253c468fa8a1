"""
Copyright (C) 2026 Garudex Labs.  All Rights Reserved.
Tiergate, a product of Garudex Labs

License signing (issuance side).

The signer runs on the vendor's issuance tooling, never inside the
distributed product. It canonically serializes a License and signs the
exact payload bytes with Ed25519, which is deterministic for a given key
and payload.
"""

from pathlib import Path
from typing import Optional, Union

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey

from tiergate.exceptions import SigningError
from tiergate.license.codec import FORMAT_VERSION, SignedLicense, encode_payload
from tiergate.license.model import License
from tiergate.logging_config import get_logger

logger = get_logger(__name__)


class LicenseSigner:
    """
    Produces signed, distributable license keys.

    Example:
        >>> signer = LicenseSigner.from_private_key_file("/secure/issuer.pem")
        >>> key = signer.sign_to_string(license)
    """

    def __init__(self, private_key: Ed25519PrivateKey):
        """
        Initialize signer with an Ed25519 private key.

        Args:
            private_key: Ed25519 private key

        Raises:
            SigningError: If the key is not an Ed25519 private key
        """
        if not isinstance(private_key, Ed25519PrivateKey):
            raise SigningError(f"Key is not an Ed25519 private key, got {type(private_key)}")
        self._private_key = private_key

    @classmethod
    def from_private_key_pem(
        cls,
        private_key_pem: Union[str, bytes],
        passphrase: Optional[str] = None,
    ) -> "LicenseSigner":
        """
        Create a signer from a PEM-encoded private key.

        Args:
            private_key_pem: Private key in PEM format
            passphrase: Optional passphrase for an encrypted private key

        Raises:
            SigningError: If the key cannot be loaded or is not Ed25519
        """
        if not private_key_pem:
            raise SigningError("private_key_pem cannot be empty")

        try:
            passphrase_bytes = passphrase.encode() if passphrase else None
            private_key = serialization.load_pem_private_key(
                private_key_pem.encode() if isinstance(private_key_pem, str) else private_key_pem,
                password=passphrase_bytes,
            )
        except (ValueError, TypeError, UnsupportedAlgorithm) as e:
            logger.error(f"Failed to load private key: {e}")
            raise SigningError(f"Invalid private key: {e}") from e

        return cls(private_key)

    @classmethod
    def from_private_key_file(
        cls,
        private_key_path: Union[str, Path],
        passphrase: Optional[str] = None,
    ) -> "LicenseSigner":
        """
        Create a signer from a PEM private key file.

        Raises:
            FileNotFoundError: If the key file does not exist
            SigningError: If the key cannot be loaded or is not Ed25519
        """
        key_path = Path(private_key_path).expanduser()
        if not key_path.exists():
            raise FileNotFoundError(f"Private key file not found: {key_path}")
        return cls.from_private_key_pem(key_path.read_bytes(), passphrase=passphrase)

    def public_key_pem(self) -> bytes:
        """Return the matching public key in SubjectPublicKeyInfo PEM format."""
        return self._private_key.public_key().public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        )

    def sign_payload(self, payload: bytes) -> SignedLicense:
        """
        Sign raw payload bytes.

        Args:
            payload: Canonical license payload

        Returns:
            SignedLicense wrapping the payload and its signature
        """
        signature = self._private_key.sign(payload)
        return SignedLicense(payload=payload, signature=signature, format_version=FORMAT_VERSION)

    def sign(self, license: License) -> SignedLicense:
        """
        Sign a license.

        Args:
            license: Fully populated License

        Returns:
            SignedLicense over the canonical serialization of ``license``
        """
        signed = self.sign_payload(encode_payload(license))
        logger.debug(f"Signed license {license.id} ({license.tier.value})")
        return signed

    def sign_to_string(self, license: License) -> str:
        """Sign a license and encode it as a distributable key string."""
        return self.sign(license).to_key_string()
