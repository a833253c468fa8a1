"""
Copyright (C) 2026 Garudex Labs.  All Rights Reserved.
Tiergate, a product of Garudex Labs

Issuer key handling.

Creates, checks and exports the Ed25519 key pair used to sign license keys.
The private half stays with the issuer; the exported public half is what
gets copied to tiergate/license/keys/public.pem before a product build.
Each operation can be appended to a JSON-lines audit file.
"""

import json
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey

from tiergate.logging_config import get_logger

logger = get_logger(__name__)

PRIVATE_KEY_MODE = 0o600
PUBLIC_KEY_MODE = 0o644


def _public_pem(private_key: Ed25519PrivateKey) -> bytes:
    return private_key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )


def _write_key_file(path: Path, data: bytes, mode: int) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
    os.chmod(path, mode)


def _load_ed25519_key(path: Path, passphrase: Optional[str]) -> Ed25519PrivateKey:
    """
    Load a PEM private key and insist on Ed25519.

    Raises:
        ValueError: If the key cannot be decrypted, parsed, or is of
            another algorithm.
    """
    password = passphrase.encode() if passphrase else None
    try:
        key = serialization.load_pem_private_key(path.read_bytes(), password=password)
    except TypeError as e:
        # Passphrase given for a plain key, or missing for an encrypted one.
        raise ValueError(str(e)) from e
    except UnsupportedAlgorithm as e:
        raise ValueError(f"Unsupported key algorithm: {e}") from e

    if not isinstance(key, Ed25519PrivateKey):
        raise ValueError(f"Expected an Ed25519 key, got {type(key).__name__}")
    return key


class KeyManager:
    """
    Issuer-side operations on license signing keys.

    Example:
        >>> manager = KeyManager(audit_log_path="/secure/issuer/keys.log")
        >>> manager.generate_key_pair(
        ...     "/secure/issuer/license.pem",
        ...     "tiergate/license/keys/public.pem",
        ...     passphrase="correct horse",
        ... )
    """

    def __init__(self, audit_log_path: Optional[str] = None):
        self.audit_log_path = Path(audit_log_path).expanduser() if audit_log_path else None
        if self.audit_log_path is not None:
            self.audit_log_path.parent.mkdir(parents=True, exist_ok=True)
            logger.debug("key_audit_log_enabled", path=str(self.audit_log_path))

    def generate_key_pair(
        self,
        private_key_path: str,
        public_key_path: str,
        passphrase: Optional[str] = None,
    ) -> None:
        """
        Create a fresh signing key pair.

        The private key is PKCS#8 PEM, encrypted when a passphrase is given,
        and readable by the owner only. The public key is
        SubjectPublicKeyInfo PEM.

        Args:
            private_key_path: Destination of the private key
            public_key_path: Destination of the public key
            passphrase: Optional passphrase protecting the private key

        Raises:
            FileExistsError: If either destination already exists
            OSError: If a key file cannot be written
        """
        private_path = Path(private_key_path).expanduser()
        public_path = Path(public_key_path).expanduser()

        for path in (private_path, public_path):
            if path.exists():
                raise FileExistsError(f"Key file already exists: {path}")

        private_key = Ed25519PrivateKey.generate()
        encryption = (
            serialization.BestAvailableEncryption(passphrase.encode())
            if passphrase
            else serialization.NoEncryption()
        )
        private_pem = private_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=encryption,
        )

        _write_key_file(private_path, private_pem, PRIVATE_KEY_MODE)
        _write_key_file(public_path, _public_pem(private_key), PUBLIC_KEY_MODE)

        self._audit(
            "generate",
            private_path,
            public_key=str(public_path),
            encrypted=bool(passphrase),
        )

    def verify_key(self, private_key_path: str, passphrase: Optional[str] = None) -> bool:
        """
        Check that a private key file holds a usable Ed25519 key.

        Returns:
            True if the key loads, False otherwise
        """
        key_path = Path(private_key_path).expanduser()
        if not key_path.exists():
            logger.error("signing_key_missing", path=str(key_path))
            return False

        try:
            _load_ed25519_key(key_path, passphrase)
        except ValueError as e:
            logger.error("signing_key_invalid", path=str(key_path), error=str(e))
            self._audit("verify", key_path, ok=False, error=str(e))
            return False

        self._audit("verify", key_path, ok=True)
        return True

    def export_public_key(
        self,
        private_key_path: str,
        public_key_path: str,
        passphrase: Optional[str] = None,
    ) -> None:
        """
        Write the public half of an existing private key.

        Raises:
            FileNotFoundError: If the private key does not exist
            ValueError: If the private key is unreadable or not Ed25519
        """
        private_path = Path(private_key_path).expanduser()
        public_path = Path(public_key_path).expanduser()

        if not private_path.exists():
            raise FileNotFoundError(f"Private key not found: {private_path}")

        private_key = _load_ed25519_key(private_path, passphrase)
        _write_key_file(public_path, _public_pem(private_key), PUBLIC_KEY_MODE)

        self._audit("export", public_path, source=str(private_path))

    def _audit(self, operation: str, key_path: Path, **details: Any) -> None:
        logger.info("key_operation", operation=operation, key_path=str(key_path), **details)

        if self.audit_log_path is None:
            return

        record = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "operation": operation,
            "key_path": str(key_path),
            **details,
        }
        try:
            with self.audit_log_path.open("a", encoding="utf-8") as f:
                f.write(json.dumps(record, sort_keys=True) + "\n")
        except OSError:
            logger.error("key_audit_write_failed", path=str(self.audit_log_path), exc_info=True)
