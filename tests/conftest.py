"""
Pytest configuration and shared fixtures for Tiergate tests.
"""

import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, Generator

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey

from tiergate.license.model import License, LicenseType, Tier, default_limits
from tiergate.license.signer import LicenseSigner
from tiergate.license.verifier import LicenseVerifier


NOW = datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Settable clock for driving time-dependent behaviour in tests."""

    def __init__(self, now: datetime = NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now = self.now + delta


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """
    Create a temporary directory for test files.

    Yields:
        Path to temporary directory that is cleaned up after test.
    """
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def now() -> datetime:
    """Fixed reference time used across tests."""
    return NOW


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(NOW)


@pytest.fixture(scope="session")
def private_key() -> Ed25519PrivateKey:
    """Session-wide Ed25519 test signing key."""
    return Ed25519PrivateKey.generate()


@pytest.fixture
def signer(private_key) -> LicenseSigner:
    return LicenseSigner(private_key)


@pytest.fixture
def verifier(private_key) -> LicenseVerifier:
    return LicenseVerifier(private_key.public_key())


@pytest.fixture
def key_files(temp_dir, private_key):
    """
    Write the session key pair to PEM files.

    Returns:
        Tuple of (private_key_path, public_key_path)
    """
    private_path = temp_dir / "issuer.pem"
    public_path = temp_dir / "issuer.pub"
    private_path.write_bytes(
        private_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        )
    )
    public_path.write_bytes(
        private_key.public_key().public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        )
    )
    return private_path, public_path


@pytest.fixture
def make_license() -> Callable[..., License]:
    """
    Factory for License values valid around NOW.

    Defaults to a pro subscription issued 30 days before NOW and expiring
    335 days after it; any field may be overridden.
    """

    def _make(**overrides) -> License:
        tier = overrides.get("tier", Tier.PRO)
        fields = {
            "id": "lic_test_001",
            "customer_id": "cust_001",
            "customer_name": "Acme Corp",
            "email": "admin@acme.test",
            "type": LicenseType.SUBSCRIPTION,
            "tier": tier,
            "issued_at": NOW - timedelta(days=30),
            "expires_at": NOW + timedelta(days=335),
            "features": frozenset(),
            "limits": default_limits(tier),
            "metadata": {"seats": "5"},
        }
        fields.update(overrides)
        return License(**fields)

    return _make
