"""
Copyright (C) 2026 Garudex Labs.  All Rights Reserved.
Tiergate, a product of Garudex Labs

Tiergate - Offline License Verification and Entitlement Gating

Tiergate verifies Ed25519-signed license keys without network access and
gates product features, tiers and usage limits on the verified grant.
"""

from tiergate._version import __version__

__all__ = ["__version__"]
