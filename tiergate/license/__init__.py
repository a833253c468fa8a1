"""
Offline license verification and entitlement gating.

Issuance (signer, key management) runs on vendor tooling; the verifier and
manager run inside the distributed product with only the embedded public
key.
"""

from tiergate.license.bootstrap import init_license_manager, resolve_license_key
from tiergate.license.codec import FORMAT_VERSION, SignedLicense, encode_payload
from tiergate.license.features import (
    FEATURE_REGISTRY,
    FeatureDefinition,
    all_features,
    features_for_tier,
    get_feature_definition,
    minimum_tier,
)
from tiergate.license.manager import (
    LicenseEvent,
    LicenseEventType,
    LicenseManager,
    LicenseResponse,
)
from tiergate.license.model import (
    COMMUNITY_LICENSE_ID,
    UNLIMITED,
    Feature,
    License,
    LicenseType,
    Limits,
    LimitType,
    Tier,
    community_license,
    default_limits,
)
from tiergate.license.plans import PLANS, Plan, get_plan
from tiergate.license.revalidation import RevalidationTask
from tiergate.license.signer import LicenseSigner
from tiergate.license.verifier import LicenseVerifier

__all__ = [
    "COMMUNITY_LICENSE_ID",
    "FEATURE_REGISTRY",
    "FORMAT_VERSION",
    "PLANS",
    "UNLIMITED",
    "Feature",
    "FeatureDefinition",
    "License",
    "LicenseEvent",
    "LicenseEventType",
    "LicenseManager",
    "LicenseResponse",
    "LicenseSigner",
    "LicenseType",
    "LicenseVerifier",
    "Limits",
    "LimitType",
    "Plan",
    "RevalidationTask",
    "SignedLicense",
    "Tier",
    "all_features",
    "community_license",
    "default_limits",
    "encode_payload",
    "features_for_tier",
    "get_feature_definition",
    "get_plan",
    "init_license_manager",
    "minimum_tier",
    "resolve_license_key",
]
