"""
Copyright (C) 2026 Garudex Labs.  All Rights Reserved.
Tiergate, a product of Garudex Labs

Entitlement model: License, Tier, Feature, Limits.

All types here are immutable values. A License is only ever produced by
the verifier (after signature checks) or by community_license(); the rest
of the system never mutates one in place.
"""

from dataclasses import dataclass, field, fields, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, FrozenSet, Iterable, Mapping, Optional, Union


class Tier(str, Enum):
    """
    Ordered entitlement level.

    Ordering is by level (free=1 < pro=2 < business=3 < enterprise=4) and
    is the sole basis for tier-implied feature access.
    """
    FREE = "free"
    PRO = "pro"
    BUSINESS = "business"
    ENTERPRISE = "enterprise"

    @property
    def level(self) -> int:
        """Numeric level of the tier (free=1 ... enterprise=4)."""
        return _TIER_LEVELS[self]

    def includes(self, other: "Tier") -> bool:
        """Return True if this tier is at or above ``other``."""
        return self.level >= other.level


_TIER_LEVELS: Dict[Tier, int] = {
    Tier.FREE: 1,
    Tier.PRO: 2,
    Tier.BUSINESS: 3,
    Tier.ENTERPRISE: 4,
}


class LicenseType(str, Enum):
    """Commercial form of a grant. Informational only; never used for gating."""
    TRIAL = "trial"
    SUBSCRIPTION = "subscription"
    PERPETUAL = "perpetual"
    ENTERPRISE = "enterprise"


class Feature(str, Enum):
    """
    Known gated capabilities.

    Members compare equal to their string value, so callers may pass either
    ``Feature.SAML`` or ``"saml"``. Licenses may also grant names that are
    not listed here.
    """
    CUSTOM_DOMAINS = "custom_domains"
    LINK_EXPIRATION = "link_expiration"
    LINK_PASSWORDS = "link_passwords"
    BULK_LINKS = "bulk_links"
    ADVANCED_ANALYTICS = "advanced_analytics"
    EXPORT_DATA = "export_data"
    TEAM_MEMBERS = "team_members"
    MULTI_WORKSPACE = "multi_workspace"
    API_ACCESS = "api_access"
    WEBHOOKS = "webhooks"
    QR_CUSTOMIZATION = "qr_customization"
    BIO_PAGES = "bio_pages"
    CONDITIONAL_ROUTING = "conditional_routing"
    SAML = "saml"
    SCIM = "scim"
    AUDIT_LOGS = "audit_logs"
    WHITE_LABEL = "white_label"
    CUSTOM_CSS = "custom_css"
    PRIORITY_SUPPORT = "priority_support"
    SLA = "sla"


FeatureLike = Union[Feature, str]


def feature_name(feature: FeatureLike) -> str:
    """Return the plain string name of a feature."""
    if isinstance(feature, Feature):
        return feature.value
    return str(feature)


class LimitType(str, Enum):
    """Names of the numeric usage ceilings."""
    MAX_USERS = "max_users"
    MAX_DOMAINS = "max_domains"
    MAX_LINKS_PER_MONTH = "max_links_per_month"
    MAX_CLICKS_PER_MONTH = "max_clicks_per_month"
    MAX_WORKSPACES = "max_workspaces"
    MAX_API_REQUESTS_PER_MIN = "max_api_requests_per_min"


UNLIMITED = 0


@dataclass(frozen=True)
class Limits:
    """
    Numeric usage ceilings for a license.

    A value of 0 means unlimited. Unknown limit names fail closed.
    """
    max_users: int = 0
    max_domains: int = 0
    max_links_per_month: int = 0
    max_clicks_per_month: int = 0
    max_workspaces: int = 0
    max_api_requests_per_min: int = 0

    def __post_init__(self):
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise ValueError(f"limit '{f.name}' must be a non-negative integer, got {value!r}")

    def get(self, name: Union[LimitType, str]) -> Optional[int]:
        """
        Get the ceiling for a named limit.

        Args:
            name: Limit name (e.g. "max_users")

        Returns:
            The ceiling (0 = unlimited), or None if the name is unknown
        """
        key = name.value if isinstance(name, LimitType) else str(name)
        if key not in _LIMIT_NAMES:
            return None
        return getattr(self, key)

    def check(self, name: Union[LimitType, str], current_usage: int) -> bool:
        """
        Check whether ``current_usage`` is still within the named limit.

        Returns:
            True if the limit is unlimited or usage is below it; False if the
            limit is reached or the name is unknown
        """
        limit = self.get(name)
        if limit is None:
            return False
        if limit == UNLIMITED:
            return True
        return current_usage < limit

    def to_dict(self) -> Dict[str, int]:
        """Convert limits to a plain dictionary."""
        return {name: getattr(self, name) for name in _LIMIT_NAMES}

    @classmethod
    def from_mapping(cls, data: Mapping[str, int], defaults: Optional["Limits"] = None) -> "Limits":
        """
        Build Limits from a mapping, filling missing names from ``defaults``.

        Unknown keys are ignored.
        """
        base = defaults or cls()
        values = {name: data[name] for name in _LIMIT_NAMES if name in data}
        return replace(base, **values)


_LIMIT_NAMES = tuple(f.name for f in fields(Limits))


_DEFAULT_LIMITS: Dict[Tier, Limits] = {
    Tier.FREE: Limits(
        max_users=1,
        max_domains=1,
        max_links_per_month=100,
        max_clicks_per_month=10_000,
        max_workspaces=1,
        max_api_requests_per_min=10,
    ),
    Tier.PRO: Limits(
        max_users=5,
        max_domains=3,
        max_links_per_month=5_000,
        max_clicks_per_month=500_000,
        max_workspaces=3,
        max_api_requests_per_min=60,
    ),
    Tier.BUSINESS: Limits(
        max_users=25,
        max_domains=10,
        max_links_per_month=50_000,
        max_clicks_per_month=5_000_000,
        max_workspaces=10,
        max_api_requests_per_min=300,
    ),
    Tier.ENTERPRISE: Limits(
        max_users=UNLIMITED,
        max_domains=UNLIMITED,
        max_links_per_month=UNLIMITED,
        max_clicks_per_month=UNLIMITED,
        max_workspaces=UNLIMITED,
        max_api_requests_per_min=1_000,
    ),
}


def default_limits(tier: Tier) -> Limits:
    """Return the default limits for a tier."""
    return _DEFAULT_LIMITS.get(tier, _DEFAULT_LIMITS[Tier.FREE])


def ensure_utc(value: datetime) -> datetime:
    """Return ``value`` as an aware UTC datetime (naive values are taken as UTC)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass(frozen=True)
class License:
    """
    A verified entitlement grant.

    Attributes:
        id: Opaque identifier, unique per issued grant
        customer_id: Issuance metadata (not used for authorization)
        customer_name: Issuance metadata (not used for authorization)
        email: Issuance metadata (not used for authorization)
        type: Commercial form of the grant (informational)
        tier: Entitlement level
        issued_at: Start of the validity window (inclusive)
        expires_at: End of the validity window (exclusive); None never expires
        features: Explicitly granted feature names, in addition to tier-implied ones
        limits: Numeric usage ceilings
        metadata: Opaque key/value bag, never interpreted
    """
    id: str
    tier: Tier
    issued_at: datetime
    expires_at: Optional[datetime]
    customer_id: str = ""
    customer_name: str = ""
    email: str = ""
    type: LicenseType = LicenseType.SUBSCRIPTION
    features: FrozenSet[str] = frozenset()
    limits: Limits = field(default_factory=Limits)
    metadata: Mapping[str, str] = field(default_factory=dict, hash=False)

    def __post_init__(self):
        object.__setattr__(self, "issued_at", ensure_utc(self.issued_at))
        if self.expires_at is not None:
            object.__setattr__(self, "expires_at", ensure_utc(self.expires_at))
            if self.issued_at > self.expires_at:
                raise ValueError(
                    f"issued_at ({self.issued_at.isoformat()}) must not be after "
                    f"expires_at ({self.expires_at.isoformat()})"
                )
        object.__setattr__(self, "features", frozenset(feature_name(f) for f in self.features))
        object.__setattr__(self, "metadata", dict(self.metadata))

    def is_within_validity(self, now: datetime) -> bool:
        """Return True if ``now`` falls inside [issued_at, expires_at)."""
        now = ensure_utc(now)
        if now < self.issued_at:
            return False
        return self.expires_at is None or now < self.expires_at

    def has_explicit_feature(self, feature: FeatureLike) -> bool:
        """Return True if the feature was granted explicitly."""
        return feature_name(feature) in self.features

    def with_features(self, features: Iterable[FeatureLike]) -> "License":
        """Return a copy of this license with additional explicit features."""
        return replace(self, features=self.features | {feature_name(f) for f in features})


COMMUNITY_LICENSE_ID = "community"

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def community_license() -> License:
    """
    Build the fixed community-edition license.

    Free tier, no explicit features, free-tier default limits, no expiry.
    """
    return License(
        id=COMMUNITY_LICENSE_ID,
        tier=Tier.FREE,
        issued_at=_EPOCH,
        expires_at=None,
        type=LicenseType.SUBSCRIPTION,
        features=frozenset(),
        limits=default_limits(Tier.FREE),
    )
