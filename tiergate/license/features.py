"""
Copyright (C) 2026 Garudex Labs.  All Rights Reserved.
Tiergate, a product of Garudex Labs

Feature registry: static table of gated features and their minimum tier.

The table is built once at import time and never modified. Every new gated
capability needs an entry here; a feature without an entry can only be
reached through an explicit grant on the license.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional

from tiergate.license.model import Feature, FeatureLike, Tier, feature_name


@dataclass(frozen=True)
class FeatureDefinition:
    """
    Description of a gated feature.

    Attributes:
        name: Display name
        description: One-line description shown in upgrade prompts
        min_tier: Lowest tier that includes the feature
        category: Grouping used by UIs ("links", "analytics", "security", ...)
    """
    name: str
    description: str
    min_tier: Tier
    category: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "name": self.name,
            "description": self.description,
            "min_tier": self.min_tier.value,
            "category": self.category,
        }


_REGISTRY: Dict[str, FeatureDefinition] = {
    Feature.CUSTOM_DOMAINS.value: FeatureDefinition(
        name="Custom Domains",
        description="Connect your own domains for branded short links",
        min_tier=Tier.PRO,
        category="links",
    ),
    Feature.LINK_EXPIRATION.value: FeatureDefinition(
        name="Link Expiration",
        description="Set expiration dates for short links",
        min_tier=Tier.FREE,
        category="links",
    ),
    Feature.LINK_PASSWORDS.value: FeatureDefinition(
        name="Password-Protected Links",
        description="Require a password to access links",
        min_tier=Tier.PRO,
        category="links",
    ),
    Feature.BULK_LINKS.value: FeatureDefinition(
        name="Bulk Link Creation",
        description="Create multiple links at once via CSV or API",
        min_tier=Tier.PRO,
        category="links",
    ),
    Feature.ADVANCED_ANALYTICS.value: FeatureDefinition(
        name="Advanced Analytics",
        description="Detailed click analytics with geographic and device breakdowns",
        min_tier=Tier.PRO,
        category="analytics",
    ),
    Feature.EXPORT_DATA.value: FeatureDefinition(
        name="Data Export",
        description="Export analytics data as CSV or JSON",
        min_tier=Tier.PRO,
        category="analytics",
    ),
    Feature.TEAM_MEMBERS.value: FeatureDefinition(
        name="Team Members",
        description="Invite team members with role-based access",
        min_tier=Tier.BUSINESS,
        category="team",
    ),
    Feature.MULTI_WORKSPACE.value: FeatureDefinition(
        name="Multiple Workspaces",
        description="Create and manage multiple workspaces",
        min_tier=Tier.BUSINESS,
        category="team",
    ),
    Feature.API_ACCESS.value: FeatureDefinition(
        name="API Access",
        description="Programmatic access via REST API keys",
        min_tier=Tier.PRO,
        category="developer",
    ),
    Feature.WEBHOOKS.value: FeatureDefinition(
        name="Webhooks",
        description="Receive real-time event notifications",
        min_tier=Tier.BUSINESS,
        category="developer",
    ),
    Feature.QR_CUSTOMIZATION.value: FeatureDefinition(
        name="QR Code Customization",
        description="Custom colors, logos, and styles for QR codes",
        min_tier=Tier.PRO,
        category="links",
    ),
    Feature.BIO_PAGES.value: FeatureDefinition(
        name="Bio Pages",
        description="Create link-in-bio pages",
        min_tier=Tier.PRO,
        category="pages",
    ),
    Feature.CONDITIONAL_ROUTING.value: FeatureDefinition(
        name="Conditional Routing",
        description="Route clicks based on device, location, or time rules",
        min_tier=Tier.BUSINESS,
        category="links",
    ),
    Feature.SAML.value: FeatureDefinition(
        name="SAML SSO",
        description="Enterprise single sign-on via SAML 2.0",
        min_tier=Tier.ENTERPRISE,
        category="security",
    ),
    Feature.SCIM.value: FeatureDefinition(
        name="SCIM Provisioning",
        description="Automated user provisioning via SCIM 2.0",
        min_tier=Tier.ENTERPRISE,
        category="security",
    ),
    Feature.AUDIT_LOGS.value: FeatureDefinition(
        name="Audit Logs",
        description="Detailed audit trail of all actions",
        min_tier=Tier.ENTERPRISE,
        category="security",
    ),
    Feature.WHITE_LABEL.value: FeatureDefinition(
        name="White Label",
        description="Remove product branding and add your own",
        min_tier=Tier.ENTERPRISE,
        category="branding",
    ),
    Feature.CUSTOM_CSS.value: FeatureDefinition(
        name="Custom CSS",
        description="Inject custom CSS for bio pages and redirects",
        min_tier=Tier.ENTERPRISE,
        category="branding",
    ),
    Feature.PRIORITY_SUPPORT.value: FeatureDefinition(
        name="Priority Support",
        description="Priority email and chat support",
        min_tier=Tier.BUSINESS,
        category="support",
    ),
    Feature.SLA.value: FeatureDefinition(
        name="SLA",
        description="Guaranteed uptime and response time SLA",
        min_tier=Tier.ENTERPRISE,
        category="support",
    ),
}

# Read-only view; the registry is never modified after import.
FEATURE_REGISTRY: Mapping[str, FeatureDefinition] = MappingProxyType(_REGISTRY)


def get_feature_definition(feature: FeatureLike) -> Optional[FeatureDefinition]:
    """
    Look up a feature by exact name.

    Args:
        feature: Feature enum member or plain name

    Returns:
        FeatureDefinition, or None if the feature is not registered
    """
    return FEATURE_REGISTRY.get(feature_name(feature))


def minimum_tier(feature: FeatureLike) -> Optional[Tier]:
    """Return the lowest tier that includes ``feature``, or None if unknown."""
    definition = get_feature_definition(feature)
    if definition is None:
        return None
    return definition.min_tier


def all_features() -> Dict[str, FeatureDefinition]:
    """Return a copy of the full registry."""
    return dict(FEATURE_REGISTRY)


def features_for_tier(tier: Tier) -> List[str]:
    """
    List every registered feature included in ``tier``.

    Returns:
        Sorted list of feature names
    """
    return sorted(
        name for name, definition in FEATURE_REGISTRY.items()
        if tier.includes(definition.min_tier)
    )
