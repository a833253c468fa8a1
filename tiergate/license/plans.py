"""
Copyright (C) 2026 Garudex Labs.  All Rights Reserved.
Tiergate, a product of Garudex Labs

Display metadata for each tier.
"""

from dataclasses import dataclass
from typing import Dict

from tiergate.license.model import Tier


@dataclass(frozen=True)
class Plan:
    """Display metadata for a tier."""
    tier: Tier
    name: str
    description: str
    price: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "tier": self.tier.value,
            "name": self.name,
            "description": self.description,
            "price": self.price,
        }


PLANS: Dict[Tier, Plan] = {
    Tier.FREE: Plan(
        tier=Tier.FREE,
        name="Community",
        description="Free self-hosted edition with core features",
        price="Free",
    ),
    Tier.PRO: Plan(
        tier=Tier.PRO,
        name="Pro",
        description="For professionals and small teams",
        price="$19/mo",
    ),
    Tier.BUSINESS: Plan(
        tier=Tier.BUSINESS,
        name="Business",
        description="For growing teams with advanced needs",
        price="$49/mo",
    ),
    Tier.ENTERPRISE: Plan(
        tier=Tier.ENTERPRISE,
        name="Enterprise",
        description="Custom solutions for large organizations",
        price="Custom",
    ),
}


def get_plan(tier: Tier) -> Plan:
    """Return the plan metadata for a tier."""
    return PLANS[tier]
