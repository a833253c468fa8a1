"""
HTTP integration for entitlement gating.
"""

from tiergate.gateway.entitlements import (
    create_license_routes,
    enforce_limit,
    entitlement_error_handler,
    install_entitlement_handlers,
    require_feature,
    require_tier,
)

__all__ = [
    "create_license_routes",
    "enforce_limit",
    "entitlement_error_handler",
    "install_entitlement_handlers",
    "require_feature",
    "require_tier",
]
