"""
Copyright (C) 2026 Garudex Labs.  All Rights Reserved.
Tiergate, a product of Garudex Labs

FastAPI integration for entitlement gating.

Gate misses are reported as 402 Payment Required ("upgrade required"),
never as 401/403, so clients can tell a plan limitation from an
authorization failure.

Endpoints (create_license_routes):
- GET /license: Current license (safe view)
- POST /license: Activate a license key
- DELETE /license: Deactivate and revert to the community edition
"""

from typing import Any, Callable, Dict, Union

from fastapi import Body, Depends, FastAPI, Request, status
from fastapi.responses import JSONResponse

from tiergate.exceptions import (
    EntitlementError,
    EntitlementRequiredError,
    LimitExceededError,
    VerificationError,
)
from tiergate.license.features import minimum_tier
from tiergate.license.manager import LicenseManager
from tiergate.license.model import FeatureLike, LimitType, Tier, feature_name
from tiergate.logging_config import get_logger

logger = get_logger(__name__)


def _success(data: Any) -> Dict[str, Any]:
    return {"success": True, "data": data}


def _error(code: str, message: str, details: Dict[str, Any]) -> Dict[str, Any]:
    return {"success": False, "error": {"code": code, "message": message, "details": details}}


def require_feature(manager: LicenseManager, feature: FeatureLike) -> Callable[[], None]:
    """
    Create a dependency that requires a feature on the current license.

    Example:
        >>> @app.post("/sso", dependencies=[Depends(require_feature(manager, Feature.SAML))])
        ... def configure_sso(): ...

    Raises:
        EntitlementRequiredError: From the dependency, when the feature is missing
    """
    name = feature_name(feature)

    def dependency() -> None:
        if manager.has_feature(name):
            return
        required = minimum_tier(name)
        raise EntitlementRequiredError(
            f"feature '{name}' is not available on the current plan",
            feature=name,
            required_tier=required.value if required is not None else None,
        )

    return dependency


def require_tier(manager: LicenseManager, tier: Union[Tier, str]) -> Callable[[], None]:
    """
    Create a dependency that requires the current tier to include ``tier``.

    Raises:
        EntitlementRequiredError: From the dependency, when the tier is too low
    """
    required = Tier(tier)

    def dependency() -> None:
        current = manager.get_tier()
        if current.includes(required):
            return
        raise EntitlementRequiredError(
            f"this feature requires {required.value} plan or higher",
            required_tier=required.value,
            current_tier=current.value,
        )

    return dependency


def enforce_limit(
    manager: LicenseManager,
    limit: Union[LimitType, str],
    usage_getter: Callable[..., int],
) -> Callable[..., None]:
    """
    Create a dependency that rejects requests once a usage limit is reached.

    Args:
        manager: License manager
        limit: Limit name (e.g. LimitType.MAX_USERS)
        usage_getter: FastAPI dependency returning the current usage count

    Raises:
        LimitExceededError: From the dependency, when usage is at or over the limit
    """
    limit_name = limit.value if isinstance(limit, LimitType) else str(limit)

    def dependency(current: int = Depends(usage_getter)) -> None:
        if manager.check_limit(limit_name, current):
            return
        raise LimitExceededError(limit_name, current, manager.get_limits().get(limit_name))

    return dependency


async def entitlement_error_handler(request: Request, exc: EntitlementError) -> JSONResponse:
    """Render an EntitlementError as 402 Payment Required."""
    logger.info("entitlement_required", code=exc.code, path=request.url.path)
    error = exc.to_dict()
    return JSONResponse(
        status_code=status.HTTP_402_PAYMENT_REQUIRED,
        content=_error(error["code"], error["message"], error["details"]),
    )


def install_entitlement_handlers(app: FastAPI) -> None:
    """
    Register the 402 handler for entitlement errors on ``app``.

    Example:
        >>> app = FastAPI()
        >>> install_entitlement_handlers(app)
    """
    app.add_exception_handler(EntitlementError, entitlement_error_handler)


def create_license_routes(
    app: FastAPI,
    manager: LicenseManager,
    prefix: str = "/license",
    check_interval_seconds: float = 0,
) -> None:
    """
    Create FastAPI routes for license activation.

    Args:
        app: FastAPI application instance
        manager: License manager backing the routes
        prefix: Route path
        check_interval_seconds: Revalidation interval for activated keys
            (0 disables periodic revalidation)

    Example:
        >>> app = FastAPI()
        >>> create_license_routes(app, manager)
    """

    @app.get(prefix)
    def get_license():
        """Get the current license."""
        return _success(manager.get_license_response().to_dict())

    @app.post(prefix)
    def activate_license(license_key: str = Body(..., embed=True)):
        """Activate a license key."""
        try:
            license = manager.load_license(license_key.strip())
        except VerificationError as e:
            logger.warning(f"License activation failed: {e.code}")
            return JSONResponse(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                content=_error(
                    "invalid_license",
                    "invalid or expired license key",
                    {"field": "license_key", "reason": e.code},
                ),
            )

        if check_interval_seconds > 0:
            manager.start_periodic_revalidation(license_key.strip(), check_interval_seconds)
        else:
            manager.stop_periodic_revalidation()

        logger.info(f"License activated, tier={license.tier.value}")
        return _success(manager.get_license_response().to_dict())

    @app.delete(prefix)
    def deactivate_license():
        """Deactivate the license and revert to the community edition."""
        manager.remove_license()
        logger.info("License deactivated, reverted to community edition")
        return _success(manager.get_license_response().to_dict())
