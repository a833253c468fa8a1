"""
Copyright (C) 2026 Garudex Labs.  All Rights Reserved.
Tiergate, a product of Garudex Labs

License manager: the process-wide holder of entitlement state.

The manager always holds a usable License. It starts on the community
license, swaps in a verified one on load, and falls back to community when
a held commercial license stops verifying. State is one immutable snapshot
replaced by reference under the write side of a reader/writer lock, so
every read observes a whole snapshot.
"""

import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Union

from tiergate.exceptions import VerificationError
from tiergate.license.features import features_for_tier, minimum_tier
from tiergate.license.model import (
    FeatureLike,
    License,
    LicenseType,
    Limits,
    LimitType,
    Tier,
    community_license,
    feature_name,
)
from tiergate.license.plans import get_plan
from tiergate.license.revalidation import RevalidationTask
from tiergate.license.rwlock import ReadWriteLock
from tiergate.license.verifier import LicenseVerifier
from tiergate.logging_config import (
    get_logger,
    log_license_demoted,
    log_license_loaded,
    log_license_verification_failure,
)

logger = get_logger(__name__)


Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LicenseEventType(str, Enum):
    LICENSE_LOADED = "license_loaded"
    LICENSE_REVALIDATION_FAILED = "license_revalidation_failed"
    LICENSE_DEMOTED = "license_demoted"
    COMMUNITY_EDITION_ENABLED = "community_edition_enabled"


@dataclass(frozen=True)
class LicenseEvent:
    """
    Audit event emitted on license state changes.

    Carries identifiers and tier only; customer fields never leave the
    License record.
    """
    event_type: LicenseEventType
    license_id: str
    tier: Tier
    timestamp: datetime

    def to_dict(self) -> Dict[str, str]:
        return {
            "event_type": self.event_type.value,
            "license_id": self.license_id,
            "tier": self.tier.value,
            "timestamp": self.timestamp.isoformat(),
        }


LicenseListener = Callable[[LicenseEvent], None]


@dataclass(frozen=True)
class LicenseResponse:
    """
    API-safe view of the current license.

    For the community edition the id, customer name and expiry are omitted.
    """
    type: LicenseType
    tier: Tier
    plan: Dict[str, str]
    features: List[str]
    limits: Dict[str, int]
    is_community: bool
    id: Optional[str] = None
    customer_name: Optional[str] = None
    expires_at: Optional[datetime] = None

    @classmethod
    def from_license(cls, license: License, is_community: bool) -> "LicenseResponse":
        features = set(features_for_tier(license.tier))
        if is_community:
            return cls(
                type=license.type,
                tier=license.tier,
                plan=get_plan(license.tier).to_dict(),
                features=sorted(features),
                limits=license.limits.to_dict(),
                is_community=True,
            )
        return cls(
            type=license.type,
            tier=license.tier,
            plan=get_plan(license.tier).to_dict(),
            features=sorted(features | license.features),
            limits=license.limits.to_dict(),
            is_community=False,
            id=license.id,
            customer_name=license.customer_name or None,
            expires_at=license.expires_at,
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "type": self.type.value,
            "tier": self.tier.value,
            "plan": dict(self.plan),
            "features": list(self.features),
            "limits": dict(self.limits),
            "is_community": self.is_community,
        }
        if self.id is not None:
            data["id"] = self.id
        if self.customer_name is not None:
            data["customer_name"] = self.customer_name
        if self.expires_at is not None:
            data["expires_at"] = self.expires_at.isoformat()
        return data


@dataclass(frozen=True)
class _LicenseState:
    license: License
    license_key: Optional[str]
    is_community: bool


def _community_state() -> _LicenseState:
    return _LicenseState(license=community_license(), license_key=None, is_community=True)


class LicenseManager:
    """
    Holds the current License and answers entitlement queries.

    Reads (has_feature, get_tier, check_limit, ...) take the shared side of
    the lock and never block each other. Writes verify outside the lock and
    take the exclusive side only to swap the snapshot.

    Example:
        >>> manager = LicenseManager()
        >>> try:
        ...     manager.load_license(key)
        ... except VerificationError:
        ...     manager.set_community_edition()
        >>> manager.has_feature(Feature.WEBHOOKS)
    """

    def __init__(
        self,
        verifier: Optional[LicenseVerifier] = None,
        clock: Optional[Clock] = None,
    ):
        """
        Initialize LicenseManager on the community license.

        Args:
            verifier: License verifier (defaults to the embedded public key)
            clock: Callable returning the current time (defaults to UTC now)
        """
        self._verifier = verifier or LicenseVerifier.from_embedded_key()
        self._clock = clock or _utcnow

        self._lock = ReadWriteLock()
        self._state = _community_state()

        self._listeners: List[LicenseListener] = []
        self._listeners_lock = threading.Lock()

        self._task_lock = threading.Lock()
        self._revalidation_task: Optional[RevalidationTask] = None

    # State changes

    def load_license(self, license_key: str) -> License:
        """
        Verify a license key and make it the current license.

        Args:
            license_key: Distributable license key string

        Returns:
            The verified License now in effect

        Raises:
            VerificationError: If verification fails; the held state is
                left untouched
        """
        try:
            license = self._verifier.verify(license_key, self._clock())
        except VerificationError as e:
            log_license_verification_failure(
                logger, e.code, license_id=getattr(e, "license_id", None), operation="load",
            )
            raise

        with self._lock.write_locked():
            self._state = _LicenseState(license=license, license_key=license_key, is_community=False)

        log_license_loaded(logger, license.id, license.tier.value)
        self._emit(LicenseEventType.LICENSE_LOADED, license.id, license.tier)
        return license

    def set_community_edition(self) -> None:
        """Replace the current license with the community license."""
        state = _community_state()
        with self._lock.write_locked():
            self._state = state

        logger.info("community_edition_enabled", event_type="community_edition_enabled")
        self._emit(LicenseEventType.COMMUNITY_EDITION_ENABLED, state.license.id, state.license.tier)

    def remove_license(self) -> None:
        """
        Deactivate the current license.

        Stops periodic revalidation and reverts to the community license.
        """
        self.stop_periodic_revalidation()
        self.set_community_edition()

    def revalidate(self, license_key: str) -> bool:
        """
        Re-verify ``license_key`` once against the manager clock.

        On success, refreshes the held license if it is still bound to
        ``license_key``. On failure, demotes to the community license if
        the held state is a commercial license bound to ``license_key``.

        Returns:
            True if the key still verifies, False otherwise
        """
        try:
            license = self._verifier.verify(license_key, self._clock())
        except VerificationError as e:
            return self._handle_revalidation_failure(license_key, e)

        with self._lock.write_locked():
            if self._state.license_key == license_key and not self._state.is_community:
                self._state = _LicenseState(license=license, license_key=license_key, is_community=False)
                refreshed = True
            else:
                refreshed = False

        if refreshed:
            logger.debug(f"License {license.id} revalidated")
        else:
            logger.debug(f"License {license.id} revalidated but no longer held, state unchanged")
        return True

    def _handle_revalidation_failure(self, license_key: str, error: VerificationError) -> bool:
        demoted: Optional[License] = None
        with self._lock.write_locked():
            state = self._state
            if not state.is_community and state.license_key == license_key:
                demoted = state.license
                self._state = _community_state()
            current = self._state.license

        failed_id = demoted.id if demoted is not None else getattr(error, "license_id", None)
        log_license_verification_failure(logger, error.code, license_id=failed_id, operation="revalidate")
        self._emit(
            LicenseEventType.LICENSE_REVALIDATION_FAILED,
            failed_id or current.id,
            current.tier,
        )

        if demoted is not None:
            log_license_demoted(
                logger, demoted.id, demoted.tier.value, current.tier.value, reason=error.code,
            )
            self._emit(LicenseEventType.LICENSE_DEMOTED, demoted.id, current.tier)

        return False

    # Periodic revalidation

    def start_periodic_revalidation(self, license_key: str, interval_seconds: float) -> RevalidationTask:
        """
        Start re-verifying ``license_key`` every ``interval_seconds``.

        A task already running for this manager is stopped and replaced.

        Returns:
            The running RevalidationTask handle
        """
        task = RevalidationTask(lambda: self.revalidate(license_key), interval_seconds)
        with self._task_lock:
            previous = self._revalidation_task
            self._revalidation_task = task
        if previous is not None:
            previous.stop(wait=True)
        task.start()
        return task

    def stop_periodic_revalidation(self, wait: bool = True) -> None:
        """Stop periodic revalidation. The current license stays in effect."""
        with self._task_lock:
            task = self._revalidation_task
            self._revalidation_task = None
        if task is not None:
            task.stop(wait=wait)

    @property
    def revalidation_task(self) -> Optional[RevalidationTask]:
        return self._revalidation_task

    # Queries

    def _snapshot(self) -> _LicenseState:
        with self._lock.read_locked():
            return self._state

    def get_license(self) -> License:
        return self._snapshot().license

    def get_tier(self) -> Tier:
        return self._snapshot().license.tier

    def get_limits(self) -> Limits:
        return self._snapshot().license.limits

    def is_community(self) -> bool:
        return self._snapshot().is_community

    def has_feature(self, feature: FeatureLike) -> bool:
        """
        Check whether the current license grants a feature.

        A feature is granted if it is listed explicitly on the license, or
        if its registered minimum tier is included in the license tier.
        Unknown features are only granted explicitly.
        """
        license = self._snapshot().license
        if license.has_explicit_feature(feature):
            return True
        required = minimum_tier(feature_name(feature))
        return required is not None and license.tier.includes(required)

    def check_limit(self, limit: Union[LimitType, str], current_usage: int) -> bool:
        """
        Check whether ``current_usage`` is still within a named limit.

        Returns:
            True if unlimited or below the limit; False if reached or the
            limit name is unknown
        """
        return self._snapshot().license.limits.check(limit, current_usage)

    def get_license_response(self) -> LicenseResponse:
        state = self._snapshot()
        return LicenseResponse.from_license(state.license, state.is_community)

    # Events

    def add_listener(self, listener: LicenseListener) -> None:
        """Register a callback invoked with every LicenseEvent."""
        with self._listeners_lock:
            self._listeners.append(listener)

    def remove_listener(self, listener: LicenseListener) -> None:
        with self._listeners_lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def _emit(self, event_type: LicenseEventType, license_id: str, tier: Tier) -> None:
        event = LicenseEvent(
            event_type=event_type,
            license_id=license_id,
            tier=tier,
            timestamp=self._clock(),
        )
        with self._listeners_lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(event)
            except Exception as e:
                logger.error(f"License event listener failed for {event_type.value}: {e}", exc_info=True)
