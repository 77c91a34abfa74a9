"""
Credential cache with cooldown-limited, serialized refresh.

States:
- UNINITIALIZED: nothing published yet
- VALID: bundle published, more than the renew-early margin left
- STALE: bundle published, inside the margin or past its lifetime

Reads (get_credentials, is_expiring_soon, state) never take a lock: the
manager holds one reference to an immutable CredentialBundle and replaces it
with a single assignment. Only refresh() and initialize() take the refresh
lock, and the token command runs while it is held. A failed acquisition never
replaces the published bundle.

Usage:
    manager = CredentialCacheManager(RefreshPolicy(lifetime_seconds=300))
    manager.initialize(command)
    creds = manager.get_credentials()
    if manager.is_expiring_soon(90):
        manager.refresh(command)
"""

import logging
import threading
import time
from dataclasses import dataclass, replace
from typing import Callable, Optional

from sts_credentials import metrics
from sts_credentials.auth.acquirer import TokenAcquirer
from sts_credentials.auth.bundle import (
    CredentialBundle,
    ManagerState,
    RefreshOutcome,
    RefreshPolicy,
)
from sts_credentials.common.audit import AuditEventType, get_audit_logger
from sts_credentials.common.exceptions import CredentialError, NotInitialized
from sts_credentials.common.logging.setup import get_logger
from sts_credentials.common.logging.utilities import log_exception, log_with_context
from sts_credentials.common.security import mask_identifier, sanitize_error_message

logger = get_logger(__name__)


@dataclass
class RefreshStats:
    """Counters for refresh monitoring."""

    attempts: int = 0
    successes: int = 0
    failures: int = 0
    skipped: int = 0
    superseded: int = 0
    last_success_time: Optional[int] = None
    last_failure_time: Optional[int] = None
    last_error: Optional[str] = None


class CredentialCacheManager:
    """
    Owns the published credential bundle and its refresh policy.

    Thread-safe for concurrent access.
    """

    def __init__(
        self,
        policy: Optional[RefreshPolicy] = None,
        acquirer: Optional[TokenAcquirer] = None,
        clock: Optional[Callable[[], int]] = None,
        provider_id: Optional[str] = None,
    ):
        self.policy = policy or RefreshPolicy()
        self.provider_id = provider_id
        self._clock = clock or (lambda: int(time.time()))
        self._acquirer = acquirer or TokenAcquirer(clock=self._clock)

        self._bundle: Optional[CredentialBundle] = None
        self._refresh_lock = threading.Lock()

        self._stats = RefreshStats()
        self._stats_lock = threading.Lock()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_credentials(self) -> CredentialBundle:
        """
        Return the published bundle without blocking or refreshing.

        Raises:
            NotInitialized: No acquisition has succeeded yet
        """
        bundle = self._bundle
        if bundle is None:
            raise NotInitialized(
                "Credentials requested before the first successful acquisition",
                context={"provider_id": self.provider_id},
            )
        return bundle

    @property
    def session_token(self) -> str:
        """Session token of the published bundle (raises NotInitialized when unset)."""
        return self.get_credentials().session_token

    @property
    def is_initialized(self) -> bool:
        return self._bundle is not None

    @property
    def last_refresh_at(self) -> Optional[int]:
        """Issue second of the published bundle, or None."""
        bundle = self._bundle
        return bundle.issued_at if bundle is not None else None

    def seconds_remaining(self) -> int:
        """Validity left on the published bundle (negative once expired)."""
        return self.policy.seconds_remaining(self._bundle, self._clock())

    def is_expiring_soon(self, threshold_seconds: int) -> bool:
        """True if fewer than threshold_seconds of validity remain."""
        return self.seconds_remaining() < threshold_seconds

    @property
    def state(self) -> ManagerState:
        bundle = self._bundle
        if bundle is None:
            return ManagerState.UNINITIALIZED
        remaining = self.policy.seconds_remaining(bundle, self._clock())
        if remaining < self.policy.renew_early_seconds:
            return ManagerState.STALE
        return ManagerState.VALID

    @property
    def stats(self) -> RefreshStats:
        """Get copy of current statistics."""
        with self._stats_lock:
            return replace(self._stats)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def initialize(self, command: str) -> CredentialBundle:
        """
        Perform the first acquisition synchronously.

        Raises:
            CredentialError: Acquisition failed; nothing is published
        """
        log_with_context(
            logger,
            logging.INFO,
            "Initializing credentials",
            cooldown_seconds=self.policy.cooldown_seconds,
        )
        with self._refresh_lock:
            return self._acquire_and_publish(command, event=AuditEventType.CRED_ACQUIRED)

    def refresh(self, command: str, force: bool = False) -> RefreshOutcome:
        """
        Replace the published bundle unless one was issued within the cooldown.

        Concurrent callers serialize on the refresh lock; a caller that
        waited re-checks after acquiring it, so overlapping calls launch the
        token command at most once. force=True ignores the cooldown but still
        skips if another caller published while this one waited.

        Returns:
            REFRESHED, SKIPPED_COOLDOWN, or SKIPPED_SUPERSEDED for a forced
            refresh that another caller completed first

        Raises:
            CredentialError: Acquisition failed; the previous bundle stays published
        """
        seen = self._bundle
        if not force and self.policy.in_cooldown(seen, self._clock()):
            return self._skip(seen)

        with self._refresh_lock:
            current = self._bundle
            if force:
                if current is not seen:
                    return self._skip(current, RefreshOutcome.SKIPPED_SUPERSEDED)
            elif self.policy.in_cooldown(current, self._clock()):
                return self._skip(current)

            log_with_context(
                logger,
                logging.INFO,
                "Refreshing credentials",
                force=force,
                seconds_remaining=self.policy.seconds_remaining(current, self._clock()),
            )
            self._acquire_and_publish(command, event=AuditEventType.CRED_REFRESH)
            return RefreshOutcome.REFRESHED

    def clear(self) -> None:
        """Drop the published bundle (provider disposal)."""
        with self._refresh_lock:
            self._bundle = None
        get_audit_logger().log_credential_event(
            event_type=AuditEventType.AUTH_CACHE_CLEARED,
            success=True,
            provider_id=self.provider_id,
        )
        log_with_context(logger, logging.DEBUG, "Cleared credential cache")

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _acquire_and_publish(
        self, command: str, event: AuditEventType
    ) -> CredentialBundle:
        """Run the acquirer and publish on success (called under refresh lock)."""
        audit = get_audit_logger()
        with self._stats_lock:
            self._stats.attempts += 1

        try:
            bundle = self._acquirer.acquire(command)
        except CredentialError as e:
            now = self._clock()
            error_message = sanitize_error_message(str(e))
            with self._stats_lock:
                self._stats.failures += 1
                self._stats.last_failure_time = now
                self._stats.last_error = error_message
            metrics.record_refresh("failed")
            audit.log_credential_event(
                event_type=AuditEventType.CRED_REFRESH_FAILURE,
                success=False,
                provider_id=self.provider_id,
                error_message=error_message,
                error_type=type(e).__name__,
            )
            previous = self._bundle
            log_exception(
                logger,
                e,
                "Credential acquisition failed",
                level=logging.ERROR if previous is None else logging.WARNING,
                include_traceback=False,
                seconds_remaining=self.policy.seconds_remaining(previous, now)
                if previous is not None
                else None,
            )
            raise

        # Single assignment publishes credentials and issue time together
        self._bundle = bundle

        with self._stats_lock:
            self._stats.successes += 1
            self._stats.last_success_time = bundle.issued_at
            self._stats.last_error = None
        metrics.record_refresh("refreshed")
        metrics.record_published(bundle.issued_at)
        audit.log_credential_event(
            event_type=event,
            success=True,
            provider_id=self.provider_id,
            access_key=mask_identifier(bundle.access_key_id),
            issued_at=bundle.issued_at,
            expires_at=bundle.expires_at(self.policy.lifetime_seconds),
        )
        log_with_context(
            logger,
            logging.INFO,
            "Published new credentials",
            access_key=mask_identifier(bundle.access_key_id),
            issued_at=bundle.issued_at,
            expires_at=bundle.expires_at(self.policy.lifetime_seconds),
        )
        return bundle

    def _skip(
        self,
        bundle: Optional[CredentialBundle],
        outcome: RefreshOutcome = RefreshOutcome.SKIPPED_COOLDOWN,
    ) -> RefreshOutcome:
        now = self._clock()
        superseded = outcome is RefreshOutcome.SKIPPED_SUPERSEDED
        with self._stats_lock:
            if superseded:
                self._stats.superseded += 1
            else:
                self._stats.skipped += 1
        metrics.record_refresh(outcome.value)
        log_with_context(
            logger,
            logging.DEBUG,
            "Credentials were refreshed while waiting, skipping forced refresh"
            if superseded
            else "Last refresh is within cooldown, skipping",
            elapsed_seconds=bundle.age(now) if bundle is not None else None,
            cooldown_seconds=self.policy.cooldown_seconds,
            outcome=outcome.value,
        )
        get_audit_logger().log_credential_event(
            event_type=AuditEventType.CRED_REFRESH_SKIPPED,
            success=True,
            provider_id=self.provider_id,
            reason=outcome.value,
        )
        return outcome