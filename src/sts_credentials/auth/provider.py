"""
Credential provider facade for hosting services.

CredentialsProvider is the request/response interface a host talks to.
StsCommandCredentialsProvider backs it with a CredentialCacheManager fed by
the configured token command. Enabling the provider performs the first
acquisition; a failure there is fatal and propagates to the host.
"""

import logging
from abc import ABC, abstractmethod
from typing import Callable, Optional

from sts_credentials.auth.acquirer import split_command
from sts_credentials.auth.bundle import CredentialBundle, RefreshOutcome
from sts_credentials.auth.manager import CredentialCacheManager
from sts_credentials.auth.refresher import BackgroundRefresher
from sts_credentials.common.audit import AuditEventType, get_audit_logger
from sts_credentials.common.exceptions import ConfigurationError, CredentialError
from sts_credentials.common.logging.context import set_log_context
from sts_credentials.common.logging.setup import get_logger
from sts_credentials.common.logging.utilities import log_exception, log_with_context
from sts_credentials.config import StsCredentialsConfig

logger = get_logger(__name__)


class CredentialsProvider(ABC):
    """Interface exposed to consumers of session credentials."""

    @abstractmethod
    def get_credentials(self) -> CredentialBundle:
        """Return the current bundle without refreshing."""

    @abstractmethod
    def refresh_credentials(self, force: bool = False) -> RefreshOutcome:
        """Refresh the bundle if due."""

    @abstractmethod
    def is_token_expiring_soon(self, seconds_threshold: int) -> bool:
        """True if fewer than seconds_threshold of validity remain."""

    def get_session_token(self) -> str:
        """Session token of the current bundle."""
        return self.get_credentials().session_token


class StsCommandCredentialsProvider(CredentialsProvider):
    """
    Provider that obtains session credentials by running a token command.

    Usage:
        provider = StsCommandCredentialsProvider(StsCredentialsConfig.from_env())
        provider.enable()
        client = boto3.client("s3", **provider.get_fresh_credentials().as_client_kwargs())
    """

    def __init__(
        self,
        config: StsCredentialsConfig,
        manager: Optional[CredentialCacheManager] = None,
        clock: Optional[Callable[[], int]] = None,
    ):
        errors = config.validate()
        if errors:
            raise ConfigurationError(
                "Invalid credential provider configuration: " + "; ".join(errors)
            )

        self.config = config
        self.identifier = config.identifier
        self._manager = manager or CredentialCacheManager(
            policy=config.to_policy(),
            clock=clock,
            provider_id=config.identifier,
        )
        self._refresher: Optional[BackgroundRefresher] = None

    @property
    def manager(self) -> CredentialCacheManager:
        return self._manager

    def enable(self) -> CredentialBundle:
        """
        Acquire the first bundle.

        Raises:
            CredentialError: The token command failed; the provider is unusable
        """
        set_log_context(provider_id=self.identifier)
        log_with_context(
            logger,
            logging.INFO,
            "Enabling credential provider",
            program=split_command(self.config.command)[0],
        )
        return self._manager.initialize(self.config.command)

    def disable(self) -> None:
        """Stop background refresh and drop the published bundle."""
        self.stop_background_refresh()
        self._manager.clear()
        log_with_context(logger, logging.INFO, "Credential provider disabled")

    def get_credentials(self) -> CredentialBundle:
        return self._manager.get_credentials()

    def refresh_credentials(self, force: bool = False) -> RefreshOutcome:
        return self._manager.refresh(self.config.command, force=force)

    def is_token_expiring_soon(self, seconds_threshold: int) -> bool:
        return self._manager.is_expiring_soon(seconds_threshold)

    def get_session_token(self) -> str:
        return self._manager.session_token

    def get_fresh_credentials(self) -> CredentialBundle:
        """
        Refresh if the renew-early margin is reached, then return the bundle.

        A failed refresh is logged and the previously published bundle is
        returned, even past its lifetime. Only a provider that never
        acquired anything raises.
        """
        if self._manager.is_expiring_soon(self.config.renew_early_seconds):
            try:
                self.refresh_credentials()
            except CredentialError as e:
                if not self._manager.is_initialized:
                    raise
                remaining = self._manager.seconds_remaining()
                log_exception(
                    logger,
                    e,
                    "Refresh failed, serving previously published credentials",
                    level=logging.WARNING,
                    include_traceback=False,
                    seconds_remaining=remaining,
                )
                if remaining <= 0:
                    get_audit_logger().log_credential_event(
                        event_type=AuditEventType.CRED_EXPIRATION_WARNING,
                        success=False,
                        provider_id=self.identifier,
                        seconds_remaining=remaining,
                    )
        return self._manager.get_credentials()

    def start_background_refresh(
        self, interval_seconds: Optional[float] = None
    ) -> BackgroundRefresher:
        """Start (or return the running) background refresher."""
        if self._refresher is not None and self._refresher.is_running:
            return self._refresher
        self._refresher = BackgroundRefresher(
            self,
            interval_seconds=interval_seconds or self.config.refresh_interval_seconds,
        )
        self._refresher.start()
        return self._refresher

    def stop_background_refresh(self, timeout: Optional[float] = 5.0) -> None:
        if self._refresher is not None:
            self._refresher.stop(timeout=timeout)
            self._refresher = None

    def __repr__(self) -> str:
        return f"StsCommandCredentialsProvider[id={self.identifier}]"
