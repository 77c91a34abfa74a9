"""
Background refresh loop.

Calls the provider's refresh_credentials() on a fixed interval from a daemon
thread. Ticks that land inside the cooldown are no-ops, so the interval can
be much shorter than the credential lifetime. Failures are logged and the
loop keeps going; the previously published bundle stays in place.
"""

import logging
import threading
from typing import Optional

from sts_credentials.auth.bundle import RefreshOutcome
from sts_credentials.common.exceptions import CredentialError
from sts_credentials.common.logging.setup import get_logger
from sts_credentials.common.logging.utilities import log_exception, log_with_context

logger = get_logger(__name__)


class BackgroundRefresher:
    """Daemon thread that keeps a provider's credentials fresh."""

    def __init__(self, provider, interval_seconds: float = 30.0):
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be > 0")
        self.provider = provider
        self.interval_seconds = interval_seconds

        self._shutdown_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self.consecutive_failures = 0
        self.ticks = 0

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.is_running:
            return
        self._shutdown_event.clear()
        self._thread = threading.Thread(
            target=self._run,
            name=f"sts-refresher-{getattr(self.provider, 'identifier', 'provider')}",
            daemon=True,
        )
        self._thread.start()
        log_with_context(
            logger,
            logging.INFO,
            "Background refresher started",
            interval_seconds=self.interval_seconds,
        )

    def stop(self, timeout: Optional[float] = 5.0) -> None:
        """Signal the loop to exit and wait up to timeout for it."""
        self._shutdown_event.set()
        if self._thread is not None:
            # A refresh in flight is not interrupted; the token command may outlive timeout
            self._thread.join(timeout=timeout)
        log_with_context(logger, logging.INFO, "Background refresher stopped")

    def tick(self) -> Optional[RefreshOutcome]:
        """Run one refresh attempt; returns None if it raised anything."""
        self.ticks += 1
        try:
            outcome = self.provider.refresh_credentials()
        except CredentialError as e:
            self.consecutive_failures += 1
            log_exception(
                logger,
                e,
                "Background refresh failed",
                level=logging.WARNING,
                include_traceback=False,
                consecutive_failures=self.consecutive_failures,
            )
            return None
        except Exception as e:
            # Unexpected errors must not end the loop
            self.consecutive_failures += 1
            log_exception(
                logger,
                e,
                "Background refresh failed unexpectedly",
                level=logging.ERROR,
                consecutive_failures=self.consecutive_failures,
            )
            return None

        self.consecutive_failures = 0
        return outcome

    def _run(self) -> None:
        while not self._shutdown_event.is_set():
            self.tick()
            if self._shutdown_event.wait(timeout=self.interval_seconds):
                break
