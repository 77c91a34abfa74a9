"""Tests for BackgroundRefresher."""

import threading
import time

import pytest

from sts_credentials.auth.bundle import RefreshOutcome
from sts_credentials.auth.refresher import BackgroundRefresher
from sts_credentials.common.exceptions import AcquisitionLaunchFailed


class StubProvider:
    """Provider double returning scripted outcomes."""

    identifier = "stub"

    def __init__(self, results):
        self.results = list(results)
        self.calls = 0
        self.called = threading.Event()

    def refresh_credentials(self):
        self.calls += 1
        self.called.set()
        result = self.results[min(self.calls, len(self.results)) - 1]
        if isinstance(result, Exception):
            raise result
        return result


class TestTick:
    def test_returns_outcome(self):
        refresher = BackgroundRefresher(StubProvider([RefreshOutcome.REFRESHED]))

        assert refresher.tick() == RefreshOutcome.REFRESHED
        assert refresher.consecutive_failures == 0

    def test_failure_is_counted_not_raised(self):
        error = AcquisitionLaunchFailed("Could not launch token command 'get-token'")
        refresher = BackgroundRefresher(StubProvider([error, error]))

        assert refresher.tick() is None
        assert refresher.tick() is None
        assert refresher.consecutive_failures == 2

    def test_unexpected_error_is_counted_not_raised(self):
        refresher = BackgroundRefresher(StubProvider([ValueError("bad state")]))

        assert refresher.tick() is None
        assert refresher.consecutive_failures == 1

    def test_success_resets_failures(self):
        error = AcquisitionLaunchFailed("Could not launch token command 'get-token'")
        refresher = BackgroundRefresher(
            StubProvider([error, RefreshOutcome.SKIPPED_COOLDOWN])
        )

        refresher.tick()
        refresher.tick()

        assert refresher.consecutive_failures == 0
        assert refresher.ticks == 2

    def test_invalid_interval(self):
        with pytest.raises(ValueError):
            BackgroundRefresher(StubProvider([]), interval_seconds=0)


class TestThread:
    def test_runs_until_stopped(self):
        provider = StubProvider([RefreshOutcome.SKIPPED_COOLDOWN])
        refresher = BackgroundRefresher(provider, interval_seconds=0.01)

        refresher.start()
        assert provider.called.wait(timeout=5)
        refresher.stop(timeout=5)

        assert not refresher.is_running
        calls_after_stop = provider.calls
        time.sleep(0.05)
        assert provider.calls == calls_after_stop

    def test_keeps_running_after_failures(self):
        error = AcquisitionLaunchFailed("Could not launch token command 'get-token'")
        provider = StubProvider([error])
        refresher = BackgroundRefresher(provider, interval_seconds=0.01)

        refresher.start()
        deadline = time.monotonic() + 5
        while provider.calls < 3 and time.monotonic() < deadline:
            time.sleep(0.01)
        refresher.stop(timeout=5)

        assert provider.calls >= 3
        assert refresher.consecutive_failures >= 3

    def test_unexpected_error_does_not_stop_thread(self):
        provider = StubProvider([RuntimeError("audit file unavailable")])
        refresher = BackgroundRefresher(provider, interval_seconds=0.01)

        refresher.start()
        deadline = time.monotonic() + 5
        while provider.calls < 3 and time.monotonic() < deadline:
            time.sleep(0.01)
        alive = refresher.is_running
        refresher.stop(timeout=5)

        assert alive
        assert provider.calls >= 3
        assert refresher.consecutive_failures >= 3
