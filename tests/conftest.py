"""
pytest configuration for sts_credentials tests.

Adds src directory to Python path for imports and provides a controllable
clock and a fake token command spawner.
"""

import sys
import threading
import time
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

import pytest

# Add src directory to Python path
src_dir = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_dir))

from sts_credentials.auth.acquirer import ProcessOutput, TokenAcquirer  # noqa: E402
from sts_credentials.auth.bundle import RefreshPolicy  # noqa: E402
from sts_credentials.auth.manager import CredentialCacheManager  # noqa: E402
from sts_credentials.common.audit import configure_audit_logger  # noqa: E402
from sts_credentials.common.logging.context import clear_log_context  # noqa: E402

START_TIME = 1_700_000_000

VALID_EXPORTS = (
    "export ACCESS_KEY=AK1",
    "export SECRET_KEY=SK1",
    "export SESSION_TOKEN=TOK1",
)


class FakeClock:
    """Integer epoch-second clock advanced by hand."""

    def __init__(self, now: int = START_TIME):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: int) -> None:
        self.now += seconds


class FakeSpawner:
    """Stands in for spawn(); records argv of every call."""

    def __init__(
        self,
        lines: Sequence[str] = VALID_EXPORTS,
        exit_status: int = 0,
        stderr: str = "",
        error: Optional[Exception] = None,
        delay: float = 0.0,
    ):
        self.lines = tuple(lines)
        self.exit_status = exit_status
        self.stderr = stderr
        self.error = error
        self.delay = delay
        self.calls: List[Tuple[str, ...]] = []
        self._lock = threading.Lock()

    def __call__(self, argv: Sequence[str]) -> ProcessOutput:
        with self._lock:
            self.calls.append(tuple(argv))
        if self.delay:
            time.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return ProcessOutput(
            argv=tuple(argv),
            exit_status=self.exit_status,
            lines=self.lines,
            stderr=self.stderr,
        )

    @property
    def call_count(self) -> int:
        with self._lock:
            return len(self.calls)


@pytest.fixture(autouse=True)
def reset_shared_state():
    """Keep audit logging off and log context empty between tests."""
    configure_audit_logger(False)
    clear_log_context()
    yield
    configure_audit_logger(False)
    clear_log_context()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def spawner() -> FakeSpawner:
    return FakeSpawner()


@pytest.fixture
def acquirer(spawner, clock) -> TokenAcquirer:
    return TokenAcquirer(spawner=spawner, clock=clock)


@pytest.fixture
def policy() -> RefreshPolicy:
    return RefreshPolicy(lifetime_seconds=300, renew_early_seconds=90)


@pytest.fixture
def manager(policy, acquirer, clock) -> CredentialCacheManager:
    return CredentialCacheManager(policy=policy, acquirer=acquirer, clock=clock)


@pytest.fixture
def make_spawner():
    """Factory for additional FakeSpawner instances."""
    return FakeSpawner
