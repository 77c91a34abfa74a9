"""
Credential value types.

CredentialBundle is the only thing the cache manager publishes. It is
frozen and carries its own issue time, so swapping the manager's single
reference replaces credentials and timestamp together.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional

from sts_credentials.common.exceptions import ConfigurationError
from sts_credentials.common.security import REDACTED, mask_identifier

# Keys the token command must export
ACCESS_KEY = "ACCESS_KEY"
SECRET_KEY = "SECRET_KEY"
SESSION_TOKEN = "SESSION_TOKEN"
REQUIRED_KEYS = (ACCESS_KEY, SECRET_KEY, SESSION_TOKEN)

# Refresh timing defaults (seconds)
DEFAULT_LIFETIME_SECONDS = 5 * 60
DEFAULT_RENEW_EARLY_SECONDS = 90


class ManagerState(Enum):
    """Lifecycle state of the credential cache."""

    UNINITIALIZED = "uninitialized"  # No bundle published yet
    VALID = "valid"  # Bundle present, outside the renew-early margin
    STALE = "stale"  # Bundle present, inside the margin or past lifetime


class RefreshOutcome(Enum):
    """Result of a refresh call that did not raise."""

    REFRESHED = "refreshed"
    SKIPPED_COOLDOWN = "skipped"
    # Forced refresh found a bundle published while it waited for the lock
    SKIPPED_SUPERSEDED = "superseded"


@dataclass(frozen=True)
class CredentialBundle:
    """Session credentials with the epoch second they were issued."""

    access_key_id: str
    secret_access_key: str = field(repr=False)
    session_token: str = field(repr=False)
    issued_at: int

    def expires_at(self, lifetime_seconds: int) -> int:
        """Epoch second at which this bundle stops being valid."""
        return self.issued_at + lifetime_seconds

    def age(self, now: int) -> int:
        """Seconds since issue."""
        return now - self.issued_at

    def as_client_kwargs(self) -> Dict[str, str]:
        """Keyword arguments accepted by boto3 clients and sessions."""
        return {
            "aws_access_key_id": self.access_key_id,
            "aws_secret_access_key": self.secret_access_key,
            "aws_session_token": self.session_token,
        }

    def as_env(self) -> Dict[str, str]:
        """The variables as the token command exported them."""
        return {
            ACCESS_KEY: self.access_key_id,
            SECRET_KEY: self.secret_access_key,
            SESSION_TOKEN: self.session_token,
        }

    def describe(self) -> Dict[str, object]:
        """Loggable summary; never includes secret material."""
        return {
            "access_key": mask_identifier(self.access_key_id),
            "secret_key": REDACTED,
            "session_token": REDACTED,
            "issued_at": self.issued_at,
        }


@dataclass(frozen=True)
class RefreshPolicy:
    """
    Validity window and renew-early margin for published bundles.

    A bundle is due for renewal once fewer than renew_early_seconds of its
    lifetime remain. Routine refreshes are skipped while the current bundle
    is younger than cooldown_seconds (lifetime - renew_early).
    """

    lifetime_seconds: int = DEFAULT_LIFETIME_SECONDS
    renew_early_seconds: int = DEFAULT_RENEW_EARLY_SECONDS

    def __post_init__(self):
        if self.lifetime_seconds <= 0:
            raise ConfigurationError(
                f"lifetime_seconds must be > 0, got {self.lifetime_seconds}"
            )
        if not 0 <= self.renew_early_seconds < self.lifetime_seconds:
            raise ConfigurationError(
                "renew_early_seconds must be >= 0 and < lifetime_seconds, "
                f"got {self.renew_early_seconds} (lifetime {self.lifetime_seconds})"
            )

    @property
    def cooldown_seconds(self) -> int:
        return self.lifetime_seconds - self.renew_early_seconds

    def seconds_remaining(self, bundle: Optional[CredentialBundle], now: int) -> int:
        """Validity left for bundle; an unset bundle counts as issued at epoch 0."""
        issued_at = bundle.issued_at if bundle is not None else 0
        return issued_at + self.lifetime_seconds - now

    def in_cooldown(self, bundle: Optional[CredentialBundle], now: int) -> bool:
        """True while bundle is too young for a routine refresh."""
        if bundle is None:
            return False
        return bundle.age(now) < self.cooldown_seconds
