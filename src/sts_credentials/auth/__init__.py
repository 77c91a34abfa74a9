"""
Session credential acquisition and caching.

Components:
    - TokenAcquirer: runs the token command and parses its exports
    - CredentialCacheManager: publishes bundles, enforces cooldown, serializes refresh
    - StsCommandCredentialsProvider: host-facing facade over the manager
    - BackgroundRefresher: daemon thread calling refresh on an interval
"""

from .acquirer import ProcessOutput, TokenAcquirer, parse_exports, spawn, split_command
from .bundle import (
    REQUIRED_KEYS,
    CredentialBundle,
    ManagerState,
    RefreshOutcome,
    RefreshPolicy,
)
from .manager import CredentialCacheManager, RefreshStats
from .provider import CredentialsProvider, StsCommandCredentialsProvider
from .refresher import BackgroundRefresher

__all__ = [
    "BackgroundRefresher",
    "CredentialBundle",
    "CredentialCacheManager",
    "CredentialsProvider",
    "ManagerState",
    "ProcessOutput",
    "REQUIRED_KEYS",
    "RefreshOutcome",
    "RefreshPolicy",
    "RefreshStats",
    "StsCommandCredentialsProvider",
    "TokenAcquirer",
    "parse_exports",
    "spawn",
    "split_command",
]
