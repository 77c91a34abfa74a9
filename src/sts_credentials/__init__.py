"""
sts_credentials - short-lived session credentials from an external token command.

Usage:
    from sts_credentials import StsCommandCredentialsProvider, StsCredentialsConfig

    provider = StsCommandCredentialsProvider(StsCredentialsConfig.from_env())
    provider.enable()
    token = provider.get_session_token()
"""

from sts_credentials.auth import (
    CredentialBundle,
    CredentialCacheManager,
    CredentialsProvider,
    ManagerState,
    RefreshOutcome,
    RefreshPolicy,
    StsCommandCredentialsProvider,
    TokenAcquirer,
)
from sts_credentials.common.exceptions import (
    AcquisitionCommandFailed,
    AcquisitionError,
    AcquisitionIncomplete,
    AcquisitionIOError,
    AcquisitionLaunchFailed,
    ConfigurationError,
    CredentialError,
    NotInitialized,
)
from sts_credentials.config import StsCredentialsConfig, load_config

__version__ = "0.1.0"

__all__ = [
    "AcquisitionCommandFailed",
    "AcquisitionError",
    "AcquisitionIOError",
    "AcquisitionIncomplete",
    "AcquisitionLaunchFailed",
    "ConfigurationError",
    "CredentialBundle",
    "CredentialCacheManager",
    "CredentialError",
    "CredentialsProvider",
    "ManagerState",
    "NotInitialized",
    "RefreshOutcome",
    "RefreshPolicy",
    "StsCommandCredentialsProvider",
    "StsCredentialsConfig",
    "TokenAcquirer",
    "load_config",
]
