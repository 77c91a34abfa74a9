"""
Exception types and error classification for sts_credentials.

Provides:
- ErrorCategory enum for retry decisions
- Typed exception hierarchy for credential acquisition and publication
- Error classification utilities
"""

from enum import Enum
from typing import Optional, Sequence


class ErrorCategory(Enum):
    """
    Classification of error types for handling decisions.

    Categories:
        TRANSIENT: Temporary failures worth another attempt on the next refresh
                   (e.g., command could not be launched, pipe read failed)
        AUTH: Credentials are not available to hand out
        PERMANENT: Failures that will not succeed on retry without a change
                   (e.g., command output missing required keys, bad config)
        UNKNOWN: Unclassified errors
    """

    TRANSIENT = "transient"
    AUTH = "auth"
    PERMANENT = "permanent"
    UNKNOWN = "unknown"


class CredentialError(Exception):
    """
    Base exception for all credential errors.

    Attributes:
        message: Human-readable error description
        category: Error classification for retry decisions
        cause: Original exception if wrapping
        context: Additional context dict for debugging (never secret values)
    """

    category: ErrorCategory = ErrorCategory.UNKNOWN

    def __init__(
        self,
        message: str,
        cause: Optional[Exception] = None,
        context: Optional[dict] = None,
    ):
        self.message = message
        self.cause = cause
        self.context = context or {}
        super().__init__(message)

    @property
    def is_retryable(self) -> bool:
        """Whether a later refresh attempt may succeed."""
        return self.category in (ErrorCategory.TRANSIENT, ErrorCategory.UNKNOWN)

    def __str__(self) -> str:
        parts = [self.message]
        if self.cause:
            parts.append(f"Caused by: {self.cause}")
        return " | ".join(parts)


# =============================================================================
# Acquisition Errors
# =============================================================================


class AcquisitionError(CredentialError):
    """Base class for failures while running the token command."""

    category = ErrorCategory.TRANSIENT


class AcquisitionLaunchFailed(AcquisitionError):
    """Token command not found or could not be started."""

    pass


class AcquisitionIOError(AcquisitionError):
    """Reading the token command's output failed."""

    pass


class AcquisitionCommandFailed(AcquisitionError):
    """Token command exited with a non-zero status."""

    def __init__(
        self,
        message: str,
        exit_status: int,
        cause: Optional[Exception] = None,
        context: Optional[dict] = None,
    ):
        super().__init__(message, cause, context)
        self.exit_status = exit_status


class AcquisitionIncomplete(AcquisitionError):
    """Token command output lacks one or more required keys."""

    category = ErrorCategory.PERMANENT

    def __init__(
        self,
        message: str,
        missing_keys: Sequence[str] = (),
        cause: Optional[Exception] = None,
        context: Optional[dict] = None,
    ):
        super().__init__(message, cause, context)
        self.missing_keys = tuple(missing_keys)


# =============================================================================
# Publication / Configuration Errors
# =============================================================================


class NotInitialized(CredentialError):
    """Credentials requested before the first successful acquisition."""

    category = ErrorCategory.AUTH


class ConfigurationError(CredentialError):
    """Invalid configuration."""

    category = ErrorCategory.PERMANENT


# =============================================================================
# Error Classification Utilities
# =============================================================================


def classify_exception(exc: Exception) -> ErrorCategory:
    """
    Classify an exception into error category.

    Args:
        exc: Exception to classify

    Returns:
        Appropriate ErrorCategory
    """
    # Already classified
    if isinstance(exc, CredentialError):
        return exc.category

    # Missing binary or permissions won't fix themselves
    if isinstance(exc, (FileNotFoundError, PermissionError, NotADirectoryError)):
        return ErrorCategory.PERMANENT

    if isinstance(exc, OSError):
        return ErrorCategory.TRANSIENT

    return ErrorCategory.UNKNOWN


def is_retryable_error(exc: Exception) -> bool:
    """Check whether a later refresh attempt may succeed after this error."""
    return classify_exception(exc) in (ErrorCategory.TRANSIENT, ErrorCategory.UNKNOWN)
