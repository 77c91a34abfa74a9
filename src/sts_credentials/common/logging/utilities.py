"""Logging utility functions."""

import logging
from typing import Any

from sts_credentials.common.security import sanitize_error_message


def log_with_context(
    logger: logging.Logger,
    level: int,
    msg: str,
    **kwargs: Any,
) -> None:
    """
    Log with structured context fields.

    Args:
        logger: Logger instance
        level: Log level (logging.INFO, etc.)
        msg: Log message
        **kwargs: Additional context fields (program, exit_status, etc.)

    Example:
        log_with_context(
            logger, logging.INFO, "Credentials refreshed",
            access_key=mask_identifier(bundle.access_key_id),
            issued_at=bundle.issued_at,
        )
    """
    logger.log(level, msg, extra=kwargs)


def log_exception(
    logger: logging.Logger,
    exc: Exception,
    msg: str,
    level: int = logging.ERROR,
    include_traceback: bool = True,
    **kwargs: Any,
) -> None:
    """
    Log exception with context and optional traceback.

    Automatically extracts error_category from CredentialError subclasses.
    Sanitizes error messages to remove credential material.

    Args:
        logger: Logger instance
        exc: Exception to log
        msg: Context message
        level: Log level (default: ERROR)
        include_traceback: Include full traceback (default: True)
        **kwargs: Additional context fields

    Example:
        try:
            manager.refresh(command)
        except AcquisitionError as e:
            log_exception(logger, e, "Refresh failed", program=argv[0])
    """
    error_category = kwargs.get("error_category")
    if error_category is None and hasattr(exc, "category"):
        cat = exc.category
        error_category = cat.value if hasattr(cat, "value") else str(cat)
        kwargs["error_category"] = error_category

    kwargs["error_message"] = sanitize_error_message(str(exc))

    if include_traceback:
        logger.log(level, msg, exc_info=exc, extra=kwargs)
    else:
        logger.log(level, msg, extra=kwargs)
