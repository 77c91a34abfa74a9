"""
Redaction helpers for credential material.

Nothing that leaves this package through logs, audit records or exception
messages may contain a secret key or session token. Access key identifiers
are not secret but are shortened to a recognisable prefix.
"""

import re

REDACTED = "[REDACTED]"

# Visible prefix length for identifiers (e.g. "ASIA" for temporary AWS keys)
IDENTIFIER_PREFIX_LENGTH = 4

# Patterns that may contain sensitive data in command output or error messages
SENSITIVE_PATTERNS = [
    (
        re.compile(r"(export\s+\w*(?:SECRET|TOKEN|PASSWORD|KEY)\w*=)\S.*", re.IGNORECASE),
        r"\1" + REDACTED,
    ),
    (re.compile(r'token=[^&\s"\']+', re.IGNORECASE), "token=" + REDACTED),
    (re.compile(r'secret=[^&\s"\']+', re.IGNORECASE), "secret=" + REDACTED),
    (re.compile(r'password=[^&\s"\']+', re.IGNORECASE), "password=" + REDACTED),
    (
        re.compile(r'x-amz-security-token=[^&\s"\']+', re.IGNORECASE),
        "x-amz-security-token=" + REDACTED,
    ),
    (re.compile(r"bearer\s+[a-zA-Z0-9\-_.]+", re.IGNORECASE), "bearer " + REDACTED),
]


def mask_identifier(value: str) -> str:
    """
    Shorten an access key identifier for display.

    Args:
        value: Identifier such as an access key id

    Returns:
        First characters followed by an ellipsis, or REDACTED when too short
    """
    if not value or len(value) <= IDENTIFIER_PREFIX_LENGTH:
        return REDACTED
    return value[:IDENTIFIER_PREFIX_LENGTH] + "..."


def sanitize_error_message(msg: str, max_length: int = 500) -> str:
    """
    Remove potentially sensitive data from error messages.

    Applies pattern-based redaction and truncates to max_length.

    Args:
        msg: Error message that may contain sensitive data
        max_length: Maximum length of returned message

    Returns:
        Sanitized and truncated error message
    """
    if not msg:
        return msg

    for pattern, replacement in SENSITIVE_PATTERNS:
        msg = pattern.sub(replacement, msg)

    if len(msg) > max_length:
        msg = msg[: max_length - 3] + "..."

    return msg
