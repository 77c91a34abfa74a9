"""Log formatters for JSON and console output."""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict

from sts_credentials.common.logging.context import get_log_context
from sts_credentials.common.security import sanitize_error_message


class JSONFormatter(logging.Formatter):
    """
    JSON log formatter with context injection.

    Produces one JSON object per line for easy parsing with jq/grep.
    Error messages are passed through redaction before they are written.
    """

    # Fields to extract from LogRecord extras
    EXTRA_FIELDS = [
        # Acquisition
        "program",
        "exit_status",
        "parsed_keys",
        "missing_keys",
        "duration_ms",
        # Publication
        "access_key",
        "issued_at",
        "expires_at",
        "seconds_remaining",
        "elapsed_seconds",
        "cooldown_seconds",
        "outcome",
        "force",
        # Errors
        "error_category",
        "error_message",
        # Refresher
        "interval_seconds",
        "consecutive_failures",
    ]

    # Fields that may carry command output
    SANITIZED_FIELDS = ["error_message"]

    def _sanitize_value(self, key: str, value: Any) -> Any:
        if key in self.SANITIZED_FIELDS and isinstance(value, str):
            return sanitize_error_message(value)
        return value

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON with sanitized error messages."""
        log_entry: Dict[str, Any] = {
            "ts": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3]
            + "Z",
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }

        ctx = get_log_context()
        if ctx["provider_id"]:
            log_entry["provider_id"] = ctx["provider_id"]
        if ctx["component"]:
            log_entry["component"] = ctx["component"]

        # Add source location for DEBUG/ERROR
        if record.levelno in (logging.DEBUG, logging.ERROR, logging.CRITICAL):
            log_entry["file"] = f"{record.filename}:{record.lineno}"

        for field in self.EXTRA_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                log_entry[field] = self._sanitize_value(field, value)

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str, ensure_ascii=False)


class ConsoleFormatter(logging.Formatter):
    """
    Human-readable console formatter.

    Includes context when available.
    """

    def format(self, record: logging.LogRecord) -> str:
        ctx = get_log_context()

        parts = [
            datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
            record.levelname,
        ]

        if ctx["provider_id"]:
            parts.append(f"[{ctx['provider_id']}]")
        if ctx["component"]:
            parts.append(f"[{ctx['component']}]")

        prefix = " - ".join(parts)

        outcome = getattr(record, "outcome", None)
        if outcome:
            return f"{prefix} - {record.getMessage()} ({outcome})"

        return f"{prefix} - {record.getMessage()}"
