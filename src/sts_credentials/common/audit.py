"""
Audit logging for credential lifecycle events.

Provides a structured audit trail for:
- Credential acquisition (initial and refreshed bundles)
- Refresh attempts skipped by cooldown or failed
- Expiration warnings
- Provider disposal

Audit records are single-line JSON written to a dedicated file, separate
from application logs. Records never carry secret keys or session tokens.
"""

import json
import logging
import threading
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

AUDIT_LOGGER_NAME = "sts_credentials.audit"


class AuditEventType(Enum):
    """Types of auditable credential events."""

    CRED_ACQUIRED = "cred.acquired"
    CRED_REFRESH = "cred.refresh"
    CRED_REFRESH_SKIPPED = "cred.refresh.skipped"
    CRED_REFRESH_FAILURE = "cred.refresh.failure"
    CRED_EXPIRATION_WARNING = "cred.expiration.warning"
    AUTH_CACHE_CLEARED = "auth.cache.cleared"


class AuditLogger:
    """
    Audit logger for credential operations.

    Disabled until configure() is called with enabled=True; while disabled
    every log call is a no-op.

    Usage:
        audit = get_audit_logger()
        audit.log_credential_event(
            event_type=AuditEventType.CRED_ACQUIRED,
            provider_id="sts-command",
            success=True,
            access_key="ASIA...",
        )
    """

    def __init__(self) -> None:
        self.enabled = False
        self.audit_log_path: Optional[str] = None
        self._handler: Optional[logging.Handler] = None
        self._lock = threading.Lock()

        self._logger = logging.getLogger(AUDIT_LOGGER_NAME)
        self._logger.setLevel(logging.INFO)
        self._logger.propagate = False  # Don't propagate to root logger

    def configure(self, enabled: bool, audit_log_path: Optional[str] = None) -> None:
        """
        Enable or disable the audit file.

        Args:
            enabled: Whether records are written
            audit_log_path: Target file (required when enabled)
        """
        with self._lock:
            if self._handler is not None:
                self._logger.removeHandler(self._handler)
                self._handler.close()
                self._handler = None

            self.enabled = bool(enabled and audit_log_path)
            self.audit_log_path = audit_log_path

            if self.enabled:
                Path(audit_log_path).parent.mkdir(parents=True, exist_ok=True)
                handler = logging.FileHandler(audit_log_path, encoding="utf-8")
                handler.setLevel(logging.INFO)
                handler.setFormatter(logging.Formatter("%(message)s"))  # JSON only
                self._logger.addHandler(handler)
                self._handler = handler

    def _create_audit_record(
        self, event_type: AuditEventType, success: bool, **kwargs: Any
    ) -> Dict[str, Any]:
        record = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "event_type": event_type.value,
            "success": success,
            "component": "sts_credentials",
        }

        for key, value in kwargs.items():
            if value is not None:
                record[key] = value

        return record

    def log_credential_event(
        self,
        event_type: AuditEventType,
        success: bool,
        provider_id: Optional[str] = None,
        error_message: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        """
        Log credential management event.

        Args:
            event_type: Type of credential event
            success: Whether operation succeeded
            provider_id: Provider identifier (optional)
            error_message: Redacted error message if failed (optional)
            **kwargs: Additional context
        """
        if not self.enabled:
            return

        record = self._create_audit_record(
            event_type=event_type,
            success=success,
            provider_id=provider_id,
            error_message=error_message,
            **kwargs,
        )
        self._logger.info(json.dumps(record, default=str))


_audit_logger: Optional[AuditLogger] = None
_audit_lock = threading.Lock()


def get_audit_logger() -> AuditLogger:
    """Get the process-wide audit logger instance."""
    global _audit_logger
    if _audit_logger is None:
        with _audit_lock:
            if _audit_logger is None:
                _audit_logger = AuditLogger()
    return _audit_logger


def configure_audit_logger(enabled: bool, audit_log_path: Optional[str] = None) -> AuditLogger:
    """Configure and return the process-wide audit logger."""
    audit = get_audit_logger()
    audit.configure(enabled, audit_log_path)
    return audit
