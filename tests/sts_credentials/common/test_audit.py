"""Tests for the credential audit logger."""

import json

from sts_credentials.common.audit import (
    AuditEventType,
    AuditLogger,
    configure_audit_logger,
    get_audit_logger,
)


def _records(path):
    return [json.loads(line) for line in path.read_text().splitlines() if line]


class TestAuditLogger:
    def test_disabled_by_default_writes_nothing(self, tmp_path):
        audit = AuditLogger()

        audit.log_credential_event(AuditEventType.CRED_ACQUIRED, success=True)

        assert audit.enabled is False
        assert list(tmp_path.iterdir()) == []

    def test_writes_json_lines(self, tmp_path):
        path = tmp_path / "audit" / "audit.log"
        audit = configure_audit_logger(True, str(path))

        audit.log_credential_event(
            AuditEventType.CRED_REFRESH,
            success=True,
            provider_id="etl",
            access_key="ASIA...",
            issued_at=1_700_000_000,
        )
        audit.log_credential_event(
            AuditEventType.CRED_REFRESH_FAILURE,
            success=False,
            provider_id="etl",
            error_message="Token command exited with status 1",
        )

        first, second = _records(path)
        assert first["event_type"] == "cred.refresh"
        assert first["success"] is True
        assert first["component"] == "sts_credentials"
        assert first["access_key"] == "ASIA..."
        assert "error_message" not in first
        assert second["event_type"] == "cred.refresh.failure"
        assert second["error_message"] == "Token command exited with status 1"

    def test_reconfigure_disables(self, tmp_path):
        path = tmp_path / "audit.log"
        audit = configure_audit_logger(True, str(path))
        configure_audit_logger(False)

        audit.log_credential_event(AuditEventType.AUTH_CACHE_CLEARED, success=True)

        assert path.read_text() == ""

    def test_enabled_without_path_stays_disabled(self):
        audit = AuditLogger()
        audit.configure(True, None)

        assert audit.enabled is False


def test_get_audit_logger_is_singleton():
    assert get_audit_logger() is get_audit_logger()
