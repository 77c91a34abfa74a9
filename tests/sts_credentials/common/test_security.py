"""Tests for credential redaction helpers."""

from sts_credentials.common.security import (
    REDACTED,
    mask_identifier,
    sanitize_error_message,
)


class TestMaskIdentifier:
    def test_keeps_prefix(self):
        assert mask_identifier("ASIAXYZ123456") == "ASIA..."

    def test_short_values_fully_redacted(self):
        assert mask_identifier("ASIA") == REDACTED
        assert mask_identifier("") == REDACTED


class TestSanitizeErrorMessage:
    def test_redacts_export_lines(self):
        msg = "stderr: export SECRET_KEY=abc123 export SESSION_TOKEN=tok"

        result = sanitize_error_message(msg)

        assert "abc123" not in result
        assert "=tok" not in result
        assert "export SECRET_KEY=" + REDACTED in result

    def test_redacts_query_style_secrets(self):
        msg = "GET /?X-Amz-Security-Token=FQoGZXIvYXdz&token=abc failed"

        result = sanitize_error_message(msg)

        assert "FQoGZXIvYXdz" not in result
        assert "abc" not in result

    def test_redacts_bearer(self):
        assert "eyJhbGci" not in sanitize_error_message("Authorization: Bearer eyJhbGci.x.y")

    def test_truncates(self):
        result = sanitize_error_message("x" * 600, max_length=100)

        assert len(result) == 100
        assert result.endswith("...")

    def test_plain_message_unchanged(self):
        assert sanitize_error_message("Token command exited with status 3") == (
            "Token command exited with status 3"
        )

    def test_empty_passthrough(self):
        assert sanitize_error_message("") == ""
