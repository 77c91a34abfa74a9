"""
Credential provider configuration.

Values come from a YAML file (optional ``sts_credentials:`` section), then
environment variables, then explicit overrides. Load from environment only
with StsCredentialsConfig.from_env().
"""

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from sts_credentials.auth.bundle import (
    DEFAULT_LIFETIME_SECONDS,
    DEFAULT_RENEW_EARLY_SECONDS,
    RefreshPolicy,
)

# Default config path: config.yaml in the working directory
DEFAULT_CONFIG_PATH = Path("config.yaml")

CONFIG_SECTION = "sts_credentials"

# Environment variable -> field name
ENV_VARS = {
    "STS_COMMAND": "command",
    "STS_LIFETIME_SECONDS": "lifetime_seconds",
    "STS_RENEW_EARLY_SECONDS": "renew_early_seconds",
    "STS_REFRESH_INTERVAL_SECONDS": "refresh_interval_seconds",
    "STS_PROVIDER_ID": "identifier",
    "STS_AUDIT_LOGGING_ENABLED": "audit_logging_enabled",
    "STS_AUDIT_LOG_PATH": "audit_log_path",
}


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def _deep_merge(base: Dict[str, Any], overlay: Dict[str, Any]) -> Dict[str, Any]:
    """Deep merge overlay into base dict."""
    result = base.copy()
    for key, value in overlay.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


@dataclass
class StsCredentialsConfig:
    """Token command and refresh timing for the credential provider.

    All timing values in seconds.
    """

    # Program and arguments, split on single spaces (no shell quoting)
    command: str = ""

    # Refresh policy
    lifetime_seconds: int = DEFAULT_LIFETIME_SECONDS
    renew_early_seconds: int = DEFAULT_RENEW_EARLY_SECONDS

    # Background refresher tick
    refresh_interval_seconds: int = 30

    identifier: str = "sts-command"

    # Audit trail
    audit_logging_enabled: bool = False
    audit_log_path: str = "logs/audit.log"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StsCredentialsConfig":
        """Build from a dict, ignoring unknown keys and coercing types."""
        known = {f.name for f in fields(cls)}
        values: Dict[str, Any] = {}
        for key, value in data.items():
            if key not in known or value is None:
                continue
            if key in ("lifetime_seconds", "renew_early_seconds", "refresh_interval_seconds"):
                value = int(value)
            elif key == "audit_logging_enabled" and isinstance(value, str):
                value = _parse_bool(value)
            elif key in ("command", "identifier", "audit_log_path"):
                value = str(value)
            values[key] = value
        return cls(**values)

    @classmethod
    def from_env(cls) -> "StsCredentialsConfig":
        """Load configuration from environment variables.

        Required environment variables:
            STS_COMMAND: Token command, e.g. "/usr/local/bin/get-sts-token --role etl"

        Optional environment variables (with defaults):
            STS_LIFETIME_SECONDS: 300 (default)
            STS_RENEW_EARLY_SECONDS: 90 (default)
            STS_REFRESH_INTERVAL_SECONDS: 30 (default)
            STS_PROVIDER_ID: sts-command (default)
            STS_AUDIT_LOGGING_ENABLED: false (default)
            STS_AUDIT_LOG_PATH: logs/audit.log (default)

        Raises:
            ValueError: If STS_COMMAND is missing or blank
        """
        command = os.getenv("STS_COMMAND", "")
        if not command.strip():
            raise ValueError("STS_COMMAND environment variable is required")

        return cls.from_dict(_env_values())

    def validate(self) -> List[str]:
        """
        Validate configuration.

        Returns:
            List of validation error messages (empty if valid)
        """
        errors = []

        if not self.command or not self.command.strip():
            errors.append("command is required and must not be empty")
        if self.lifetime_seconds <= 0:
            errors.append("lifetime_seconds must be > 0")
        if self.renew_early_seconds < 0:
            errors.append("renew_early_seconds must be >= 0")
        elif self.renew_early_seconds >= self.lifetime_seconds:
            errors.append("renew_early_seconds must be < lifetime_seconds")
        if self.refresh_interval_seconds < 1:
            errors.append("refresh_interval_seconds must be >= 1")
        if self.audit_logging_enabled and not self.audit_log_path:
            errors.append("audit_log_path is required when audit logging is enabled")

        return errors

    def is_valid(self) -> bool:
        """Check if configuration is valid."""
        return len(self.validate()) == 0

    def to_policy(self) -> RefreshPolicy:
        """Build the refresh policy for the cache manager."""
        return RefreshPolicy(
            lifetime_seconds=self.lifetime_seconds,
            renew_early_seconds=self.renew_early_seconds,
        )


def _env_values() -> Dict[str, Any]:
    """Collect set environment variables keyed by field name."""
    values: Dict[str, Any] = {}
    for env_name, field_name in ENV_VARS.items():
        value = os.getenv(env_name)
        if value is not None and value != "":
            values[field_name] = value
    return values


def load_config(
    config_path: Optional[Path] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> StsCredentialsConfig:
    """
    Load configuration from YAML file, environment and overrides.

    Args:
        config_path: Path to YAML config file (default: ./config.yaml if present)
        overrides: Dict of overrides applied last

    Returns:
        StsCredentialsConfig instance

    Raises:
        FileNotFoundError: If an explicit config_path doesn't exist
        ValueError: If the file or its section is not a mapping
        yaml.YAMLError: If config file is invalid YAML
    """
    if config_path is not None and not Path(config_path).exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    path = Path(config_path) if config_path is not None else DEFAULT_CONFIG_PATH

    data: Dict[str, Any] = {}
    if path.exists():
        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
        if not isinstance(raw, dict):
            raise ValueError(f"Config file {path} must contain a mapping")
        data = raw.get(CONFIG_SECTION, raw) or {}
        if not isinstance(data, dict):
            raise ValueError(f"'{CONFIG_SECTION}' section in {path} must be a mapping")

    data = _deep_merge(data, _env_values())

    if overrides:
        data = _deep_merge(data, overrides)

    return StsCredentialsConfig.from_dict(data)
