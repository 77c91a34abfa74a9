"""
Command-line entry point.

Usage:
    python -m sts_credentials --command "/usr/local/bin/get-sts-token --role etl" --once
    python -m sts_credentials --config config.yaml

With --once the first acquisition is performed and a summary printed (no
secret material). Otherwise credentials are kept fresh by the background
refresher until SIGINT/SIGTERM.
"""

import argparse
import logging
import signal
import sys
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

import yaml
from dotenv import load_dotenv

from sts_credentials.auth.provider import StsCommandCredentialsProvider
from sts_credentials.common.audit import configure_audit_logger
from sts_credentials.common.exceptions import ConfigurationError, CredentialError
from sts_credentials.common.logging.setup import setup_logging
from sts_credentials.common.security import mask_identifier
from sts_credentials.config import load_config

logger = logging.getLogger("sts_credentials")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="sts_credentials",
        description="Keep short-lived session credentials fresh from a token command",
    )

    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to YAML config file (default: ./config.yaml if present)",
    )

    parser.add_argument(
        "--command",
        type=str,
        default=None,
        help="Token command (overrides config and STS_COMMAND)",
    )

    parser.add_argument(
        "--interval",
        type=int,
        default=None,
        help="Background refresh interval in seconds",
    )

    parser.add_argument(
        "--once",
        action="store_true",
        help="Acquire credentials once, print a summary and exit",
    )

    parser.add_argument(
        "--log-dir",
        type=Path,
        default=None,
        help="Directory for log files (default: ./logs)",
    )

    parser.add_argument(
        "--no-file-log",
        action="store_true",
        help="Log to console only",
    )

    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    return parser.parse_args(argv)


def _format_epoch(seconds: int) -> str:
    return datetime.fromtimestamp(seconds, tz=timezone.utc).isoformat()


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point.

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    load_dotenv()

    args = parse_args(argv)

    overrides = {}
    if args.command:
        overrides["command"] = args.command
    if args.interval:
        overrides["refresh_interval_seconds"] = args.interval

    try:
        config = load_config(config_path=args.config, overrides=overrides)
    except (OSError, ValueError, TypeError, yaml.YAMLError) as e:
        print(f"Failed to load configuration: {e}", file=sys.stderr)
        return 2

    setup_logging(
        log_dir=args.log_dir,
        console_level=logging.DEBUG if args.verbose else logging.INFO,
        provider_id=config.identifier,
        file_logging=not args.no_file_log,
    )
    configure_audit_logger(config.audit_logging_enabled, config.audit_log_path)

    try:
        provider = StsCommandCredentialsProvider(config)
        bundle = provider.enable()
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        return 2
    except CredentialError as e:
        logger.error(f"Initial credential acquisition failed: {e}")
        return 1

    if args.once:
        print(f"Access key: {mask_identifier(bundle.access_key_id)}")
        print(f"Issued at:  {_format_epoch(bundle.issued_at)}")
        print(f"Expires at: {_format_epoch(bundle.expires_at(config.lifetime_seconds))}")
        return 0

    shutdown = threading.Event()

    def handler(signum, frame):
        logger.info(f"Received signal {signum}, shutting down")
        shutdown.set()

    signal.signal(signal.SIGINT, handler)
    signal.signal(signal.SIGTERM, handler)

    provider.start_background_refresh()
    try:
        while not shutdown.wait(timeout=1.0):
            pass
    finally:
        provider.disable()

    return 0


if __name__ == "__main__":
    sys.exit(main())
