"""
Token acquisition from an external command.

The command is expected to print lines of the form ``export NAME=VALUE`` on
stdout, at least for ACCESS_KEY, SECRET_KEY and SESSION_TOKEN, and exit 0.
stdin is closed and stderr is kept only for error messages.

Known limitation: the command string is split on literal single spaces.
There is no shell quoting or escaping, so an argument cannot contain a
space, and two consecutive spaces produce an empty argument.
"""

import logging
import re
import subprocess
import time
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from sts_credentials import metrics
from sts_credentials.auth.bundle import (
    ACCESS_KEY,
    REQUIRED_KEYS,
    SECRET_KEY,
    SESSION_TOKEN,
    CredentialBundle,
)
from sts_credentials.common.exceptions import (
    AcquisitionCommandFailed,
    AcquisitionError,
    AcquisitionIncomplete,
    AcquisitionIOError,
    AcquisitionLaunchFailed,
    ConfigurationError,
)
from sts_credentials.common.logging.setup import get_logger
from sts_credentials.common.logging.utilities import log_with_context
from sts_credentials.common.security import sanitize_error_message

logger = get_logger(__name__)

EXPORT_PATTERN = re.compile(r"^export\s+(\w+)=(.*)$", re.ASCII)

# Characters of stderr kept on AcquisitionCommandFailed
STDERR_TAIL_CHARS = 200

# Token command output codec; stderr is decoded leniently, stdout strictly
OUTPUT_ENCODING = "utf-8"


@dataclass(frozen=True)
class ProcessOutput:
    """Exit status and captured output of one token command run."""

    argv: Tuple[str, ...]
    exit_status: int
    lines: Tuple[str, ...]
    stderr: str = ""


Spawner = Callable[[Sequence[str]], ProcessOutput]


def split_command(command: str) -> List[str]:
    """
    Split a command string into argv on literal spaces.

    Args:
        command: Program and arguments separated by single spaces

    Returns:
        argv list, e.g. "echo export ACCESS_KEY=A" -> ["echo", "export", "ACCESS_KEY=A"]

    Raises:
        ConfigurationError: If the command is empty
    """
    if command is None or not command.strip():
        raise ConfigurationError("Token command is empty")
    return command.strip().split(" ")


def spawn(argv: Sequence[str]) -> ProcessOutput:
    """
    Run argv to completion and capture its output.

    Raises:
        AcquisitionLaunchFailed: Program missing or not executable
        AcquisitionIOError: Reading the process pipes failed, or stdout is
            not valid UTF-8
    """
    try:
        proc = subprocess.Popen(
            list(argv),
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
        )
    except (OSError, ValueError) as e:
        raise AcquisitionLaunchFailed(
            f"Could not launch token command '{argv[0]}'",
            cause=e,
            context={"program": argv[0]},
        ) from e

    try:
        stdout, stderr = proc.communicate()
    except OSError as e:
        proc.kill()
        proc.wait()
        raise AcquisitionIOError(
            f"Failed reading output of token command '{argv[0]}'",
            cause=e,
            context={"program": argv[0]},
        ) from e

    try:
        text = (stdout or b"").decode(OUTPUT_ENCODING)
    except UnicodeDecodeError as e:
        raise AcquisitionIOError(
            f"Output of token command '{argv[0]}' is not valid {OUTPUT_ENCODING}",
            cause=e,
            context={"program": argv[0], "exit_status": proc.returncode},
        ) from e

    return ProcessOutput(
        argv=tuple(argv),
        exit_status=proc.returncode,
        lines=tuple(text.splitlines()),
        stderr=(stderr or b"").decode(OUTPUT_ENCODING, errors="replace"),
    )


def parse_exports(lines: Iterable[str]) -> Dict[str, str]:
    """
    Collect ``export NAME=VALUE`` declarations.

    Values are kept verbatim, including spaces, quotes and further '='
    characters. A later declaration of the same name wins.
    """
    variables: Dict[str, str] = {}
    for line in lines:
        match = EXPORT_PATTERN.match(line)
        if match:
            variables[match.group(1)] = match.group(2)
    return variables


class TokenAcquirer:
    """
    Runs the token command and turns its exports into a CredentialBundle.

    Stateless between calls. Does not retry; callers own retry policy.
    """

    def __init__(
        self,
        spawner: Optional[Spawner] = None,
        clock: Optional[Callable[[], int]] = None,
    ):
        self._spawn = spawner or spawn
        self._clock = clock or (lambda: int(time.time()))

    def acquire(self, command: str) -> CredentialBundle:
        """
        Run command and build a bundle stamped with the launch second.

        Raises:
            ConfigurationError: Empty command
            AcquisitionLaunchFailed: Program missing or not executable
            AcquisitionIOError: Reading output failed
            AcquisitionCommandFailed: Non-zero exit status
            AcquisitionIncomplete: A required export is missing
        """
        argv = split_command(command)
        program = argv[0]

        log_with_context(
            logger, logging.DEBUG, "Running token command", program=program
        )

        # Stamped at launch so local expiry never trails the issuer's
        issued_at = self._clock()
        start = time.monotonic()
        try:
            output = self._spawn(argv)
        except AcquisitionError as e:
            metrics.record_acquisition_error(type(e).__name__)
            raise
        finally:
            metrics.acquisition_duration_seconds.observe(time.monotonic() - start)

        variables = parse_exports(output.lines)

        log_with_context(
            logger,
            logging.DEBUG,
            "Token command finished",
            program=program,
            exit_status=output.exit_status,
            parsed_keys=sorted(variables),
            duration_ms=round((time.monotonic() - start) * 1000, 1),
        )

        if output.exit_status != 0:
            stderr_tail = sanitize_error_message(
                output.stderr.strip()[-STDERR_TAIL_CHARS:]
            )
            metrics.record_acquisition_error(AcquisitionCommandFailed.__name__)
            raise AcquisitionCommandFailed(
                f"Token command '{program}' exited with status {output.exit_status}"
                + (f": {stderr_tail}" if stderr_tail else ""),
                exit_status=output.exit_status,
                context={"program": program, "parsed_keys": sorted(variables)},
            )

        missing = [key for key in REQUIRED_KEYS if key not in variables]
        if missing:
            metrics.record_acquisition_error(AcquisitionIncomplete.__name__)
            raise AcquisitionIncomplete(
                f"Token command '{program}' did not export {', '.join(missing)}",
                missing_keys=missing,
                context={"program": program, "parsed_keys": sorted(variables)},
            )

        return CredentialBundle(
            access_key_id=variables[ACCESS_KEY],
            secret_access_key=variables[SECRET_KEY],
            session_token=variables[SESSION_TOKEN],
            issued_at=issued_at,
        )
