"""Delegate process execution for az, ssh and scp.

Every external command azlh starts goes through run_command(), which:
- takes an argument list (no shell=True, no string concatenation)
- logs the command line at DEBUG with secrets redacted
- raises CommandError on a non-zero exit when check=True

No retries are performed. Asynchronous Azure operations are requested with
--no-wait by callers and never polled.

Public API:
    run_command: Run a delegate process
    run_az_json: Run an az command and decode its JSON output
    sanitize_command: Render a command line safe for logging
"""

import json
import logging
import subprocess
from typing import Any

from azlh.exceptions import AzlhError, CommandError

logger = logging.getLogger(__name__)

REDACTED = "[REDACTED]"

# Flags whose following value must never reach the logs
SENSITIVE_FLAGS = frozenset({"--admin-password", "--custom-data", "--password"})


def sanitize_command(cmd: list[str]) -> str:
    """Join a command for display, redacting values of sensitive flags.

    Example:
        >>> sanitize_command(["az", "vm", "create", "--admin-password", "Secret123"])
        'az vm create --admin-password [REDACTED]'
    """
    parts: list[str] = []
    redact_next = False
    for arg in cmd:
        if redact_next:
            parts.append(REDACTED)
            redact_next = False
            continue
        flag, sep, _value = arg.partition("=")
        if sep and flag in SENSITIVE_FLAGS:
            parts.append(f"{flag}={REDACTED}")
            continue
        parts.append(arg)
        redact_next = arg in SENSITIVE_FLAGS
    return " ".join(parts)


def run_command(
    cmd: list[str],
    *,
    capture: bool = True,
    check: bool = True,
    timeout: int | None = None,
) -> subprocess.CompletedProcess[str]:
    """Run a delegate command.

    Args:
        cmd: Command and arguments, e.g. ["az", "group", "list"]
        capture: Capture stdout/stderr (False lets the process use the terminal)
        check: Raise CommandError on non-zero exit
        timeout: Timeout in seconds (None = wait forever)

    Returns:
        subprocess.CompletedProcess with text output

    Raises:
        CommandError: If the command is missing, times out, or fails with check=True
    """
    logger.debug(f"Running: {sanitize_command(cmd)}")

    try:
        result: subprocess.CompletedProcess[str] = subprocess.run(
            cmd, capture_output=capture, text=True, check=False, timeout=timeout
        )
    except FileNotFoundError as e:
        # Standard exit code for command not found
        raise CommandError(cmd, 127, f"Command not found: {cmd[0] if cmd else 'unknown'}") from e
    except subprocess.TimeoutExpired as e:
        raise CommandError(cmd, -1, f"Timed out after {timeout}s") from e

    if result.returncode != 0:
        logger.debug(f"Command exited with code {result.returncode}: {cmd[0]}")
        if check:
            raise CommandError(cmd, result.returncode, result.stderr or "")

    return result


def run_az_json(cmd: list[str], *, timeout: int | None = None) -> Any:
    """Run an az command with JSON output and decode the result.

    Appends "--output json" when the caller did not pick an output format.

    Raises:
        CommandError: If az fails
        AzlhError: If the output is not valid JSON
    """
    if "--output" not in cmd and "-o" not in cmd:
        cmd = [*cmd, "--output", "json"]

    result = run_command(cmd, timeout=timeout)
    if not result.stdout.strip():
        return None

    try:
        return json.loads(result.stdout)
    except json.JSONDecodeError as e:
        raise AzlhError(f"Failed to parse output of '{sanitize_command(cmd)}'") from e


__all__ = ["run_az_json", "run_command", "sanitize_command"]
