"""Exception hierarchy for azlh.

All errors raised by azlh derive from AzlhError so the CLI can report them
uniformly. Precondition errors (ConfigError, MissingArgumentError,
ValidationError) are raised before any delegate process is started.
"""


class AzlhError(Exception):
    """Base exception for azlh errors."""

    exit_code = 1


class ConfigError(AzlhError):
    """Raised when required configuration is missing or invalid."""

    pass


class ValidationError(AzlhError):
    """Raised when a local input fails validation."""

    pass


class MissingArgumentError(AzlhError):
    """Raised when a required positional argument is missing.

    Carries the labels of the expected parameters so callers can print
    them as a numbered usage list.
    """

    def __init__(self, labels: list[str], hints: list[str] | None = None):
        self.labels = list(labels)
        self.hints = list(hints or [])
        super().__init__(format_usage(self.labels, self.hints))


class CommandError(AzlhError):
    """Raised when a delegate command exits with a non-zero status."""

    def __init__(self, cmd: list[str], returncode: int, stderr: str = ""):
        self.cmd = list(cmd)
        self.returncode = returncode
        self.stderr = stderr or ""
        detail = self.stderr.strip()
        message = f"'{cmd[0] if cmd else 'command'}' exited with code {returncode}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


def format_usage(labels: list[str], hints: list[str] | None = None) -> str:
    """Render parameter labels as 'ParamN: label' lines.

    Example:
        >>> print(format_usage(["VM name", "(Optional) SSH command"]))
        Param1: VM name
        Param2: (Optional) SSH command
    """
    lines = [f"Param{idx}: {label}" for idx, label in enumerate(labels, 1)]
    lines.extend(hints or [])
    return "\n".join(lines)


def require_args(labels: list[str], *values: str | None, hints: list[str] | None = None) -> None:
    """Raise MissingArgumentError if any of the required values is empty.

    Only the leading len(values) labels are required; trailing labels
    document optional parameters.
    """
    if any(not value for value in values):
        raise MissingArgumentError(labels, hints)


__all__ = [
    "AzlhError",
    "CommandError",
    "ConfigError",
    "MissingArgumentError",
    "ValidationError",
    "format_usage",
    "require_args",
]
