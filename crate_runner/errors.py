"""Error kinds raised while resolving a file location to a build command."""

from __future__ import annotations

from pathlib import Path


class ResolverError(Exception):
    """Base class for every fatal resolution error.

    Each subclass carries the process exit code the CLI reports for it.
    """

    exit_code = 1

    def __init__(self, message: str, *, path: str | Path | None = None,
                 line: int | None = None):
        self.reason = message
        self.path = path
        self.line = line
        if path is not None:
            location = f"{path}:{line}" if line is not None else str(path)
            message = f"{location}: {message}"
        elif line is not None:
            message = f"line {line}: {message}"
        super().__init__(message)


class ConfigurationError(ResolverError):
    """A manifest or config file is missing, unreadable or inconsistent."""

    exit_code = 3


class UnknownFileError(ResolverError):
    """The path does not live under any workspace member."""

    exit_code = 4


class UnclassifiableFileError(ResolverError):
    """The path is inside a member but matches no file convention."""

    exit_code = 5


class MalformedSourceError(ResolverError):
    """The structural scan found unbalanced or unterminated syntax."""

    exit_code = 6


class BuildToolNotFoundError(ResolverError):
    """The build tool executable could not be started."""

    exit_code = 127
