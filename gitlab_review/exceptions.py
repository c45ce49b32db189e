"""Custom error hierarchy for gitlab-review."""

from __future__ import annotations


class ReviewError(RuntimeError):
    """Base error for the CLI. Anything raising this ends the session."""


class ConfigError(ReviewError):
    """Raised when a configuration file or value is unusable."""


class ValidationError(ReviewError):
    """Raised when user input fails validation."""


class CacheError(ReviewError):
    """Raised when the dependency cache root cannot be prepared."""


class MergeRequestError(ReviewError):
    """Raised when merge request info cannot be fetched or understood."""


class GitCommandError(ReviewError):
    """Raised when an underlying git command fails."""

    def __init__(
        self,
        command: list[str],
        returncode: int,
        *,
        stdout: str | None = None,
        stderr: str | None = None,
    ):
        self.command = command
        self.returncode = returncode
        self.stdout = stdout or ""
        self.stderr = stderr or ""
        message = f"git command failed (exit {returncode}): {' '.join(command)}"
        details = "\n".join(
            section
            for section in (self.stdout.strip(), self.stderr.strip())
            if section
        )
        if details:
            message = f"{message}\n{details}"
        super().__init__(message)


__all__ = [
    "ReviewError",
    "ConfigError",
    "ValidationError",
    "CacheError",
    "MergeRequestError",
    "GitCommandError",
]
