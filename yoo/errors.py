"""Exception hierarchy shared by every yoo module.

The saga wraps whatever a step raised in a ``ScaffoldError`` together with
the effect log at the moment of failure.  Only the command layer decides
what to do with it (roll back, print, exit code).
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from yoo.models import SagaEffectLog


class YooError(Exception):
    """Base class for every error raised on purpose by yoo."""


class ConfigError(YooError):
    """Raised when a required setting is missing or invalid."""

    def __init__(self, missing: list[str] | tuple[str, ...], hint: str = "") -> None:
        self.missing = list(missing)
        message = f"Missing required settings: {', '.join(self.missing)}"
        if hint:
            message = f"{message}. {hint}"
        super().__init__(message)


class ProjectValidationError(YooError):
    """Raised when the project name or description is rejected."""

    def __init__(self, field: str, message: str) -> None:
        self.field = field
        super().__init__(f"Invalid {field}: {message}")


class UserCancelled(YooError):
    """Raised when the user declines a prompt or aborts it."""

    def __init__(self, message: str = "Operation cancelled by the user") -> None:
        super().__init__(message)


class GitFailure(str, Enum):
    """Coarse classification of a failed git command."""

    NOT_FOUND = "not-found"
    NETWORK_AUTH = "network-auth"
    CONFLICT = "conflict"
    UNKNOWN = "unknown"


_NOT_FOUND_MARKERS = (
    "repository not found",
    "does not appear to be a git repository",
    "not found",
    "does not exist",
)
_NETWORK_AUTH_MARKERS = (
    "authentication failed",
    "permission denied",
    "could not read username",
    "could not read password",
    "could not resolve host",
    "connection refused",
    "connection timed out",
    "unable to access",
    "host key verification failed",
    "timed out",
)
_CONFLICT_MARKERS = (
    "already exists",
    "would be overwritten",
    "not an empty directory",
    "conflict",
    "[rejected]",
    "non-fast-forward",
    "not a git repository",
)


def classify_git_failure(stderr: str) -> GitFailure:
    """Map git's stderr onto a ``GitFailure`` kind."""
    text = stderr.lower()
    # Auth failures often also say "not found" (GitLab hides private repos).
    if any(marker in text for marker in _NETWORK_AUTH_MARKERS):
        return GitFailure.NETWORK_AUTH
    if any(marker in text for marker in _CONFLICT_MARKERS):
        return GitFailure.CONFLICT
    if any(marker in text for marker in _NOT_FOUND_MARKERS):
        return GitFailure.NOT_FOUND
    return GitFailure.UNKNOWN


class VccError(YooError):
    """Raised when a git operation fails."""

    def __init__(
        self,
        operation: str,
        message: str,
        command: str = "",
        stderr: str = "",
        kind: GitFailure | None = None,
    ) -> None:
        self.operation = operation
        self.command = command
        self.stderr = stderr
        self.kind = kind or classify_git_failure(stderr)
        super().__init__(f"git {operation} failed ({self.kind.value}): {message}")


class ApiError(YooError):
    """Raised when an HTTP call fails at the transport, HTTP or envelope level."""

    def __init__(self, message: str, status: int | None = None, body: str = "") -> None:
        self.status = status
        self.body = body
        super().__init__(message)

    @classmethod
    def unexpected(cls, status: int, body: str, url: str = "") -> "ApiError":
        where = f" from {url}" if url else ""
        return cls(f"Unexpected HTTP {status}{where}: {body[:500]}", status=status, body=body)


class AuthenticationFailed(ApiError):
    """Raised when the credential is rejected even after a fresh login."""

    def __init__(self, message: str = "", status: int | None = None, body: str = "") -> None:
        super().__init__(
            message or "Authentication failed; check the configured email and password",
            status=status,
            body=body,
        )


class NoTemplatesAvailable(YooError):
    """Raised when the template catalog is empty."""

    def __init__(self) -> None:
        super().__init__("No templates are available on the registration service")


class SagaInvariantError(YooError):
    """Raised when a step is attempted before the effects it depends on."""


class ScaffoldError(YooError):
    """A saga step failed.

    Attributes:
        step: Name of the step that failed.
        cause: The exception the step raised.
        effects: Snapshot of the effect log at the moment of failure.
    """

    def __init__(self, step: str, cause: BaseException, effects: "SagaEffectLog") -> None:
        self.step = step
        self.cause = cause
        self.effects = effects
        super().__init__(f"Step '{step}' failed: {cause}")
