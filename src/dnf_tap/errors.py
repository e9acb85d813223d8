"""Exception hierarchy for dnf-tap.

All exceptions inherit from DnfTapError (single catch point).
Messages are written for LLM consumption -- clear, actionable, no stack traces.
"""

from __future__ import annotations


class DnfTapError(Exception):
    """Base exception for all dnf-tap errors."""


class HelperError(DnfTapError):
    """Error talking to the dnf helper subprocess."""


class HelperStartError(HelperError):
    """The helper subprocess could not be spawned."""


class HelperTransportError(HelperError):
    """Broken pipe, end of stream, or malformed reply from the helper.

    Recoverable: the helper is restarted and the request retried.
    """


class HelperTimeoutError(HelperError):
    """The helper did not answer within the overall request deadline."""


class HelperRetriesExhaustedError(HelperError):
    """Every attempt to reach the helper failed.

    The last transport failure is chained as ``__cause__``.
    """

    def __init__(self, message: str, *, attempts: int) -> None:
        super().__init__(message)
        self.attempts = attempts


class UnresolvedPackageError(DnfTapError):
    """A package was pinned to a version before its provider name was resolved."""


class PackageCommandError(DnfTapError):
    """A dnf or rpm command exited with a nonzero status."""

    def __init__(
        self,
        message: str,
        *,
        command: list[str],
        returncode: int,
        stdout: str = "",
        stderr: str = "",
    ) -> None:
        super().__init__(message)
        self.command = command
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr


class InstallerNotFoundError(DnfTapError):
    """dnf or rpm is not installed on this system."""
