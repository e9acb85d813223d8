"""Domain models for dnf-tap. All frozen dataclasses -- no mutation after creation."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum

from dnf_tap.errors import UnresolvedPackageError

# ─── Enumerations ─────────────────────────────────────────────


class PackageAction(StrEnum):
    INSTALL = "install"
    UPGRADE = "upgrade"
    REMOVE = "remove"
    PURGE = "purge"


class HelperState(StrEnum):
    NOT_STARTED = "not_started"
    RUNNING = "running"
    RESTARTING = "restarting"


# ─── Command Models ───────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Exit status and captured output of one finished command."""

    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


# ─── Resolution Models ────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class Provides:
    """One helper answer: the providing package and its candidate version.

    Either field is None when the helper returned fewer tokens.
    """

    real_name: str | None = None
    version: str | None = None

    @classmethod
    def from_tokens(cls, tokens: list[str]) -> Provides:
        real_name = tokens[0] if len(tokens) > 0 else None
        version = tokens[1] if len(tokens) > 1 else None
        return cls(real_name=real_name, version=version)


@dataclass(frozen=True, slots=True)
class Resolution:
    """Result of resolving one batch of requested package names.

    ``real_names`` maps every requested name to its provider name (None when
    nothing provides it). ``versions`` holds the candidate version for each
    requested name, in request order.
    """

    real_names: dict[str, str | None] = field(default_factory=dict)
    versions: tuple[str | None, ...] = ()

    def real_name_for(self, name: str) -> str | None:
        """Return the provider name for ``name``.

        Raises:
            UnresolvedPackageError: If ``name`` was not part of this batch.
        """
        if name not in self.real_names:
            raise UnresolvedPackageError(
                f"Package '{name}' was not resolved before being pinned to a version. "
                "Resolve candidates for it first."
            )
        return self.real_names[name]


# ─── Tool Return Models ───────────────────────────────────────


@dataclass(frozen=True, slots=True)
class PackageState:
    name: str
    real_name: str | None
    installed_version: str | None
    candidate_version: str | None


@dataclass(frozen=True, slots=True)
class ActionResult:
    success: bool
    action: str
    packages: list[str]
    message: str
    command: list[str] = field(default_factory=list)
    command_output: str = ""
