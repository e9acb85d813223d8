"""Package manager protocol -- what a provider needs from dnf and rpm."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from dnf_tap.models import CommandResult, Resolution


class PackageManagerPort(Protocol):
    """Port for querying and mutating installed packages."""

    async def is_available(self) -> bool:
        """Check if dnf and rpm are installed on the system."""
        ...

    async def resolve_installed_version(self, name: str) -> str | None:
        """Return the installed EPOCH:VERSION-RELEASE.ARCH of ``name``, or None."""
        ...

    async def install(
        self,
        names: Sequence[str],
        versions: Sequence[str | None],
        resolution: Resolution,
    ) -> CommandResult:
        """Install (or upgrade) every package in one transaction."""
        ...

    async def remove(
        self,
        names: Sequence[str],
        versions: Sequence[str | None],
        resolution: Resolution,
    ) -> CommandResult:
        """Remove every package in one transaction."""
        ...


class PackageManagerResolverPort(Protocol):
    """Port for obtaining a ready-to-use package manager."""

    async def resolve_package_manager(self) -> PackageManagerPort:
        """Return the package manager, or raise InstallerNotFoundError."""
        ...
