"""dnf/rpm package manager."""

from __future__ import annotations

import logging
import shutil
from collections.abc import Sequence
from dataclasses import dataclass

from dnf_tap.installer.subprocess import run_command, run_command_checked
from dnf_tap.models import CommandResult, Resolution

logger = logging.getLogger(__name__)

_RPM_QUERY_FORMAT = "%{EPOCHNUM}:%{VERSION}-%{RELEASE}.%{ARCH}\n"


def build_tokens(
    names: Sequence[str],
    versions: Sequence[str | None],
    resolution: Resolution,
) -> list[str]:
    """Pair names with versions into dnf package arguments.

    An unpinned package (None or "" version) is passed as requested so dnf
    picks what to act on. A pinned one becomes ``<provider name>-<version>``;
    when nothing provides the name, the requested name is used instead.

    Raises:
        ValueError: If names and versions differ in length.
        UnresolvedPackageError: If a pinned name is missing from ``resolution``.
    """
    tokens: list[str] = []
    for name, version in zip(names, versions, strict=True):
        if not version:
            tokens.append(name)
            continue
        # No provider: fall back to the requested name rather than emit "-<version>".
        real_name = resolution.real_name_for(name) or name
        tokens.append(f"{real_name}-{version}")
    return tokens


@dataclass(frozen=True, slots=True)
class DnfPackageManager:
    """Installs and removes rpm packages with dnf; queries them with rpm.

    ``install`` upgrades packages that are already present.
    """

    options: tuple[str, ...] = ()
    timeout: float = 900.0

    async def is_available(self) -> bool:
        return shutil.which("dnf") is not None and shutil.which("rpm") is not None

    async def resolve_installed_version(self, name: str) -> str | None:
        """Return the installed EPOCH:VERSION-RELEASE.ARCH providing ``name``.

        A nonzero rpm exit means nothing installed provides it, not an error.
        """
        result = await run_command(
            ["rpm", "--queryformat", _RPM_QUERY_FORMAT, "--whatprovides", "-q", name],
            timeout=self.timeout,
        )
        if not result.ok:
            logger.debug("Did not find installed_version for %s", name)
            return None
        version = result.stdout.strip()
        logger.debug("Found installed_version of %s for %s", version, name)
        return version

    async def install(
        self,
        names: Sequence[str],
        versions: Sequence[str | None],
        resolution: Resolution,
    ) -> CommandResult:
        """Install (or upgrade) all packages in one dnf transaction.

        Raises:
            PackageCommandError: If dnf exits nonzero.
        """
        return await run_command_checked(
            self.build_command("install", names, versions, resolution),
            timeout=self.timeout,
        )

    async def remove(
        self,
        names: Sequence[str],
        versions: Sequence[str | None],
        resolution: Resolution,
    ) -> CommandResult:
        """Remove all packages in one dnf transaction.

        Raises:
            PackageCommandError: If dnf exits nonzero.
        """
        return await run_command_checked(
            self.build_command("remove", names, versions, resolution),
            timeout=self.timeout,
        )

    def build_command(
        self,
        verb: str,
        names: Sequence[str],
        versions: Sequence[str | None],
        resolution: Resolution,
    ) -> list[str]:
        return ["dnf", *self.options, "-y", verb, *build_tokens(names, versions, resolution)]
