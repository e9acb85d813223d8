"""One provider invocation: current state, candidates, and actions for a batch."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from dnf_tap.errors import UnresolvedPackageError
from dnf_tap.helper.base import HelperPort
from dnf_tap.installer.base import PackageManagerPort
from dnf_tap.installer.candidates import resolve_candidates
from dnf_tap.models import CommandResult, PackageAction, PackageState, Resolution

logger = logging.getLogger(__name__)


class DnfPackageProvider:
    """Acts on one batch of package names.

    Candidate resolution runs at most once per provider; build a new
    provider for each batch.
    """

    def __init__(
        self,
        helper: HelperPort,
        manager: PackageManagerPort,
        names: Sequence[str],
    ) -> None:
        self._helper = helper
        self._manager = manager
        self._names = tuple(names)
        self._resolution: Resolution | None = None

    @property
    def names(self) -> tuple[str, ...]:
        return self._names

    @property
    def resolution(self) -> Resolution:
        """Return the resolution from ``resolve()``.

        Raises:
            UnresolvedPackageError: If candidates have not been resolved yet.
        """
        if self._resolution is None:
            raise UnresolvedPackageError(
                f"Candidates for {', '.join(self._names)} have not been resolved yet."
            )
        return self._resolution

    async def resolve(self) -> Resolution:
        if self._resolution is None:
            self._resolution = await resolve_candidates(self._helper, self._names)
        return self._resolution

    async def candidate_versions(self) -> tuple[str | None, ...]:
        return (await self.resolve()).versions

    async def load_current_versions(self) -> list[str | None]:
        return [await self._manager.resolve_installed_version(name) for name in self._names]

    async def status(self) -> list[PackageState]:
        """Installed and candidate version of every package in the batch."""
        installed = await self.load_current_versions()
        resolution = await self.resolve()
        return [
            PackageState(
                name=name,
                real_name=resolution.real_names.get(name),
                installed_version=current,
                candidate_version=candidate,
            )
            for name, current, candidate in zip(
                self._names, installed, resolution.versions, strict=True
            )
        ]

    async def install(self, versions: Sequence[str | None] | None = None) -> CommandResult:
        versions = self._versions(versions)
        return await self._manager.install(self._names, versions, await self._resolve_for(versions))

    # dnf upgrade skips packages that are not installed; install upgrades
    # installed ones, so both actions share one code path.
    upgrade = install

    async def remove(self, versions: Sequence[str | None] | None = None) -> CommandResult:
        versions = self._versions(versions)
        return await self._manager.remove(self._names, versions, await self._resolve_for(versions))

    purge = remove

    async def run(
        self,
        action: PackageAction,
        versions: Sequence[str | None] | None = None,
    ) -> CommandResult:
        logger.info("Running %s for %s", action.value, ", ".join(self._names))
        match action:
            case PackageAction.INSTALL:
                return await self.install(versions)
            case PackageAction.UPGRADE:
                return await self.upgrade(versions)
            case PackageAction.REMOVE:
                return await self.remove(versions)
            case PackageAction.PURGE:
                return await self.purge(versions)
        raise ValueError(f"Unsupported package action: {action}")

    def _versions(self, versions: Sequence[str | None] | None) -> list[str | None]:
        if versions is None:
            return [None] * len(self._names)
        if len(versions) != len(self._names):
            raise ValueError(
                f"Got {len(versions)} versions for {len(self._names)} packages; "
                "pass one version (or an empty string) per package."
            )
        return list(versions)

    async def _resolve_for(self, versions: Sequence[str | None]) -> Resolution:
        # Only pinned packages need provider names.
        if any(versions):
            return await self.resolve()
        return self._resolution or Resolution()
