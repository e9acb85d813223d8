"""Pick the package manager for this system."""

from __future__ import annotations

from dnf_tap.errors import InstallerNotFoundError
from dnf_tap.installer.dnf import DnfPackageManager
from dnf_tap.settings import Settings

_INSTALL_HINT = "dnf-tap only manages packages on rhel and fedora family systems with dnf."


async def resolve_package_manager(settings: Settings) -> DnfPackageManager:
    """Build a DnfPackageManager from settings.

    Checks that dnf and rpm are actually available.
    """
    manager = DnfPackageManager(options=settings.dnf_options, timeout=settings.command_timeout)
    if not await manager.is_available():
        raise InstallerNotFoundError(f"dnf or rpm is not installed on this system. {_INSTALL_HINT}")
    return manager


class DefaultPackageManagerResolver:
    """Adapter for PackageManagerResolverPort."""

    def __init__(self, settings: Settings) -> None:
        self._settings = settings

    async def resolve_package_manager(self) -> DnfPackageManager:
        return await resolve_package_manager(self._settings)
