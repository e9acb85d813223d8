"""install_packages tool -- install or upgrade rpm packages with dnf."""

from __future__ import annotations

from mcp.server.fastmcp import Context

from dnf_tap.models import PackageAction
from dnf_tap.tools._helpers import run_package_action


async def install_packages(
    packages: list[str],
    ctx: Context,
    versions: list[str] | None = None,
    upgrade: bool = False,
) -> dict[str, object]:
    """Install rpm packages with dnf in a single transaction.

    Packages that are already installed are upgraded to the requested
    version. Use package_status first to see candidate versions.

    Args:
        packages: Package names or provides, e.g. ["httpd", "/usr/bin/git"].
        versions: Optional VERSION-RELEASE per package, same order and length
            as packages. Use "" to let dnf pick the version for that package.
        upgrade: Report the action as an upgrade. dnf install already
            upgrades installed packages, so the command run is the same.

    Returns:
        Result with success status, the dnf output, and on failure the
        command that was run.
    """
    action = PackageAction.UPGRADE if upgrade else PackageAction.INSTALL
    return await run_package_action(action, packages, versions, ctx)
