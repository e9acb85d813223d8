"""remove_packages tool -- remove rpm packages with dnf."""

from __future__ import annotations

from mcp.server.fastmcp import Context

from dnf_tap.models import PackageAction
from dnf_tap.tools._helpers import run_package_action


async def remove_packages(
    packages: list[str],
    ctx: Context,
    versions: list[str] | None = None,
    purge: bool = False,
) -> dict[str, object]:
    """Remove rpm packages with dnf in a single transaction.

    Args:
        packages: Package names to remove.
        versions: Optional VERSION-RELEASE per package, to remove only that
            exact build. Use "" for any installed version.
        purge: Accepted for symmetry with other package managers. rpm keeps
            no separate configuration state, so purge is a plain remove.

    Returns:
        Result with success status and the dnf output.
    """
    action = PackageAction.PURGE if purge else PackageAction.REMOVE
    return await run_package_action(action, packages, versions, ctx)
