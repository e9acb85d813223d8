"""package_status tool -- installed and candidate versions for packages."""

from __future__ import annotations

from dataclasses import asdict

from mcp.server.fastmcp import Context

from dnf_tap.errors import DnfTapError
from dnf_tap.installer.provider import DnfPackageProvider
from dnf_tap.tools._helpers import get_context


async def package_status(
    packages: list[str],
    ctx: Context,
) -> dict[str, object]:
    """Show the installed and candidate version of each package.

    The candidate version is what install_packages would install or upgrade
    to. real_name is the package that actually provides the requested name
    (it differs for virtual provides such as "webserver" or file paths).

    Args:
        packages: Package names or provides to look up.

    Returns:
        {"success": True, "packages": [...]} with one entry per requested
        package in request order, or {"success": False, "message": ...}.
    """
    try:
        app = get_context(ctx)
        manager = await app.manager_resolver.resolve_package_manager()
        provider = DnfPackageProvider(app.helper, manager, packages)
        states = await provider.status()
        return {
            "success": True,
            "packages": [asdict(s) for s in states],
        }

    except DnfTapError as exc:
        return {"success": False, "message": str(exc)}
    except Exception as exc:
        await ctx.error(f"Unexpected error in package_status: {exc}")
        return {"success": False, "message": f"Internal error: {type(exc).__name__}"}
