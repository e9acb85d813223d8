"""Helpers shared by the dnf-tap tools."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import asdict
from typing import TYPE_CHECKING

from mcp.server.fastmcp import Context

from dnf_tap.errors import DnfTapError, PackageCommandError
from dnf_tap.installer.provider import DnfPackageProvider
from dnf_tap.models import ActionResult, PackageAction

if TYPE_CHECKING:
    from dnf_tap.server import AppContext


def get_context(ctx: Context) -> AppContext:
    """Extract AppContext from FastMCP's lifespan context.

    Raises TypeError if the lifespan context is not an AppContext instance.
    This catches misconfiguration early with a clear error message.
    """
    from dnf_tap.server import AppContext

    app = ctx.request_context.lifespan_context
    if not isinstance(app, AppContext):
        msg = (
            f"Expected AppContext in lifespan_context, got {type(app).__name__}. "
            "Is the server configured with app_lifespan?"
        )
        raise TypeError(msg)
    return app


def normalize_versions(versions: Sequence[str] | None) -> list[str | None] | None:
    """Treat empty version strings as unpinned."""
    if versions is None:
        return None
    return [v.strip() or None for v in versions]


async def run_package_action(
    action: PackageAction,
    packages: list[str],
    versions: list[str] | None,
    ctx: Context,
) -> dict[str, object]:
    """Run one dnf transaction for ``packages`` and describe the outcome."""
    if not packages:
        return asdict(
            ActionResult(
                success=False,
                action=action.value,
                packages=[],
                message="No packages given.",
            )
        )

    try:
        app = get_context(ctx)
        manager = await app.manager_resolver.resolve_package_manager()
        provider = DnfPackageProvider(app.helper, manager, packages)
        result = await provider.run(action, normalize_versions(versions))
        return asdict(
            ActionResult(
                success=True,
                action=action.value,
                packages=list(packages),
                message=f"dnf {action.value} of {', '.join(packages)} succeeded.",
                command_output=result.stdout,
            )
        )

    except PackageCommandError as exc:
        return asdict(
            ActionResult(
                success=False,
                action=action.value,
                packages=list(packages),
                message=str(exc),
                command=exc.command,
                command_output=exc.stderr or exc.stdout,
            )
        )
    except (DnfTapError, ValueError) as exc:
        return asdict(
            ActionResult(
                success=False,
                action=action.value,
                packages=list(packages),
                message=str(exc),
            )
        )
    except Exception as exc:
        await ctx.error(f"Unexpected error in {action.value}: {exc}")
        return asdict(
            ActionResult(
                success=False,
                action=action.value,
                packages=list(packages),
                message=f"Internal error: {type(exc).__name__}",
            )
        )
