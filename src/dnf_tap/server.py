"""MCP server that resolves, installs, and removes dnf packages."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass

from mcp.server.fastmcp import FastMCP
from mcp.types import ToolAnnotations

from dnf_tap.helper.base import HelperPort
from dnf_tap.helper.process import HelperProcess
from dnf_tap.installer.base import PackageManagerResolverPort
from dnf_tap.installer.resolver import DefaultPackageManagerResolver
from dnf_tap.settings import Settings, load_settings
from dnf_tap.tools.install import install_packages
from dnf_tap.tools.remove import remove_packages
from dnf_tap.tools.status import package_status

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class AppContext:
    """Shared state across all tool invocations.

    The helper is the one dnf helper subprocess for this server process;
    every tool call goes through it.
    """

    settings: Settings
    helper: HelperPort
    manager_resolver: PackageManagerResolverPort


@asynccontextmanager
async def app_lifespan(server: FastMCP) -> AsyncIterator[AppContext]:
    """Manage shared adapter lifecycle — the composition root."""
    settings = load_settings()
    helper = HelperProcess(
        settings.helper_command,
        timeout=settings.helper_timeout,
        max_attempts=settings.helper_attempts,
    )
    try:
        yield AppContext(
            settings=settings,
            helper=helper,
            manager_resolver=DefaultPackageManagerResolver(settings),
        )
    finally:
        logger.debug("Shutting down dnf helper")
        await helper.terminate()


mcp = FastMCP(
    "dnf-tap",
    instructions=(
        "dnf-tap inspects, installs, upgrades, and removes rpm packages on "
        "rhel and fedora family systems using dnf.\n\n"
        "### Recommended workflow\n"
        "1. **package_status** — Always start here. Shows which package provides "
        "each requested name, the installed version, and the version dnf would install.\n"
        "2. **install_packages** — Install packages, optionally pinned to versions. "
        "Set upgrade=True to upgrade packages that are already installed.\n"
        "3. **remove_packages** — Remove packages. purge=True is accepted and "
        "behaves the same as a plain remove.\n\n"
        "### Key principles\n"
        "- Pass one version per package, or an empty string to let dnf choose.\n"
        "- All packages in one call go into a single dnf transaction: it either "
        "all applies or fails as a whole.\n"
        "- Versions use dnf's VERSION-RELEASE form, e.g. '1.2-3.fc40'."
    ),
    lifespan=app_lifespan,
)

# ─── Read-only tools ──────────────────────────────────────────
mcp.tool(annotations=ToolAnnotations(readOnlyHint=True))(package_status)

# ─── Destructive tools ────────────────────────────────────────
mcp.tool(annotations=ToolAnnotations(destructiveHint=True))(install_packages)
mcp.tool(annotations=ToolAnnotations(destructiveHint=True))(remove_packages)
