"""Port: dnf helper subprocess."""

from __future__ import annotations

from typing import Protocol

from dnf_tap.models import Provides


class HelperPort(Protocol):
    """Port for querying the long-lived dnf helper."""

    async def whatprovides(self, name: str) -> Provides:
        """Return the providing package and candidate version for ``name``."""
        ...

    async def restart(self) -> None:
        """Replace the running helper with a fresh one."""
        ...

    async def terminate(self) -> None:
        """Kill and reap the helper."""
        ...
