"""Resolve requested package names to provider names and candidate versions."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from dnf_tap.helper.base import HelperPort
from dnf_tap.models import Resolution

logger = logging.getLogger(__name__)


async def resolve_candidates(helper: HelperPort, names: Sequence[str]) -> Resolution:
    """Query the helper once per name, in order.

    Repeated names are queried again and the later answer wins in
    ``real_names``; ``versions`` keeps one entry per requested name.
    """
    real_names: dict[str, str | None] = {}
    versions: list[str | None] = []

    for name in names:
        provides = await helper.whatprovides(name)
        logger.debug(
            "Found candidate_version of %s for %s (requested as %s)",
            provides.version or "nil",
            provides.real_name,
            name,
        )
        real_names[name] = provides.real_name
        versions.append(provides.version)

    return Resolution(real_names=real_names, versions=tuple(versions))
