"""Runtime settings read from environment variables."""

from __future__ import annotations

import os
import shlex
from collections.abc import Mapping
from dataclasses import dataclass

_HELPER_ENV = "DNF_TAP_HELPER"
_HELPER_TIMEOUT_ENV = "DNF_TAP_HELPER_TIMEOUT"
_HELPER_RETRIES_ENV = "DNF_TAP_HELPER_RETRIES"
_DNF_OPTIONS_ENV = "DNF_TAP_DNF_OPTIONS"
_COMMAND_TIMEOUT_ENV = "DNF_TAP_COMMAND_TIMEOUT"

DEFAULT_HELPER_COMMAND = ("dnf-tap-helper",)
DEFAULT_HELPER_TIMEOUT = 60.0
DEFAULT_HELPER_ATTEMPTS = 5
# dnf transactions can take a long time on slow mirrors
DEFAULT_COMMAND_TIMEOUT = 900.0


@dataclass(frozen=True, slots=True)
class Settings:
    helper_command: tuple[str, ...] = DEFAULT_HELPER_COMMAND
    helper_timeout: float = DEFAULT_HELPER_TIMEOUT
    helper_attempts: int = DEFAULT_HELPER_ATTEMPTS
    dnf_options: tuple[str, ...] = ()
    command_timeout: float = DEFAULT_COMMAND_TIMEOUT


def load_settings(env: Mapping[str, str] | None = None) -> Settings:
    """Build Settings from the environment.

    Unset or blank variables fall back to defaults.

    Raises:
        ValueError: If a numeric variable cannot be parsed or is not positive.
    """
    source = env if env is not None else os.environ

    helper_raw = source.get(_HELPER_ENV, "").strip()
    helper_command = tuple(shlex.split(helper_raw)) if helper_raw else DEFAULT_HELPER_COMMAND

    return Settings(
        helper_command=helper_command,
        helper_timeout=_positive_float(source, _HELPER_TIMEOUT_ENV, DEFAULT_HELPER_TIMEOUT),
        helper_attempts=int(
            _positive_float(source, _HELPER_RETRIES_ENV, DEFAULT_HELPER_ATTEMPTS, integer=True)
        ),
        dnf_options=tuple(shlex.split(source.get(_DNF_OPTIONS_ENV, ""))),
        command_timeout=_positive_float(source, _COMMAND_TIMEOUT_ENV, DEFAULT_COMMAND_TIMEOUT),
    )


def _positive_float(
    source: Mapping[str, str],
    name: str,
    default: float,
    *,
    integer: bool = False,
) -> float:
    raw = source.get(name, "").strip()
    if not raw:
        return default
    try:
        value = float(int(raw)) if integer else float(raw)
    except ValueError:
        kind = "an integer" if integer else "a number"
        raise ValueError(f"{name} must be {kind}, got '{raw}'.") from None
    if value <= 0:
        raise ValueError(f"{name} must be greater than zero, got '{raw}'.")
    return value
