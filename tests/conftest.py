"""Shared test fixtures."""

from __future__ import annotations

import pytest

_SETTINGS_ENV = (
    "DNF_TAP_HELPER",
    "DNF_TAP_HELPER_TIMEOUT",
    "DNF_TAP_HELPER_RETRIES",
    "DNF_TAP_DNF_OPTIONS",
    "DNF_TAP_COMMAND_TIMEOUT",
)


@pytest.fixture(autouse=True)
def _clean_settings_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the developer's DNF_TAP_* variables out of the tests."""
    for name in _SETTINGS_ENV:
        monkeypatch.delenv(name, raising=False)
