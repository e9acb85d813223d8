"""Tests for server.py — composition root and lifespan."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

from dnf_tap.helper.process import HelperProcess
from dnf_tap.installer.resolver import DefaultPackageManagerResolver
from dnf_tap.models import HelperState
from dnf_tap.server import app_lifespan, mcp


class TestAppLifespan:
    """Tests for the app_lifespan context manager."""

    async def test_creates_one_helper_from_settings(self, monkeypatch):
        monkeypatch.setenv("DNF_TAP_HELPER", "/usr/bin/python3 /opt/helper.py")
        monkeypatch.setenv("DNF_TAP_HELPER_TIMEOUT", "30")

        async with app_lifespan(MagicMock()) as ctx:
            assert isinstance(ctx.helper, HelperProcess)
            assert ctx.helper.command == ("/usr/bin/python3", "/opt/helper.py")
            assert ctx.settings.helper_timeout == 30.0
            assert isinstance(ctx.manager_resolver, DefaultPackageManagerResolver)

    async def test_helper_not_started_eagerly(self):
        async with app_lifespan(MagicMock()) as ctx:
            assert ctx.helper.state == HelperState.NOT_STARTED

    async def test_helper_terminated_on_exit(self):
        with patch.object(HelperProcess, "terminate", new_callable=AsyncMock) as mock_terminate:
            async with app_lifespan(MagicMock()):
                pass

        mock_terminate.assert_awaited_once()


class TestServerInstance:
    def test_server_name(self):
        assert mcp.name == "dnf-tap"
