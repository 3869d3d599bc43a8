"""Tests for the host wiring in main."""

from __future__ import annotations

import pytest

from phishshield.config import Config
from phishshield.main import PhishShieldHost


@pytest.mark.asyncio
async def test_host_wires_components_and_reports_health(tmp_path, service, shell, clock):
    config = Config(api_url="http://classifier.test", cache_max_size=10, data_dir=tmp_path / "data")
    host = PhishShieldHost(config, shell, clock=clock, transport=service.transport())

    await host.start()
    try:
        response = await host.router.handle({"action": "scanUrl", "url": "https://a.test/", "tabId": 1})
        await host.lifecycle.handle_event({"event": "tabActivated", "tabId": 1, "url": "https://A.test/"})

        snapshot = host._health_snapshot()
    finally:
        await host.stop()

    assert response["risk"] == "safe"
    assert len(service.check_calls) == 1
    assert snapshot["status"] == "ok"
    assert snapshot["cache"]["entries"] == 1
    assert snapshot["badges"] == {"safe": 1}
    assert snapshot["remote_calls"] == 1
    assert (tmp_path / "data" / "phishshield.db").exists()
    assert not host.settings.connected


@pytest.mark.asyncio
async def test_stop_is_idempotent(tmp_path, service):
    config = Config(api_url="http://classifier.test", data_dir=tmp_path / "data")
    host = PhishShieldHost(config, transport=service.transport())

    await host.start()
    await host.stop()
    await host.stop()

    assert host._health_snapshot()["status"] == "stopped"
