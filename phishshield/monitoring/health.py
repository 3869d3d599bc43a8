"""Minimal health/metrics server for PhishShield."""

from __future__ import annotations

import logging
from typing import Callable

from aiohttp import web

logger = logging.getLogger(__name__)


def _flatten(data: dict, prefix: str = "") -> dict:
    flat: dict = {}
    for key, value in data.items():
        name = f"{prefix}{key}"
        if isinstance(value, dict):
            flat.update(_flatten(value, f"{name}_"))
        else:
            flat[name] = value
    return flat


def format_metrics(data: dict) -> str:
    """Render numeric fields of a status dict as Prometheus-style text."""
    lines = []
    for key, value in _flatten(data).items():
        metric_key = str(key).replace(".", "_").replace("-", "_")
        if isinstance(value, bool):
            lines.append(f"phishshield_{metric_key} {int(value)}")
        elif isinstance(value, (int, float)):
            lines.append(f"phishshield_{metric_key} {value}")
    if not lines:
        lines.append('phishshield_status{state="empty"} 1')
    return "\n".join(lines) + "\n"


class HealthServer:
    """Serves lightweight health and metrics endpoints."""

    def __init__(
        self,
        host: str,
        port: int,
        status_provider: Callable[[], dict],
        enabled: bool = True,
    ):
        self.host = host
        self.port = port
        self.status_provider = status_provider
        self.enabled = enabled
        self._runner: web.AppRunner | None = None
        self._site: web.TCPSite | None = None

    def build_app(self) -> web.Application:
        app = web.Application()
        app.router.add_get("/healthz", self._handle_health)
        app.router.add_get("/metrics", self._handle_metrics)
        return app

    async def start(self):
        """Start the health server."""
        if not self.enabled:
            logger.info("Health server disabled")
            return

        self._runner = web.AppRunner(self.build_app())
        await self._runner.setup()
        self._site = web.TCPSite(self._runner, self.host, self.port)
        await self._site.start()
        logger.info("Health server listening on %s:%s", self.host, self.port)

    async def stop(self):
        """Stop the health server."""
        if self._site:
            await self._site.stop()
        if self._runner:
            await self._runner.cleanup()
        self._runner = None
        self._site = None

    def _snapshot(self) -> dict:
        try:
            return self.status_provider() or {}
        except Exception as exc:
            logger.warning("Health status provider failed: %s", exc)
            return {"status": "error", "message": str(exc)}

    async def _handle_health(self, request):  # noqa: ANN001
        """Return JSON health status."""
        payload = self._snapshot()
        payload.setdefault("status", "ok")
        return web.json_response(payload)

    async def _handle_metrics(self, request):  # noqa: ANN001
        """Expose numeric status fields as text metrics."""
        return web.Response(text=format_metrics(self._snapshot()))
