"""Main entry point for the PhishShield background host."""

import asyncio
import logging
import signal
import sys
from datetime import datetime, timezone
from typing import Optional

import httpx

from .badge import BadgeStateMachine
from .cache import VerdictCache
from .classifier import ClassifierClient
from .config import Config, load_config, validate_config
from .lifecycle import LifecycleHandler
from .messaging import MessageRouter, NativeMessagingChannel, NativeMessagingHost, NativeShell
from .monitoring import HealthServer
from .notifications import NotificationThrottle
from .scanner import ScanDispatcher
from .shell import BrowserShell, LoggingShell
from .storage import SettingsStore
from .utils.clock import Clock

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO") -> None:
    # stdout carries native messaging frames, so logs go to stderr
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[
            logging.StreamHandler(sys.stderr),
        ],
    )


class PhishShieldHost:
    """Owns every orchestrator component for the lifetime of the process."""

    def __init__(
        self,
        config: Config,
        shell: Optional[BrowserShell] = None,
        *,
        clock: Optional[Clock] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.config = config
        self.shell = shell or LoggingShell()
        self._running = False
        self._started_at = datetime.now(timezone.utc)

        # Components
        self.settings = SettingsStore(config.database_path)
        self.cache = VerdictCache(
            ttl_seconds=config.cache_ttl_seconds,
            max_size=config.cache_max_size,
            clock=clock,
        )
        self.classifier = ClassifierClient(
            config.api_url,
            timeout_seconds=config.request_timeout,
            transport=transport,
        )
        self.badges = BadgeStateMachine(self.shell)
        self.notifier = NotificationThrottle(self.settings, self.shell)
        self.dispatcher = ScanDispatcher(
            cache=self.cache,
            classifier=self.classifier,
            badges=self.badges,
            notifier=self.notifier,
            settings=self.settings,
            # Total deadline; httpx applies request_timeout per connect/read/write phase
            timeout_seconds=config.request_timeout + 1.0,
            bulk_limit=config.bulk_scan_limit,
        )
        self.router = MessageRouter(
            dispatcher=self.dispatcher,
            badges=self.badges,
            settings=self.settings,
            classifier=self.classifier,
            shell=self.shell,
            rpc_timeout=config.rpc_timeout,
            bulk_timeout=config.bulk_rpc_timeout,
        )
        self.lifecycle = LifecycleHandler(
            dispatcher=self.dispatcher,
            badges=self.badges,
            settings=self.settings,
            classifier=self.classifier,
            shell=self.shell,
        )
        self.health_server = HealthServer(
            host=config.health_host,
            port=config.health_port,
            status_provider=self._health_snapshot,
            enabled=config.health_enabled,
        )

    def _health_snapshot(self) -> dict:
        """Provide a lightweight status dict for health endpoints."""
        uptime = (datetime.now(timezone.utc) - self._started_at).total_seconds()
        return {
            "status": "ok" if self._running else "stopped",
            "uptime_seconds": round(uptime, 1),
            "cache": self.cache.stats(),
            "badges": self.badges.snapshot(),
            "alerts_fired": self.notifier.alerts_fired,
            "remote_calls": self.dispatcher.remote_calls,
            "remote_failures": self.dispatcher.remote_failures,
        }

    async def start(self):
        """Open storage and the health endpoint."""
        logger.info("Starting PhishShield host...")
        await self.settings.connect()
        logger.info("Settings store connected")
        await self.health_server.start()
        self._running = True

    async def stop(self):
        """Release every resource; safe to call more than once."""
        if not self._running and not self.settings.connected:
            return
        logger.info("Stopping PhishShield host...")
        self._running = False
        await self.health_server.stop()
        await self.classifier.close()
        await self.settings.close()
        logger.info("PhishShield host stopped")


async def run_host():
    """Run the host against the browser's native messaging pipe."""
    config = load_config()
    configure_logging(config.log_level)

    validation_errors = validate_config(config)
    if validation_errors:
        for err in validation_errors:
            logger.error(err)
        sys.exit(1)

    channel = await NativeMessagingChannel.from_stdio()
    host = PhishShieldHost(config, NativeShell(channel))
    server = NativeMessagingHost(channel, host.router, host.lifecycle)

    await host.start()
    serve_task = asyncio.create_task(server.serve())

    # Handle shutdown signals
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, serve_task.cancel)

    try:
        await serve_task
    except asyncio.CancelledError:
        logger.info("Shutdown requested")
    finally:
        await host.stop()


def main():
    """Entry point."""
    asyncio.run(run_host())


if __name__ == "__main__":
    main()
