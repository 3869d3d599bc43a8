"""Browser lifecycle events: the automatic triggers for page scans."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Optional

from .badge import BadgeStateMachine
from .constants import CONTENT_SCRIPT_FILES, DEFAULT_BADGE_COLOR, SETTING_AUTO_SCAN
from .scanner import ScanDispatcher
from .shell import BrowserShell, LoggingShell, TabId
from .utils.urls import is_scannable_url

if TYPE_CHECKING:
    from .classifier import ClassifierClient
    from .storage import SettingsStore

logger = logging.getLogger(__name__)


class LifecycleHandler:
    """Turns tab and navigation events into scans."""

    def __init__(
        self,
        *,
        dispatcher: ScanDispatcher,
        badges: BadgeStateMachine,
        settings: "SettingsStore",
        classifier: "ClassifierClient",
        shell: Optional[BrowserShell] = None,
    ):
        self.dispatcher = dispatcher
        self.badges = badges
        self.settings = settings
        self.classifier = classifier
        self.shell = shell or LoggingShell()

        self._events = {
            "installed": self._on_installed_event,
            "startup": self._on_startup_event,
            "tabActivated": self._on_tab_activated_event,
            "tabUpdated": self._on_tab_updated_event,
            "navigationCompleted": self._on_navigation_completed_event,
        }

    async def handle_event(self, event: dict[str, Any]) -> None:
        """Dispatch a raw event frame ({"event": name, ...})."""
        name = event.get("event")
        handler = self._events.get(name)
        if handler is None:
            logger.warning("Ignoring unknown event %r", name)
            return
        try:
            await handler(event)
        except Exception as e:
            logger.error("Error handling %s event: %s", name, e)

    async def _auto_scan_enabled(self) -> bool:
        try:
            return await self.settings.get_bool(SETTING_AUTO_SCAN, True)
        except Exception as e:
            logger.warning("Could not read autoScan setting, assuming enabled: %s", e)
            return True

    async def on_installed(self) -> None:
        written = await self.settings.initialize_defaults()
        if written:
            logger.info("Initialized default settings: %s", ", ".join(sorted(written)))
        await self.shell.set_badge(None, "", DEFAULT_BADGE_COLOR)
        logger.info("PhishShield installed")

    async def on_startup(self) -> bool:
        """Probe the classification service; returns reachability."""
        logger.info("PhishShield background host started")
        online = await self.classifier.health()
        if online:
            logger.info("Classification service reachable at %s", self.classifier.base_url)
        else:
            logger.error("Classification service unreachable at %s", self.classifier.base_url)
        return online

    async def on_tab_activated(self, tab_id: TabId, url: Optional[str]) -> None:
        if not await self._auto_scan_enabled():
            return
        if is_scannable_url(url):
            await self.dispatcher.scan(url, tab_id)
        else:
            await self.badges.clear(tab_id)

    async def on_tab_updated(self, tab_id: TabId, status: Optional[str], url: Optional[str]) -> None:
        if status != "complete" or not is_scannable_url(url):
            return
        if not await self._auto_scan_enabled():
            return
        await self.dispatcher.scan(url, tab_id)

        try:
            await self.shell.inject_content_script(tab_id, CONTENT_SCRIPT_FILES)
        except Exception as e:
            # Usually already injected
            logger.info("Content script injection for tab %s: %s", tab_id, e)

    async def on_navigation_completed(self, tab_id: TabId, frame_id: int, url: Optional[str]) -> None:
        if frame_id != 0 or not is_scannable_url(url):
            return
        if not await self._auto_scan_enabled():
            return
        await self.dispatcher.scan(url, tab_id)

    async def _on_installed_event(self, event: dict) -> None:
        await self.on_installed()

    async def _on_startup_event(self, event: dict) -> None:
        await self.on_startup()

    async def _on_tab_activated_event(self, event: dict) -> None:
        await self.on_tab_activated(event.get("tabId"), event.get("url"))

    async def _on_tab_updated_event(self, event: dict) -> None:
        await self.on_tab_updated(event.get("tabId"), event.get("status"), event.get("url"))

    async def _on_navigation_completed_event(self, event: dict) -> None:
        try:
            frame_id = int(event.get("frameId", 0))
        except (TypeError, ValueError):
            frame_id = -1
        await self.on_navigation_completed(event.get("tabId"), frame_id, event.get("url"))
