"""Message router: the RPC surface used by the popup and the content script."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Optional

from ..badge import BadgeStateMachine
from ..classifier.errors import ClassifierError
from ..constants import BOOLEAN_SETTINGS, DEFAULT_SETTINGS
from ..scanner import ScanDispatcher
from ..shell import BrowserShell, LoggingShell, TabId
from ..storage import StorageError
from ..utils.urls import is_scannable_url

if TYPE_CHECKING:
    from ..classifier import ClassifierClient
    from ..storage import SettingsStore

logger = logging.getLogger(__name__)

Handler = Callable[[dict, "Sender"], Awaitable[Any]]


@dataclass
class Sender:
    """Where a message came from; content script messages carry their tab."""

    tab_id: Optional[TabId] = None
    url: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "Sender":
        data = data or {}
        tab = data.get("tab") or {}
        return cls(
            tab_id=tab.get("id", data.get("tabId")),
            url=tab.get("url", data.get("url")),
        )


class RouterError(Exception):
    """Request could not be served; the message becomes the {error} response."""

    pass


class MessageRouter:
    """
    Demultiplexes inbound requests by their `action` field.

    Every handler is awaited under a deadline: `rpc_timeout` for single
    requests, `bulk_timeout` for link scans. Failures of any kind come back as
    ``{"error": message}``; nothing raised by a handler escapes `handle()`.
    """

    def __init__(
        self,
        *,
        dispatcher: ScanDispatcher,
        badges: BadgeStateMachine,
        settings: "SettingsStore",
        classifier: "ClassifierClient",
        shell: Optional[BrowserShell] = None,
        rpc_timeout: float = 30.0,
        bulk_timeout: float = 300.0,
    ):
        self.dispatcher = dispatcher
        self.badges = badges
        self.settings = settings
        self.classifier = classifier
        self.shell = shell or LoggingShell()
        self.rpc_timeout = rpc_timeout
        self.bulk_timeout = bulk_timeout

        self._handlers: dict[str, tuple[Handler, float]] = {
            "updateBadge": (self._update_badge, rpc_timeout),
            "scanUrl": (self._scan_url, rpc_timeout),
            "checkUrl": (self._check_url, rpc_timeout),
            "getStats": (self._get_stats, rpc_timeout),
            "linksExtracted": (self._links_extracted, rpc_timeout),
            "scanLinks": (self._scan_links, bulk_timeout),
            "reportUrl": (self._report_url, rpc_timeout),
            "addToList": (self._add_to_list, rpc_timeout),
            "checkHealth": (self._check_health, rpc_timeout),
            "getSettings": (self._get_settings, rpc_timeout),
            "updateSettings": (self._update_settings, rpc_timeout),
        }

    @property
    def actions(self) -> list[str]:
        return sorted(self._handlers)

    async def handle(self, request: dict, sender: Optional[Sender] = None) -> Any:
        """Route one request and return its response (None for fire-and-forget actions)."""
        sender = sender or Sender()
        if not isinstance(request, dict):
            return {"error": "Malformed request"}

        action = request.get("action")
        entry = self._handlers.get(action) if isinstance(action, str) else None
        if entry is None:
            logger.warning("Unknown action: %r", action)
            return {"error": f"Unknown action: {action}"}

        handler, timeout = entry
        try:
            return await asyncio.wait_for(handler(request, sender), timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning("Action %s timed out after %.0fs", action, timeout)
            return {"error": "Request timed out"}
        except (RouterError, ClassifierError, StorageError, ValueError) as e:
            logger.info("Action %s failed: %s", action, e)
            return {"error": str(e) or type(e).__name__}
        except Exception as e:
            logger.exception("Unexpected error handling %s: %s", action, e)
            return {"error": str(e) or type(e).__name__}

    @staticmethod
    def _tab_id(request: dict, sender: Sender) -> Optional[TabId]:
        tab_id = request.get("tabId")
        return tab_id if tab_id is not None else sender.tab_id

    @staticmethod
    def _require_url(request: dict, *, scannable: bool = False) -> str:
        url = request.get("url")
        if not isinstance(url, str) or not url:
            raise RouterError("Missing url")
        if scannable and not is_scannable_url(url):
            raise RouterError("Only http(s) URLs are supported")
        return url

    async def _update_badge(self, request: dict, sender: Sender) -> dict:
        await self.badges.apply_risk(self._tab_id(request, sender), request.get("risk"))
        return {"success": True}

    async def _scan_url(self, request: dict, sender: Sender) -> dict:
        url = self._require_url(request)
        verdict = await self.dispatcher.scan(url, self._tab_id(request, sender))
        if verdict is not None:
            return verdict.to_dict()
        if not is_scannable_url(url):
            return {"error": "Only http(s) URLs can be scanned"}
        return {"error": "Unable to reach the classification service"}

    async def _check_url(self, request: dict, sender: Sender) -> dict:
        url = self._require_url(request)
        return await self.dispatcher.check_url(url)

    async def _get_stats(self, request: dict, sender: Sender) -> dict:
        try:
            return await self.settings.get_page_links_stats()
        except StorageError as e:
            logger.warning("Link stats unavailable: %s", e)
            return {}

    async def _links_extracted(self, request: dict, sender: Sender) -> None:
        links = request.get("links") or []
        if sender.url is None:
            logger.debug("Dropping extracted links without a sender tab")
            return None
        if not isinstance(links, list):
            raise RouterError("links must be a list")
        await self.settings.save_extracted_links(sender.url, [str(link) for link in links])
        return None

    async def _scan_links(self, request: dict, sender: Sender) -> dict:
        links = request.get("links")
        if not isinstance(links, list) or not links:
            raise RouterError("No links found")
        tab_id = self._tab_id(request, sender)
        page_url = request.get("pageUrl") or sender.url
        result = await self.dispatcher.scan_many(links, tab_id, page_url=page_url)

        if tab_id is not None:
            try:
                await self.shell.send_to_tab(tab_id, {"action": "highlightLinks", "results": result.results})
            except Exception as e:
                logger.warning("Could not deliver highlight results to tab %s: %s", tab_id, e)
        return result.to_dict()

    async def _report_url(self, request: dict, sender: Sender) -> dict:
        url = self._require_url(request, scannable=True)
        return await self.classifier.report_url(url)

    async def _add_to_list(self, request: dict, sender: Sender) -> dict:
        url = self._require_url(request, scannable=True)
        list_type = request.get("listType")
        if list_type not in ("whitelist", "blacklist"):
            raise RouterError("listType must be 'whitelist' or 'blacklist'")
        return await self.classifier.add_to_list(url, list_type)

    async def _check_health(self, request: dict, sender: Sender) -> dict:
        return {"online": await self.classifier.health()}

    async def _get_settings(self, request: dict, sender: Sender) -> dict:
        try:
            return await self.settings.get_settings()
        except StorageError as e:
            logger.warning("Settings unavailable, using defaults: %s", e)
            return dict(DEFAULT_SETTINGS)

    async def _update_settings(self, request: dict, sender: Sender) -> dict:
        updates = request.get("settings")
        if not isinstance(updates, dict):
            raise RouterError("settings must be an object")
        accepted = {k: v for k, v in updates.items() if k in BOOLEAN_SETTINGS and isinstance(v, bool)}
        rejected = sorted(set(updates) - set(accepted))
        if rejected:
            raise RouterError(f"Unsupported settings: {', '.join(rejected)}")
        await self.settings.set(accepted)
        return {"success": True}
