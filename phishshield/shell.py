"""Boundary to the browser that hosts the extension.

The orchestrator never calls browser APIs itself. Everything visible (badge,
notifications, content script injection, messages to a tab) goes through a
BrowserShell. Tab ids are opaque keys chosen by the browser and are not
assumed to survive a browser restart.
"""

from __future__ import annotations

import logging
from typing import Any, Hashable, Optional, Protocol, Sequence

logger = logging.getLogger(__name__)

TabId = Hashable


class BrowserShell(Protocol):
    async def set_badge(self, tab_id: Optional[TabId], text: str, color: Optional[str]) -> None: ...

    async def show_notification(self, alert: dict[str, Any]) -> None: ...

    async def inject_content_script(self, tab_id: TabId, files: Sequence[str]) -> None: ...

    async def send_to_tab(self, tab_id: TabId, message: dict[str, Any]) -> None: ...


class LoggingShell:
    """Shell that only logs; used when no browser is attached."""

    async def set_badge(self, tab_id, text, color):
        logger.debug("badge tab=%s text=%r color=%s", tab_id, text, color)

    async def show_notification(self, alert):
        logger.info("notification: %s", alert.get("message"))

    async def inject_content_script(self, tab_id, files):
        logger.debug("inject tab=%s files=%s", tab_id, list(files))

    async def send_to_tab(self, tab_id, message):
        logger.debug("send tab=%s action=%s", tab_id, message.get("action"))
