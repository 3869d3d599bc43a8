"""Decides when a malicious verdict turns into a user-facing alert."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Optional

from ..constants import ALERT_ICON, ALERT_PRIORITY, SETTING_SHOW_NOTIFICATIONS
from ..models import Verdict
from ..shell import BrowserShell, LoggingShell
from ..utils.urls import extract_hostname

logger = logging.getLogger(__name__)


@dataclass
class Alert:
    """Notification payload handed to the browser shell."""

    url: str
    title: str
    message: str
    score: float
    icon: str = ALERT_ICON
    priority: int = ALERT_PRIORITY

    def to_dict(self) -> dict:
        return asdict(self)


def build_alert(url: str, verdict: Verdict) -> Alert:
    hostname = extract_hostname(url) or url
    percent = round(verdict.score * 100)
    return Alert(
        url=url,
        title="Phishing Alert!",
        message=f"Warning: {hostname} may be a phishing site. Risk score: {percent}%",
        score=verdict.score,
    )


class NotificationThrottle:
    """
    Fires one alert per malicious scan result.

    There is no time-based suppression: scanning the same malicious URL twice
    alerts twice. The showNotifications setting is read at firing time and a
    failed read counts as enabled.
    """

    def __init__(self, settings=None, shell: Optional[BrowserShell] = None):
        self.settings = settings
        self.shell = shell or LoggingShell()
        self.alerts_fired = 0

    async def notifications_enabled(self) -> bool:
        if self.settings is None:
            return True
        try:
            return await self.settings.get_bool(SETTING_SHOW_NOTIFICATIONS, True)
        except Exception as e:
            logger.warning("Could not read notification setting, alerting anyway: %s", e)
            return True

    async def maybe_alert(self, url: str, verdict: Verdict) -> Optional[Alert]:
        """Show an alert for a malicious verdict. Returns the alert, or None if suppressed."""
        if not verdict.is_malicious:
            return None
        if not await self.notifications_enabled():
            logger.debug("Notifications disabled; not alerting for %s", url)
            return None

        alert = build_alert(url, verdict)
        self.alerts_fired += 1
        logger.info("Phishing alert for %s (score %.2f)", url, verdict.score)
        try:
            await self.shell.show_notification(alert.to_dict())
        except Exception as e:
            logger.warning("Failed to display alert for %s: %s", url, e)
        return alert
