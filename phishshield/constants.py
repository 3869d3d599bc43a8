"""Centralized constants for PhishShield.

This module contains enums and constants used across multiple modules
to ensure consistency and reduce duplication.
"""

from enum import Enum


class RiskTier(str, Enum):
    """Risk tier reported by the classification service."""

    SAFE = "safe"
    SUSPICIOUS = "suspicious"
    MALICIOUS = "malicious"

    @classmethod
    def from_string(cls, value: str | None) -> "RiskTier | None":
        """Convert a service risk string to enum, None when unrecognized."""
        if not value:
            return None
        value = str(value).strip().lower()
        for tier in cls:
            if tier.value == value:
                return tier
        return None

    def __str__(self) -> str:
        return self.value


class BadgeState(str, Enum):
    """Visible per-tab badge state."""

    CLEARED = "cleared"
    LOADING = "loading"
    SAFE = "safe"
    SUSPICIOUS = "suspicious"
    MALICIOUS = "malicious"
    ERROR = "error"
    UNKNOWN = "unknown"

    def __str__(self) -> str:
        return self.value


# Badge colours per state (Cleared keeps whatever colour was last set)
BADGE_COLORS: dict[BadgeState, str] = {
    BadgeState.SAFE: "#10b981",
    BadgeState.SUSPICIOUS: "#f59e0b",
    BadgeState.MALICIOUS: "#ef4444",
    BadgeState.LOADING: "#3b82f6",
    BadgeState.ERROR: "#6b7280",
    BadgeState.UNKNOWN: "#6b7280",
}

BADGE_TEXT: dict[BadgeState, str] = {
    BadgeState.CLEARED: "",
    BadgeState.LOADING: "...",
    BadgeState.SAFE: "✓",
    BadgeState.SUSPICIOUS: "!",
    BadgeState.MALICIOUS: "✗",
    BadgeState.ERROR: "!",
    BadgeState.UNKNOWN: "?",
}

DEFAULT_BADGE_COLOR = BADGE_COLORS[BadgeState.LOADING]

# Remote classification service endpoints
ENDPOINT_HEALTH = "/"
ENDPOINT_CHECK_URL = "/api/check-url"
ENDPOINT_REPORT_URL = "/api/report-url"
ENDPOINT_WHITELIST = "/api/whitelist"
ENDPOINT_BLACKLIST = "/api/blacklist"

LIST_ENDPOINTS: dict[str, str] = {
    "whitelist": ENDPOINT_WHITELIST,
    "blacklist": ENDPOINT_BLACKLIST,
}

# Persisted settings keys
SETTING_AUTO_SCAN = "autoScan"
SETTING_SHOW_NOTIFICATIONS = "showNotifications"
SETTING_SCAN_LINKS = "scanLinks"
SETTING_PAGE_LINKS_STATS = "pageLinksStats"
SETTING_EXTRACTED_LINKS = "extractedLinks"

BOOLEAN_SETTINGS = (SETTING_AUTO_SCAN, SETTING_SHOW_NOTIFICATIONS, SETTING_SCAN_LINKS)

DEFAULT_SETTINGS: dict[str, object] = {
    SETTING_AUTO_SCAN: True,
    SETTING_SHOW_NOTIFICATIONS: True,
    SETTING_SCAN_LINKS: True,
    SETTING_PAGE_LINKS_STATS: {},
}

# Files the content script needs in a freshly navigated tab
CONTENT_SCRIPT_FILES = ("config.js", "content.js")

ALERT_ICON = "icon128.png"
ALERT_PRIORITY = 2
