"""URL normalization utilities."""

from __future__ import annotations

from urllib.parse import urlparse

SCANNABLE_PREFIXES = ("http://", "https://")


def is_scannable_url(url: str | None) -> bool:
    """True for http(s) URLs, the only kind sent to the classifier."""
    if not url or not isinstance(url, str):
        return False
    return url.lower().startswith(SCANNABLE_PREFIXES)


def cache_key(url: str) -> str:
    """Case-fold a URL into its verdict cache key."""
    return (url or "").strip().lower()


def extract_hostname(url: str) -> str:
    """Return the lowercased hostname of a URL, or the raw value if unparsable."""
    raw = (url or "").strip()
    if not raw:
        return ""
    candidate = raw if "://" in raw else f"https://{raw}"
    try:
        host = urlparse(candidate).hostname
    except ValueError:
        host = None
    return (host or raw).lower()
