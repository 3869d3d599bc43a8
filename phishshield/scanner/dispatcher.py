"""Scan dispatcher: the single path from a URL to a verdict and its side effects."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Iterable, Optional

from ..badge import BadgeStateMachine
from ..cache import VerdictCache
from ..classifier.errors import ClassifierError
from ..models import BulkScanResult, LinkStats, Verdict
from ..notifications import NotificationThrottle
from ..shell import TabId
from ..utils.urls import is_scannable_url

if TYPE_CHECKING:
    from ..classifier import ClassifierClient
    from ..storage import SettingsStore

logger = logging.getLogger(__name__)

DEFAULT_BULK_LIMIT = 50


class ScanDispatcher:
    """
    Resolves verdicts for URLs and keeps badge and alerts in sync.

    Concurrent scans of the same URL are not coalesced: each one may call the
    classifier, and whichever finishes last owns the cache entry and the
    badge. Remote calls are bounded by `timeout_seconds`; a timeout is a
    failure like any other.
    """

    def __init__(
        self,
        *,
        cache: VerdictCache,
        classifier: "ClassifierClient",
        badges: BadgeStateMachine,
        notifier: NotificationThrottle,
        settings: Optional["SettingsStore"] = None,
        timeout_seconds: float = 10.0,
        bulk_limit: int = DEFAULT_BULK_LIMIT,
    ):
        self.cache = cache
        self.classifier = classifier
        self.badges = badges
        self.notifier = notifier
        self.settings = settings
        self.timeout_seconds = timeout_seconds
        self.bulk_limit = bulk_limit
        self.remote_calls = 0
        self.remote_failures = 0

    async def _classify(self, url: str) -> Verdict:
        self.remote_calls += 1
        return await asyncio.wait_for(self.classifier.classify(url), timeout=self.timeout_seconds)

    async def check_url(self, url: str) -> dict:
        """Raw classifier payload for a URL; bypasses cache, badge and alerts."""
        self.remote_calls += 1
        return await asyncio.wait_for(self.classifier.check_url(url), timeout=self.timeout_seconds)

    async def scan(self, url: str, tab_id: Optional[TabId]) -> Optional[Verdict]:
        """
        Resolve the verdict for `url` and project it onto `tab_id`.

        Returns None for non-http(s) URLs (badge cleared, nothing fetched)
        and for failed lookups (badge set to error). Failures are not retried.
        """
        if not is_scannable_url(url):
            await self.badges.clear(tab_id)
            return None

        await self.badges.start_loading(tab_id)

        entry = self.cache.get(url)
        if entry is not None:
            logger.debug("Cache hit for %s", url)
            verdict = entry.verdict
        else:
            try:
                verdict = await self._classify(url)
            except (ClassifierError, asyncio.TimeoutError) as e:
                self.remote_failures += 1
                logger.warning("Scan failed for %s: %s", url, str(e) or "timed out")
                await self.badges.mark_error(tab_id)
                return None
            self.cache.put(url, verdict)

        await self.badges.apply_risk(tab_id, verdict.risk)
        if verdict.is_malicious:
            await self.notifier.maybe_alert(url, verdict)
        return verdict

    async def scan_many(
        self,
        urls: Iterable[str],
        tab_id: Optional[TabId] = None,
        limit: Optional[int] = None,
        *,
        page_url: Optional[str] = None,
    ) -> BulkScanResult:
        """
        Classify the links found on a page, one remote call at a time.

        The input is deduplicated and `total` reports the deduplicated count,
        but only the first `limit` links are classified; the rest are dropped
        from this pass. Per-link failures are logged and not counted. The
        stats replace any earlier record for `page_url`. Non-http links inside
        the limit are skipped without a remote call.

        Bulk scans do not touch the tab badge or raise alerts; the page's own
        badge stays with its own verdict.
        """
        limit = self.bulk_limit if limit is None else limit
        unique = list(dict.fromkeys(u for u in urls if isinstance(u, str) and u))
        stats = LinkStats(total=len(unique))
        results: list[dict] = []

        for link in unique[: max(limit, 0)]:
            if not is_scannable_url(link):
                logger.debug("Skipping non-http link %s", link)
                continue
            entry = self.cache.get(link)
            if entry is not None:
                verdict = entry.verdict
            else:
                try:
                    verdict = await self._classify(link)
                except (ClassifierError, asyncio.TimeoutError) as e:
                    self.remote_failures += 1
                    logger.warning("Skipping link %s: %s", link, str(e) or "timed out")
                    continue
                self.cache.put(link, verdict)

            stats.record(verdict)
            results.append({"url": link, **verdict.to_dict()})
            logger.debug("Link %s -> %s", link, verdict.risk)

        if page_url:
            await self._save_stats(page_url, stats)

        logger.info(
            "Scanned %d of %d links on %s for tab %s (%d safe, %d suspicious, %d malicious)",
            len(results), stats.total, page_url or "page", tab_id,
            stats.safe, stats.suspicious, stats.malicious,
        )
        return BulkScanResult(page_url=page_url or "", stats=stats, results=results)

    async def _save_stats(self, page_url: str, stats: LinkStats) -> None:
        if self.settings is None:
            return
        try:
            await self.settings.save_page_links_stats(page_url, stats.to_dict())
        except Exception as e:
            logger.warning("Failed to persist link stats for %s: %s", page_url, e)
