"""Data models for scan results."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from .constants import RiskTier


@dataclass
class Verdict:
    """Classification result for a single URL."""

    url: str
    risk: str
    score: float
    reasons: list[str] = field(default_factory=list)
    # Full service payload, returned verbatim to RPC callers
    raw: dict = field(default_factory=dict)

    @property
    def tier(self) -> Optional[RiskTier]:
        return RiskTier.from_string(self.risk)

    @property
    def is_malicious(self) -> bool:
        return self.tier is RiskTier.MALICIOUS

    @classmethod
    def from_response(cls, url: str, payload: Any) -> "Verdict":
        """Build a verdict from a /api/check-url body.

        Raises ValueError when the body lacks a usable score or risk, or the
        score falls outside 0..1. The service decides the tier. A risk string that is not a known tier is kept as-is so the badge can show
        it as unknown.
        """
        if not isinstance(payload, dict):
            raise ValueError("response body is not a JSON object")

        raw_score = payload.get("score")
        if isinstance(raw_score, bool) or not isinstance(raw_score, (int, float)):
            raise ValueError("response is missing a numeric 'score'")
        score = float(raw_score)
        if not 0.0 <= score <= 1.0:
            raise ValueError(f"response 'score' {score} is outside 0..1")

        risk = payload.get("risk")
        if risk is None:
            raise ValueError("response is missing 'risk'")
        if not isinstance(risk, str) or not risk.strip():
            raise ValueError("response 'risk' must be a non-empty string")

        reasons = payload.get("reasons") or []
        if not isinstance(reasons, list):
            raise ValueError("response 'reasons' must be a list")

        return cls(
            url=url,
            risk=risk.strip().lower(),
            score=score,
            reasons=[str(r) for r in reasons],
            raw=dict(payload),
        )

    def to_dict(self) -> dict:
        data = dict(self.raw)
        data.update({"risk": self.risk, "score": self.score, "reasons": list(self.reasons)})
        return data


@dataclass
class LinkStats:
    """Outcome counts for the most recent bulk link scan of a page."""

    total: int = 0
    safe: int = 0
    suspicious: int = 0
    malicious: int = 0

    def record(self, verdict: Verdict) -> None:
        tier = verdict.tier
        if tier is RiskTier.SAFE:
            self.safe += 1
        elif tier is RiskTier.SUSPICIOUS:
            self.suspicious += 1
        elif tier is RiskTier.MALICIOUS:
            self.malicious += 1

    @property
    def scanned(self) -> int:
        return self.safe + self.suspicious + self.malicious

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "safe": self.safe,
            "suspicious": self.suspicious,
            "malicious": self.malicious,
        }

    @classmethod
    def from_dict(cls, data: dict | None) -> "LinkStats":
        data = data or {}

        def _count(key: str) -> int:
            try:
                return int(data.get(key) or 0)
            except (TypeError, ValueError):
                return 0

        return cls(
            total=_count("total"),
            safe=_count("safe"),
            suspicious=_count("suspicious"),
            malicious=_count("malicious"),
        )


@dataclass
class BulkScanResult:
    """Stats plus per-link results handed to the content script for highlighting."""

    page_url: str
    stats: LinkStats
    results: list[dict] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"pageUrl": self.page_url, "stats": self.stats.to_dict(), "results": self.results}
