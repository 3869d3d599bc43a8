"""Badge state machine: projects the latest scan event onto each tab's badge."""

from __future__ import annotations

import logging
from collections import Counter
from typing import Optional

from ..constants import BADGE_COLORS, BADGE_TEXT, BadgeState, RiskTier
from ..shell import BrowserShell, LoggingShell, TabId

logger = logging.getLogger(__name__)

_TIER_STATES = {
    RiskTier.SAFE: BadgeState.SAFE,
    RiskTier.SUSPICIOUS: BadgeState.SUSPICIOUS,
    RiskTier.MALICIOUS: BadgeState.MALICIOUS,
}


class BadgeStateMachine:
    """
    Tracks one badge state per tab and pushes every change to the shell.

    States are never restored across restarts and never retried; the badge
    shows whatever the most recent event said. Unknown tabs read as cleared.
    """

    def __init__(self, shell: Optional[BrowserShell] = None):
        self.shell = shell or LoggingShell()
        self._states: dict[TabId, BadgeState] = {}

    def state(self, tab_id: TabId) -> BadgeState:
        return self._states.get(tab_id, BadgeState.CLEARED)

    async def start_loading(self, tab_id: TabId) -> None:
        await self._transition(tab_id, BadgeState.LOADING)

    async def apply_risk(self, tab_id: TabId, risk: Optional[str]) -> BadgeState:
        """Show the badge for a risk tier; tiers we do not know show as unknown."""
        tier = RiskTier.from_string(risk) if isinstance(risk, str) else risk
        state = _TIER_STATES.get(tier, BadgeState.UNKNOWN)
        if state is BadgeState.UNKNOWN:
            logger.warning("Unrecognized risk tier %r for tab %s", risk, tab_id)
        await self._transition(tab_id, state)
        return state

    async def mark_error(self, tab_id: TabId) -> None:
        await self._transition(tab_id, BadgeState.ERROR)

    async def clear(self, tab_id: TabId) -> None:
        await self._transition(tab_id, BadgeState.CLEARED)

    async def _transition(self, tab_id: TabId, state: BadgeState) -> None:
        previous = self.state(tab_id)
        self._states[tab_id] = state
        logger.debug("Badge tab=%s %s -> %s", tab_id, previous, state)

        # Cleared keeps the last colour, only the text goes away
        color = BADGE_COLORS.get(state)
        try:
            await self.shell.set_badge(tab_id, BADGE_TEXT[state], color)
        except Exception as e:
            logger.warning("Failed to render badge for tab %s: %s", tab_id, e)

    def snapshot(self) -> dict[str, int]:
        """Count of tracked tabs per state."""
        counts = Counter(state.value for state in self._states.values())
        return dict(counts)
