"""Clock abstraction so cache aging can be driven deterministically."""

from __future__ import annotations

import time
from typing import Protocol


class Clock(Protocol):
    """Anything that returns a monotonically non-decreasing time in seconds."""

    def now(self) -> float: ...


class SystemClock:
    """Monotonic wall clock used in production."""

    def now(self) -> float:
        return time.monotonic()
