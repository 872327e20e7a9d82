"""Injectable clock.

Every time read of the pipeline goes through a ``Clock`` so that range
readiness, lease expiry and evaluation reuse windows are deterministic in
tests. Timestamps are unix seconds.
"""

from __future__ import annotations

import time
from typing import Protocol


class Clock(Protocol):
    def now(self) -> int:
        """Return the current unix timestamp in seconds."""


class SystemClock:
    """Wall clock."""

    def now(self) -> int:
        return int(time.time())


class FixedClock:
    """Manually driven clock for tests and replays."""

    def __init__(self, now: int) -> None:
        self._now = int(now)

    def now(self) -> int:
        return self._now

    def set(self, now: int) -> None:
        self._now = int(now)

    def advance(self, seconds: int) -> None:
        self._now += int(seconds)
