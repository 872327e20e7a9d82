"""Periodic time splitting methods."""

from __future__ import annotations

from typing import TYPE_CHECKING, ClassVar

from learning_analytics.analytics.analysable import WEEK_SECONDS
from learning_analytics.analytics.time_splitting.base import TimeSplitting
from learning_analytics.core.domain.ranges import TimeRange

if TYPE_CHECKING:
    from learning_analytics.analytics.analysable import Analysable


class Periodic(TimeSplitting):
    """Consecutive ranges of ``period_seconds``; the last one ends with the analysable."""

    period_seconds: ClassVar[int] = WEEK_SECONDS
    max_ranges: ClassVar[int] = 16

    def is_valid_analysable(self, analysable: Analysable) -> bool:
        if not super().is_valid_analysable(analysable):
            return False
        duration = analysable.get_end() - analysable.get_start()
        return duration <= self.period_seconds * self.max_ranges

    def define_ranges(self, analysable: Analysable) -> list[TimeRange]:
        start, end = analysable.get_start(), analysable.get_end()
        ranges = []
        range_start = start
        while range_start < end:
            range_end = min(range_start + self.period_seconds, end)
            ranges.append(TimeRange(index=len(ranges), start=range_start, end=range_end))
            range_start = range_end
        return ranges


class Weekly(Periodic):
    id = "weekly"
