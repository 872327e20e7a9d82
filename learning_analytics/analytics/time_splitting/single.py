"""Time splitting methods producing a single range."""

from __future__ import annotations

from typing import TYPE_CHECKING

from learning_analytics.analytics.analysable import MAX_TIME
from learning_analytics.analytics.time_splitting.base import TimeSplitting
from learning_analytics.core.domain.ranges import TimeRange

if TYPE_CHECKING:
    from learning_analytics.analytics.analysable import Analysable


class NoSplitting(TimeSplitting):
    """The whole timeline as one range, always predictable.

    Meant for static targets and analysables without a known time window.
    """

    id = "no_splitting"

    def is_valid_analysable(self, analysable: Analysable) -> bool:
        return True

    def define_ranges(self, analysable: Analysable) -> list[TimeRange]:
        return [TimeRange(index=0, start=0, end=MAX_TIME)]

    def ready_to_predict(self, time_range: TimeRange, now: int) -> bool:
        return True


class SingleRange(TimeSplitting):
    """The analysable window as one range, predictable once it is over."""

    id = "single_range"

    def define_ranges(self, analysable: Analysable) -> list[TimeRange]:
        return [TimeRange(index=0, start=analysable.get_start(), end=analysable.get_end())]
