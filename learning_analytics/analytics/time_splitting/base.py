"""Time splitting interface.

A time splitting method divides an analysable's duration into ranges. The
model is trained with every range of finished analysables and predicts for
the ranges of ongoing analysables that are ready.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, ClassVar, Iterable, Sequence

from learning_analytics.core.domain.ranges import TimeRange, append_range_index

if TYPE_CHECKING:
    from learning_analytics.analytics.analysable import Analysable
    from learning_analytics.analytics.indicator.base import Indicator
    from learning_analytics.analytics.target.base import Target


class TimeSplitting(ABC):
    """Range definition and dataset calculation for one analysable."""

    id: ClassVar[str] = ""

    def __init__(self) -> None:
        self._analysable: Analysable | None = None
        self._ranges: list[TimeRange] = []

    @classmethod
    def get_id(cls) -> str:
        return cls.id or cls.__name__

    def is_valid_analysable(self, analysable: Analysable) -> bool:
        """Range based methods need a known start and end."""
        start, end = analysable.get_start(), analysable.get_end()
        return start > 0 and end > start

    def set_analysable(self, analysable: Analysable) -> None:
        self._analysable = analysable
        self._ranges = self.define_ranges(analysable)

    @property
    def analysable(self) -> Analysable:
        if self._analysable is None:
            raise RuntimeError(f"{self.get_id()} has no analysable set")
        return self._analysable

    @abstractmethod
    def define_ranges(self, analysable: Analysable) -> list[TimeRange]:
        """Return the ranges of an analysable, indexed from 0."""

    def get_all_ranges(self) -> list[TimeRange]:
        return list(self._ranges)

    def get_range_by_index(self, index: int) -> TimeRange | None:
        for time_range in self._ranges:
            if time_range.index == index:
                return time_range
        return None

    def ready_to_predict(self, time_range: TimeRange, now: int) -> bool:
        """A range can be predicted once it is over."""
        return time_range.end <= now

    def get_ready_ranges(self, now: int) -> list[TimeRange]:
        return [r for r in self._ranges if self.ready_to_predict(r, now)]

    def calculate(
        self,
        sample_ids: Sequence[int],
        sample_origin: str,
        indicators: Iterable[Indicator],
        ranges: Iterable[TimeRange],
        target: Target | None = None,
    ) -> dict[str, list[float]]:
        """Calculate the dataset rows of the given samples and ranges.

        Rows are keyed by ``uniquesampleid``. A row is dropped when every
        indicator returned None, or when its label is None; remaining None
        values become 0.0. The label is appended as the last column.
        """
        analysable = self.analysable
        indicators = list(indicators)

        labels = target.calculate(sample_ids, analysable) if target is not None else None

        rows: dict[str, list[float]] = {}
        for time_range in ranges:
            calculated = [
                indicator.calculate(sample_ids, sample_origin, time_range.start, time_range.end, analysable)
                for indicator in indicators
            ]

            for sample_id in sample_ids:
                values = [values_by_sample.get(sample_id) for values_by_sample in calculated]
                if all(value is None for value in values):
                    continue

                row = [0.0 if value is None else float(value) for value in values]
                if labels is not None:
                    label = labels.get(sample_id)
                    if label is None:
                        continue
                    row.append(float(label))

                rows[append_range_index(sample_id, time_range.index)] = row

        return rows


def split_equal_parts(start: int, end: int, n_parts: int, *, accumulative: bool) -> list[TimeRange]:
    """Split [start, end] into ``n_parts`` ranges; the last one ends at ``end``."""
    duration = (end - start) // n_parts
    ranges = []
    for index in range(n_parts):
        range_start = start if accumulative else start + duration * index
        range_end = end if index == n_parts - 1 else start + duration * (index + 1)
        ranges.append(TimeRange(index=index, start=range_start, end=range_end))
    return ranges
