"""Time splitting methods dividing the analysable into equal parts."""

from __future__ import annotations

from typing import TYPE_CHECKING, ClassVar

from learning_analytics.analytics.time_splitting.base import TimeSplitting, split_equal_parts

if TYPE_CHECKING:
    from learning_analytics.analytics.analysable import Analysable
    from learning_analytics.core.domain.ranges import TimeRange


class EqualParts(TimeSplitting):
    """``n_parts`` consecutive ranges of the same duration.

    Accumulative variants start every range at the analysable start, so
    range N covers everything up to the end of part N.
    """

    n_parts: ClassVar[int] = 1
    accumulative: ClassVar[bool] = False

    def is_valid_analysable(self, analysable: Analysable) -> bool:
        if not super().is_valid_analysable(analysable):
            return False
        return analysable.get_end() - analysable.get_start() >= self.n_parts

    def define_ranges(self, analysable: Analysable) -> list[TimeRange]:
        return split_equal_parts(
            analysable.get_start(),
            analysable.get_end(),
            self.n_parts,
            accumulative=self.accumulative,
        )


class Quarters(EqualParts):
    id = "quarters"
    n_parts = 4


class QuartersAccum(EqualParts):
    id = "quarters_accum"
    n_parts = 4
    accumulative = True


class Deciles(EqualParts):
    id = "deciles"
    n_parts = 10


class DecilesAccum(EqualParts):
    id = "deciles_accum"
    n_parts = 10
    accumulative = True
