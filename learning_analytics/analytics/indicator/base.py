"""Indicator interface.

An indicator computes one numeric feature per sample and time range.
Values are bounded to [MIN_VALUE, MAX_VALUE]; None means "no value for this
sample in this range".
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, ClassVar, Iterable

from learning_analytics.analytics.calculable import Calculable
from learning_analytics.core.domain.errors import IndicatorValueError

if TYPE_CHECKING:
    from learning_analytics.analytics.analysable import Analysable


class Indicator(Calculable):
    """Per-sample feature calculator."""

    MIN_VALUE: ClassVar[float] = -1.0
    MAX_VALUE: ClassVar[float] = 1.0

    @classmethod
    def required_sample_data(cls) -> list[str]:
        """Sample data origins the analyser must provide."""
        return []

    @abstractmethod
    def calculate_sample(
        self,
        sample_id: int,
        sample_origin: str,
        start: int,
        end: int,
        analysable: Analysable,
    ) -> float | None:
        """Return the indicator value of a sample within [start, end]."""

    def calculate(
        self,
        sample_ids: Iterable[int],
        sample_origin: str,
        start: int,
        end: int,
        analysable: Analysable,
    ) -> dict[int, float | None]:
        """Calculate every sample of one range."""
        values: dict[int, float | None] = {}
        for sample_id in sample_ids:
            value = self.calculate_sample(sample_id, sample_origin, start, end, analysable)
            if value is not None and not self.MIN_VALUE <= value <= self.MAX_VALUE:
                raise IndicatorValueError(
                    f"{self.get_id()} returned {value} for sample {sample_id}, "
                    f"expected a value in [{self.MIN_VALUE}, {self.MAX_VALUE}]"
                )
            values[sample_id] = value
        return values


class BinaryIndicator(Indicator):
    """Indicator answering a yes/no question, encoded as MAX/MIN."""

    @abstractmethod
    def calculate_flag(
        self,
        sample_id: int,
        sample_origin: str,
        start: int,
        end: int,
        analysable: Analysable,
    ) -> bool | None:
        """Return the answer for a sample, None if it cannot be answered."""

    def calculate_sample(
        self,
        sample_id: int,
        sample_origin: str,
        start: int,
        end: int,
        analysable: Analysable,
    ) -> float | None:
        flag = self.calculate_flag(sample_id, sample_origin, start, end, analysable)
        if flag is None:
            return None
        return self.MAX_VALUE if flag else self.MIN_VALUE


class LinearIndicator(Indicator):
    """Indicator measuring a quantity, scaled into [MIN_VALUE, MAX_VALUE]."""

    @classmethod
    def scale(cls, value: float, lower: float, upper: float) -> float:
        """Map ``value`` from [lower, upper] onto [MIN_VALUE, MAX_VALUE], clamping."""
        if upper <= lower:
            raise ValueError("upper must be greater than lower")
        ratio = (min(max(value, lower), upper) - lower) / (upper - lower)
        return cls.MIN_VALUE + ratio * (cls.MAX_VALUE - cls.MIN_VALUE)
