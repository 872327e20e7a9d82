"""Shared base of indicators and targets.

Both are pluggable per-sample calculators identified by a registry id.
The analyser attaches the entity data of each sample (keyed by origin
name) before asking them to calculate anything.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, ClassVar, Mapping

if TYPE_CHECKING:
    from learning_analytics.analytics.context import AnalyticsContext


class Calculable:
    """Registry id, bound context and attached sample data."""

    id: ClassVar[str] = ""

    def __init__(self) -> None:
        self._sample_data: dict[int, dict[str, Any]] = {}
        self._context: AnalyticsContext | None = None

    def bind(self, context: AnalyticsContext) -> None:
        """Give the calculator access to the stores and the clock."""
        self._context = context

    @property
    def context(self) -> AnalyticsContext:
        if self._context is None:
            raise RuntimeError(f"{self.get_id()} is not bound to an analytics context")
        return self._context

    @classmethod
    def get_id(cls) -> str:
        return cls.id or cls.__name__

    def add_sample_data(self, samples_data: Mapping[int, Mapping[str, Any]]) -> None:
        """Attach entity data: ``{sample_id: {origin: record}}``."""
        for sample_id, data in samples_data.items():
            self._sample_data.setdefault(sample_id, {}).update(data)

    def clear_sample_data(self) -> None:
        self._sample_data.clear()

    def retrieve(self, origin: str, sample_id: int) -> Any:
        """Return the ``origin`` entity attached to a sample, None if missing."""
        return self._sample_data.get(sample_id, {}).get(origin)
