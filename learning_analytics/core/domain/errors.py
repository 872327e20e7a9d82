"""Exceptions raised by the analytics core.

Only configuration and programming errors are exceptions. Data-driven
outcomes (an analysable without samples, a busy lease, ...) are rejections,
see ``reject_reasons``.
"""

from __future__ import annotations


class AnalyticsError(Exception):
    """Base class for analytics errors."""


class RequirementsError(AnalyticsError):
    """An indicator requires sample data the analyser does not provide."""

    def __init__(self, indicator_id: str, analyser_id: str, missing: list[str]) -> None:
        self.indicator_id = indicator_id
        self.analyser_id = analyser_id
        self.missing = list(missing)
        super().__init__(
            f"{indicator_id} indicator requires {self.missing} sample data "
            f"which is not provided by {analyser_id}"
        )


class IndicatorValueError(AnalyticsError, ValueError):
    """An indicator returned a value outside its declared bounds."""


class ModelStateError(AnalyticsError):
    """The requested operation is not allowed in the model's current state."""


class UnknownComponentError(AnalyticsError, KeyError):
    """No component is registered under the requested identifier."""
