"""
Event sink interface.

Sinks consume the analytics events emitted while analysing, training and
predicting. A sink holding resources may also expose ``close()``; the bus
calls it once on shutdown.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from learning_analytics.core.events.events import AnalyticsEvent


class EventSink(Protocol):
    def on_event(self, event: AnalyticsEvent) -> None:
        """Consume one analytics event."""
