"""
Synchronous event bus for analytics events.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Iterable

if TYPE_CHECKING:
    from learning_analytics.core.events.event_sink import EventSink
    from learning_analytics.core.events.events import AnalyticsEvent


class EventBus:
    """Dispatches events to registered sinks, in registration order.

    A sink registered with ``event_types`` only receives events of those
    types; other sinks receive everything.
    """

    def __init__(self, sinks: Iterable[EventSink] | None = None) -> None:
        self._routes: list[tuple[EventSink, tuple[type, ...] | None]] = [
            (sink, None) for sink in (sinks if sinks is not None else ())
        ]
        self._closed = False

    def register(self, sink: EventSink, *, event_types: Iterable[type] | None = None) -> None:
        """Register a new sink, optionally restricted to some event types."""
        self._routes.append((sink, tuple(event_types) if event_types is not None else None))

    def emit(self, event: AnalyticsEvent) -> None:
        for sink, event_types in self._routes:
            if event_types is None or isinstance(event, event_types):
                sink.on_event(event)

    def close(self) -> None:
        """
        Finalize all sinks that expose a close() method.
        """
        if self._closed:
            return

        for sink, _ in self._routes:
            close_fn = getattr(sink, "close", None)
            if callable(close_fn):
                close_fn()

        self._closed = True


class NullEventBus(EventBus):
    """EventBus that discards every event (default when nothing listens)."""

    def emit(self, event: AnalyticsEvent) -> None:
        return
