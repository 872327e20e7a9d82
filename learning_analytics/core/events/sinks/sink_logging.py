"""
Logging event sink.
"""
from __future__ import annotations

import dataclasses
import logging
from typing import TYPE_CHECKING

from learning_analytics.core.events.events import ModelStateTransitionEvent

if TYPE_CHECKING:
    from learning_analytics.core.events.events import AnalyticsEvent


class LoggingEventSink:
    """Logs each analytics event as one record named after the event type.

    The event fields travel in ``extra["event_fields"]``. Invalid model
    state transitions are logged at WARNING, everything else at INFO.
    """

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger if logger is not None else logging.getLogger("learning_analytics.events")

    def on_event(self, event: AnalyticsEvent) -> None:
        level = logging.INFO
        if isinstance(event, ModelStateTransitionEvent) and not event.valid:
            level = logging.WARNING

        self._logger.log(level, type(event).__name__, extra={"event_fields": dataclasses.asdict(event)})
