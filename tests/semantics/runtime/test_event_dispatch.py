"""
Semantic test: event dispatch and recording.

Invariant:
Every emitted event reaches the sinks registered for its type, the file
recorder writes one JSON line per event tagged with its type, and
closing the bus closes its sinks exactly once.
"""

from __future__ import annotations

import json
import logging

from learning_analytics.core.events.event_bus import EventBus, NullEventBus
from learning_analytics.core.events.events import AnalysableRejectedEvent, ModelStateTransitionEvent
from learning_analytics.core.events.sinks.file_recorder import FileRecorderSink
from learning_analytics.core.events.sinks.sink_logging import LoggingEventSink


def test_events_are_recorded_as_json_lines(tmp_path) -> None:
    path = tmp_path / "out" / "events.jsonl"
    bus = EventBus([FileRecorderSink(path)])

    bus.emit(ModelStateTransitionEvent(ts=1, model_id=3, prev_state=None, next_state="configured", valid=True))
    bus.emit(
        AnalysableRejectedEvent(
            ts=2,
            model_id=3,
            analysable_id=7,
            time_splitting=None,
            reason="ANALYSABLE_NOT_VALID_FOR_TARGET",
        )
    )
    bus.close()
    bus.close()

    records = [json.loads(line) for line in path.read_text(encoding="utf-8").splitlines()]
    assert [record["type"] for record in records] == ["ModelStateTransitionEvent", "AnalysableRejectedEvent"]
    assert records[0]["next_state"] == "configured"
    assert records[1]["time_splitting"] is None


def test_sink_close_is_idempotent(tmp_path) -> None:
    sink = FileRecorderSink(tmp_path / "events.jsonl")
    sink.close()
    sink.close()


class _Collector:
    def __init__(self) -> None:
        self.events: list[object] = []

    def on_event(self, event: object) -> None:
        self.events.append(event)


def test_sinks_can_be_restricted_to_event_types() -> None:
    everything = _Collector()
    transitions = _Collector()
    bus = EventBus([everything])
    bus.register(transitions, event_types=[ModelStateTransitionEvent])

    bus.emit(ModelStateTransitionEvent(ts=1, model_id=3, prev_state=None, next_state="created", valid=True))
    bus.emit(AnalysableRejectedEvent(ts=2, model_id=3, analysable_id=7, time_splitting="weekly", reason="NO_NEW_DATA"))

    assert len(everything.events) == 2
    assert [type(e).__name__ for e in transitions.events] == ["ModelStateTransitionEvent"]


def test_null_event_bus_discards_events() -> None:
    sink = _Collector()
    bus = NullEventBus([sink])

    bus.emit(ModelStateTransitionEvent(ts=1, model_id=3, prev_state=None, next_state="created", valid=True))

    assert sink.events == []


def test_logging_sink_flags_invalid_transitions(caplog) -> None:
    sink = LoggingEventSink()

    with caplog.at_level(logging.INFO, logger="learning_analytics.events"):
        sink.on_event(ModelStateTransitionEvent(ts=1, model_id=3, prev_state="created", next_state="trained", valid=False))
        sink.on_event(ModelStateTransitionEvent(ts=2, model_id=3, prev_state="created", next_state="configured", valid=True))

    assert [(r.levelno, r.getMessage()) for r in caplog.records] == [
        (logging.WARNING, "ModelStateTransitionEvent"),
        (logging.INFO, "ModelStateTransitionEvent"),
    ]
    assert caplog.records[0].event_fields["next_state"] == "trained"
