"""
Semantic test: enable and clear.

Invariant:
Every lifecycle step is a valid state transition. Enabling with a
different time splitting method clears the model: bookkeeping,
predictions, dataset files and the processor model are purged and the
model needs training again.
"""

from __future__ import annotations

from analytics_fixtures import make_context, make_course, stored_file_ids
from learning_analytics.core.events.event_bus import EventBus
from learning_analytics.core.events.events import ModelStateTransitionEvent
from learning_analytics.model.model import Model


class RecordingSink:
    def __init__(self) -> None:
        self.events: list[object] = []

    def on_event(self, event: object) -> None:
        self.events.append(event)

    def transitions(self) -> list[tuple[str | None, str, bool]]:
        return [
            (e.prev_state, e.next_state, e.valid)
            for e in self.events
            if isinstance(e, ModelStateTransitionEvent)
        ]


def _context(tmp_path, processor, sink):
    return make_context(
        tmp_path,
        courses=[make_course(1, "a1"), make_course(2, "b2"), make_course(3, "a3", visible=False)],
        processor=processor,
        event_bus=EventBus([sink]),
    )


def test_lifecycle_transitions_are_valid(tmp_path, processor) -> None:
    sink = RecordingSink()
    context = _context(tmp_path, processor, sink)

    model = Model.create("test_perfect_target", ["test_fullname"], context=context)
    model.enable("quarters")
    model.train()
    model.disable()

    assert sink.transitions() == [
        (None, "created", True),
        ("created", "configured", True),
        ("configured", "enabled", True),
        ("enabled", "trained", True),
        ("trained", "configured", True),
    ]


def test_changing_time_splitting_clears_the_model(tmp_path, processor) -> None:
    sink = RecordingSink()
    context = _context(tmp_path, processor, sink)
    model = Model.create("test_perfect_target", ["test_fullname"], context=context)
    model.enable("quarters")
    model.train()
    model.predict()
    old_unique_id = model.get_unique_id()

    model.enable("single_range")

    repository = context.repository
    assert model.get_time_splitting_id() == "single_range"
    assert model.state == "enabled"
    assert not model.is_trained()
    assert model.get_unique_id() != old_unique_id
    assert processor.cleared == [old_unique_id]
    assert repository.get_train_samples(model.id) == []
    assert repository.get_predict_ranges(model.id) == []
    assert repository.get_predictions(model.id) == []
    assert stored_file_ids(tmp_path, model.id) == []
    assert all(valid for _, _, valid in sink.transitions())

    # The whole dataset is available for training again.
    model.train()
    assert processor.trained[model.get_unique_id()] == [["1-0", "2-0"]]


def test_enabling_again_with_the_same_method_keeps_the_training(tmp_path, processor) -> None:
    sink = RecordingSink()
    context = _context(tmp_path, processor, sink)
    model = Model.create("test_perfect_target", ["test_fullname"], context=context)
    model.enable("quarters")
    model.train()

    model.enable("quarters")

    assert model.is_trained()
    assert processor.cleared == []
    assert Model.load(model.id, context=context).definition == model.definition
