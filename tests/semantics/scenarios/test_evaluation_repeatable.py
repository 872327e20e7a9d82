"""
Semantic test: evaluation.

Invariant:
Evaluating twice on identical data returns identical status and score
for each time splitting method; evaluation writes no bookkeeping and does
not change the model state. Low scores and unstable scores are flagged.
"""

from __future__ import annotations

from analytics_fixtures import DeterministicProcessor, make_context, make_course
from learning_analytics.core.domain.status import AnalysisStatus
from learning_analytics.io.local_files import LocalFileStore
from learning_analytics.model.model import Model

TIME_SPLITTINGS = ["quarters", "single_range", "weekly"]


def _model(tmp_path, processor) -> Model:
    context = make_context(
        tmp_path,
        courses=[make_course(1, "a1"), make_course(2, "b2"), make_course(3, "a3")],
        processor=processor,
    )
    return Model.create("test_perfect_target", ["test_fullname", "test_max"], context=context)


def _summary(results):
    return [(r.time_splitting, r.status, r.score, r.n_samples) for r in results]


def test_evaluation_is_repeatable(tmp_path, processor) -> None:
    model = _model(tmp_path, processor)

    first = model.evaluate(time_splitting_ids=TIME_SPLITTINGS, reuse_prev_analysed=False)
    second = model.evaluate(time_splitting_ids=TIME_SPLITTINGS, reuse_prev_analysed=False)

    assert _summary(first) == _summary(second)
    assert _summary(first) == [
        ("quarters", AnalysisStatus.OK, 1.0, 12),
        ("single_range", AnalysisStatus.OK, 1.0, 3),
        # 120 days are more than 16 weeks.
        ("weekly", AnalysisStatus.NO_DATASET, 0.0, 0),
    ]


def test_evaluation_leaves_no_bookkeeping(tmp_path, processor) -> None:
    model = _model(tmp_path, processor)
    state = model.state

    model.evaluate(time_splitting_ids=TIME_SPLITTINGS)

    repository = model.context.repository
    assert repository.get_train_samples(model.id) == []
    assert repository.get_predict_ranges(model.id) == []
    assert repository.get_used_files(model.id) == []
    assert model.state == state
    assert not model.is_trained()


def test_recent_evaluation_datasets_are_reused(tmp_path, processor) -> None:
    model = _model(tmp_path, processor)
    files = LocalFileStore(tmp_path / "files")
    prefix = f"model_{model.id}/evaluation/quarters/analysable_1/"

    model.evaluate(time_splitting_ids=["quarters"], reuse_prev_analysed=True)
    model.evaluate(time_splitting_ids=["quarters"], reuse_prev_analysed=True)
    assert len(files.list(prefix)) == 1

    model.evaluate(time_splitting_ids=["quarters"], reuse_prev_analysed=False)
    assert len(files.list(prefix)) == 2


def test_low_and_unstable_scores_are_flagged(tmp_path) -> None:
    model = _model(tmp_path, DeterministicProcessor(score=0.5, deviation=0.05))

    [result] = model.evaluate(time_splitting_ids=["single_range"])

    assert result.status.contains(AnalysisStatus.EVALUATE_LOW_SCORE)
    assert result.status.contains(AnalysisStatus.EVALUATE_NOT_ENOUGH_DATA)
    assert result.score == 0.5


def test_static_models_are_not_evaluated(tmp_path, processor) -> None:
    context = make_context(tmp_path, courses=[make_course(1, "a1")], processor=processor)
    model = Model.create("test_static_perfect_target", ["test_max"], context=context)

    [result] = model.evaluate()

    assert result.time_splitting is None
    assert result.status == AnalysisStatus.OK
    assert processor.evaluated == []
