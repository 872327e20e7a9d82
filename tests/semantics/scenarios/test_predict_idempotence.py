"""
Semantic test: predict idempotence.

Invariant:
Calling predict() twice with no new analysables or ranges in between
keeps the same prediction set and creates no new dataset file, predict
range or used file on the second call.
"""

from __future__ import annotations

from analytics_fixtures import make_context, make_course, stored_file_ids
from learning_analytics.core.domain.reject_reasons import RejectReason
from learning_analytics.core.domain.status import AnalysisStatus
from learning_analytics.model.model import Model


def test_second_predict_has_no_side_effects(tmp_path, processor) -> None:
    context = make_context(
        tmp_path,
        courses=[make_course(1, "a1"), make_course(2, "b2"), make_course(3, "b3", visible=False)],
        processor=processor,
    )
    model = Model.create("test_perfect_target", ["test_fullname"], context=context)
    model.enable("quarters")
    model.train()

    first = model.predict()
    predictions = sorted(p.unique_sample_id for p in model.get_predictions())
    files = stored_file_ids(tmp_path, model.id)
    n_ranges = len(context.repository.get_predict_ranges(model.id))
    n_used = len(context.repository.get_used_files(model.id))

    second = model.predict()

    assert first.n_new == 4
    assert second.status == AnalysisStatus.NO_DATASET
    assert second.n_new == 0
    assert any(RejectReason.NO_NEW_TIME_RANGES in line for line in second.info)
    assert sorted(p.unique_sample_id for p in model.get_predictions()) == predictions
    assert stored_file_ids(tmp_path, model.id) == files
    assert len(context.repository.get_predict_ranges(model.id)) == n_ranges
    assert len(context.repository.get_used_files(model.id)) == n_used
    assert len(processor.predicted) == 1
