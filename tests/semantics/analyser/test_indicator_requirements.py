"""
Semantic test: indicator requirements.

Invariant:
An indicator requiring a sample data origin the analyser does not provide
makes the analyser construction fail with a RequirementsError naming both
the indicator and the missing origin. No model is persisted.
"""

from __future__ import annotations

import pytest

from analytics_fixtures import PerfectTarget, UnprovidedOriginIndicator, make_context, make_course
from learning_analytics.analytics.analyser.by_course import CoursesAnalyser, StudentEnrolmentsAnalyser
from learning_analytics.analytics.indicator.course import AnyWriteAction
from learning_analytics.core.domain.errors import RequirementsError
from learning_analytics.model.model import Model


def test_model_creation_fails_on_unprovided_origin(tmp_path) -> None:
    context = make_context(tmp_path, courses=[make_course(1, "a1")])

    with pytest.raises(RequirementsError) as exc_info:
        Model.create("test_perfect_target", ["test_max", UnprovidedOriginIndicator.id], context=context)

    error = exc_info.value
    assert error.indicator_id == UnprovidedOriginIndicator.id
    assert error.analyser_id == "courses"
    assert error.missing == ["grades"]
    assert UnprovidedOriginIndicator.id in str(error)
    assert "grades" in str(error)
    assert context.repository.list_models() == []


def test_analyser_reports_only_the_missing_origins(tmp_path) -> None:
    context = make_context(tmp_path)
    target = PerfectTarget()
    target.bind(context)

    with pytest.raises(RequirementsError) as exc_info:
        CoursesAnalyser(
            model_id=1,
            target=target,
            indicators=[AnyWriteAction()],
            time_splittings=[],
            context=context,
        )

    # "course" is provided by the courses analyser, "user" is not.
    assert exc_info.value.missing == ["user"]


def test_enrolments_analyser_provides_user_and_course(tmp_path) -> None:
    context = make_context(tmp_path)
    target = PerfectTarget()
    target.bind(context)

    analyser = StudentEnrolmentsAnalyser(
        model_id=1,
        target=target,
        indicators=[AnyWriteAction()],
        time_splittings=[],
        context=context,
    )

    assert analyser.check_indicator_requirements(UnprovidedOriginIndicator()) == ["grades"]
