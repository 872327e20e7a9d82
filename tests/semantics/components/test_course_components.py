"""
Semantic test: built-in course indicators and targets.

Invariant:
Activity indicators read the course logs within the range bounds.
Dropout labels students without activity in the course's last quarter;
the no-teaching rule flags upcoming courses without teachers or students.
"""

from __future__ import annotations

import pytest

from analytics_fixtures import DAY, NOW, make_context, make_course
from learning_analytics.analytics.indicator.course import AnyWriteAction, ReadActions, StudentActivity
from learning_analytics.analytics.target.course import CourseDropout, NoTeaching
from learning_analytics.core.domain.types import EnrolmentRecord, LogEvent, UserRecord

START = NOW - 100 * DAY
END = NOW - DAY


def _context(tmp_path, *, courses=None):
    courses = courses or [make_course(1, "a1", start=START, end=END)]
    users = [UserRecord(id=10, username="active"), UserRecord(id=11, username="dropout")]
    enrolments = [
        EnrolmentRecord(id=100, user_id=10, course_id=1),
        EnrolmentRecord(id=101, user_id=11, course_id=1),
    ]
    logs = [
        LogEvent(user_id=10, course_id=1, time_created=START + DAY, crud="c"),
        LogEvent(user_id=10, course_id=1, time_created=END - DAY, crud="r"),
        LogEvent(user_id=11, course_id=1, time_created=START + DAY, crud="r"),
    ]
    return make_context(tmp_path, courses=courses, users=users, enrolments=enrolments, logs=logs)


def _bind(component, context, samples_data):
    component.bind(context)
    component.add_sample_data(samples_data)
    return component


def _samples(context):
    course = context.entity_store.get_course(1)
    return {
        100: {"user": context.entity_store.get_user(10), "course": course,
              "user_enrolments": context.entity_store.get_enrolment(100)},
        101: {"user": context.entity_store.get_user(11), "course": course,
              "user_enrolments": context.entity_store.get_enrolment(101)},
    }


def test_write_actions_within_range(tmp_path) -> None:
    context = _context(tmp_path)
    indicator = _bind(AnyWriteAction(), context, _samples(context))
    analysable = context.analysables.get(1)

    assert indicator.calculate([100, 101], "user_enrolments", START, END, analysable) == {100: 1.0, 101: -1.0}
    assert indicator.calculate([100], "user_enrolments", START + 2 * DAY, END, analysable) == {100: -1.0}


def test_read_actions_are_scaled(tmp_path) -> None:
    context = _context(tmp_path)
    indicator = _bind(ReadActions(), context, _samples(context))

    values = indicator.calculate([100, 101], "user_enrolments", START, END, context.analysables.get(1))

    # One read out of a saturation of 20.
    assert values == {100: pytest.approx(-0.9), 101: pytest.approx(-0.9)}


def test_student_activity_is_the_active_share(tmp_path) -> None:
    context = _context(tmp_path)
    indicator = _bind(StudentActivity(), context, {1: {"course": context.entity_store.get_course(1)}})
    analysable = context.analysables.get(1)

    assert indicator.calculate([1], "course", START, END, analysable) == {1: 1.0}
    assert indicator.calculate([1], "course", END - 2 * DAY, END, analysable) == {1: 0.0}


def test_dropout_labels_students_inactive_in_last_quarter(tmp_path) -> None:
    context = _context(tmp_path)
    target = _bind(CourseDropout(), context, _samples(context))
    analysable = context.analysables.get(1)

    assert target.is_valid_analysable(analysable, include_target=True) is True
    assert isinstance(target.is_valid_analysable(analysable, include_target=False), str)
    assert target.calculate([100, 101], analysable) == {100: 0.0, 101: 1.0}
    assert not target.triggers_callback(0.0, 1.0)
    assert not target.triggers_callback(1.0, 0.5)
    assert target.triggers_callback(1.0, 0.6)


def test_no_teaching_flags_courses_without_teachers(tmp_path) -> None:
    upcoming = make_course(1, "a1", start=NOW + 2 * DAY, end=0)
    context = _context(tmp_path, courses=[upcoming])
    target = _bind(NoTeaching(), context, {})
    analysable = context.analysables.get(1)

    assert target.is_static()
    assert target.is_valid_analysable(analysable, include_target=False) is True
    assert target.is_valid_sample(1, analysable, include_target=False)
    assert target.calculate_sample(1, analysable) == 1.0


def test_no_teaching_ignores_courses_far_ahead(tmp_path) -> None:
    later = make_course(1, "a1", start=NOW + 30 * DAY, end=0)
    context = _context(tmp_path, courses=[later])
    target = _bind(NoTeaching(), context, {})

    assert not target.is_valid_sample(1, context.analysables.get(1), include_target=False)
