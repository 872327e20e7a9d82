"""Course targets."""

from __future__ import annotations

from typing import TYPE_CHECKING

from learning_analytics.analytics.analysable import WEEK_SECONDS
from learning_analytics.analytics.target.base import Target

if TYPE_CHECKING:
    from learning_analytics.analytics.analysable import CourseAnalysable


class CourseDropout(Target):
    """Students that stopped accessing the course before its last quarter."""

    id = "course_dropout"
    analyser_id = "student_enrolments"
    ignored_classes = (0.0,)
    min_prediction_score = 0.6

    def is_valid_analysable(self, analysable: CourseAnalysable, include_target: bool) -> bool | str:
        if not analysable.was_started():
            return "course not started yet"
        if not analysable.get_students():
            return "course without students"
        if include_target:
            if not analysable.is_finished():
                return "course not finished yet"
            if not analysable.get_total_logs():
                return "course without student activity"
        elif analysable.is_finished():
            return "course already finished"
        return True

    def is_valid_sample(self, sample_id: int, analysable: CourseAnalysable, include_target: bool) -> bool:
        enrolment = self.retrieve("user_enrolments", sample_id)
        if enrolment is None:
            return False
        # Enrolments that ended before the course started or started after it ended.
        if enrolment.time_end and analysable.get_start() > enrolment.time_end:
            return False
        if enrolment.time_start and analysable.get_end() and enrolment.time_start > analysable.get_end():
            return False
        return True

    def calculate_sample(self, sample_id: int, analysable: CourseAnalysable) -> float | None:
        user = self.retrieve("user", sample_id)
        start, end = analysable.get_start(), analysable.get_end()
        if not start or not end:
            return None

        last_quarter = start + int((end - start) * 3 / 4)
        n_events = self.context.log_store.count_user_events(
            user.id, analysable.id, start=last_quarter, end=end
        )
        return 1.0 if n_events == 0 else 0.0


class NoTeaching(Target):
    """Upcoming courses without teachers or without students."""

    id = "no_teaching"
    analyser_id = "courses"
    static = True
    ignored_classes = (0.0,)

    # How far ahead of the course start the rule looks.
    UPCOMING_WINDOW_SECONDS = WEEK_SECONDS

    def is_valid_analysable(self, analysable: CourseAnalysable, include_target: bool) -> bool | str:
        if analysable.is_finished():
            return "course already finished"
        return True

    def is_valid_sample(self, sample_id: int, analysable: CourseAnalysable, include_target: bool) -> bool:
        start = analysable.get_start()
        if not start:
            return False
        now = self.context.clock.now()
        return start - self.UPCOMING_WINDOW_SECONDS <= now

    def calculate_sample(self, sample_id: int, analysable: CourseAnalysable) -> float | None:
        if not analysable.get_teachers() or not analysable.get_students():
            return 1.0
        return 0.0
