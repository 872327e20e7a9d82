"""Activity indicators computed from the course logs."""

from __future__ import annotations

from typing import TYPE_CHECKING

from learning_analytics.analytics.indicator.base import BinaryIndicator, LinearIndicator

if TYPE_CHECKING:
    from learning_analytics.analytics.analysable import Analysable

WRITE_CRUD = ("c", "u", "d")


class AnyWriteAction(BinaryIndicator):
    """Did the user create, update or delete anything in the course?"""

    id = "any_write_action"

    @classmethod
    def required_sample_data(cls) -> list[str]:
        return ["user", "course"]

    def calculate_flag(
        self,
        sample_id: int,
        sample_origin: str,
        start: int,
        end: int,
        analysable: Analysable,
    ) -> bool | None:
        user = self.retrieve("user", sample_id)
        course = self.retrieve("course", sample_id)
        n_events = self.context.log_store.count_user_events(
            user.id, course.id, start=start, end=end, crud=WRITE_CRUD
        )
        return n_events > 0


class AnyCourseAccess(BinaryIndicator):
    """Did the user access the course at all?"""

    id = "any_course_access"

    @classmethod
    def required_sample_data(cls) -> list[str]:
        return ["user", "course"]

    def calculate_flag(
        self,
        sample_id: int,
        sample_origin: str,
        start: int,
        end: int,
        analysable: Analysable,
    ) -> bool | None:
        user = self.retrieve("user", sample_id)
        course = self.retrieve("course", sample_id)
        first = self.context.log_store.first_event_time(user.id, course.id)
        if first is None or first > end:
            return False
        return True


class ReadActions(LinearIndicator):
    """Amount of read actions of the user in the course."""

    id = "read_actions"

    # Number of reads from which the indicator is saturated.
    SATURATION = 20

    @classmethod
    def required_sample_data(cls) -> list[str]:
        return ["user", "course"]

    def calculate_sample(
        self,
        sample_id: int,
        sample_origin: str,
        start: int,
        end: int,
        analysable: Analysable,
    ) -> float | None:
        user = self.retrieve("user", sample_id)
        course = self.retrieve("course", sample_id)
        n_reads = self.context.log_store.count_user_events(
            user.id, course.id, start=start, end=end, crud=("r",)
        )
        return self.scale(n_reads, 0, self.SATURATION)


class StudentActivity(LinearIndicator):
    """Share of the course students with any activity in the range."""

    id = "student_activity"

    @classmethod
    def required_sample_data(cls) -> list[str]:
        return ["course"]

    def calculate_sample(
        self,
        sample_id: int,
        sample_origin: str,
        start: int,
        end: int,
        analysable: Analysable,
    ) -> float | None:
        course = self.retrieve("course", sample_id)
        students = self.context.analysables.get(course.id).get_students()
        if not students:
            return None

        log_store = self.context.log_store
        active = sum(
            1
            for user_id in students
            if log_store.count_user_events(user_id, course.id, start=start, end=end) > 0
        )
        return self.scale(active / len(students), 0.0, 1.0)
