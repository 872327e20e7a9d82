"""Analysers whose analysables are courses."""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable

from learning_analytics.analytics.analyser.base import Analyser, SampleData

if TYPE_CHECKING:
    from learning_analytics.analytics.analysable import Analysable, CourseAnalysable


class ByCourseAnalyser(Analyser):
    """Iterates every course of the entity store."""

    def get_analysables(self) -> list[Analysable]:
        cache = self.context.analysables
        return [cache.get(course_id) for course_id in sorted(self.context.entity_store.list_course_ids())]

    def sample_access_context(self, sample_id: int) -> str:
        return self.get_sample_analysable(sample_id).get_context_id()


class CoursesAnalyser(ByCourseAnalyser):
    """One sample per course: the course itself."""

    id = "courses"

    def get_samples_origin(self) -> str:
        return "course"

    def get_all_samples(self, analysable: CourseAnalysable) -> tuple[list[int], SampleData]:
        return [analysable.id], {analysable.id: {"course": analysable.course}}

    def get_samples(self, sample_ids: Iterable[int]) -> tuple[list[int], SampleData]:
        ids = list(sample_ids)
        entity_store = self.context.entity_store
        return ids, {course_id: {"course": entity_store.get_course(course_id)} for course_id in ids}

    def get_sample_analysable(self, sample_id: int) -> Analysable:
        return self.context.analysables.get(sample_id)


class StudentEnrolmentsAnalyser(ByCourseAnalyser):
    """One sample per student enrolment of the course."""

    id = "student_enrolments"

    def get_samples_origin(self) -> str:
        return "user_enrolments"

    def provided_sample_data(self) -> list[str]:
        return ["user_enrolments", "course", "user"]

    def get_all_samples(self, analysable: CourseAnalysable) -> tuple[list[int], SampleData]:
        entity_store = self.context.entity_store
        enrolments = entity_store.get_enrolments(analysable.id, roles=("student",))

        sample_ids: list[int] = []
        samples_data: SampleData = {}
        for enrolment in sorted(enrolments, key=lambda e: e.id):
            sample_ids.append(enrolment.id)
            samples_data[enrolment.id] = {
                "user_enrolments": enrolment,
                "course": analysable.course,
                "user": entity_store.get_user(enrolment.user_id),
            }
        return sample_ids, samples_data

    def get_samples(self, sample_ids: Iterable[int]) -> tuple[list[int], SampleData]:
        entity_store = self.context.entity_store
        ids = list(sample_ids)
        samples_data: SampleData = {}
        for enrolment_id in ids:
            enrolment = entity_store.get_enrolment(enrolment_id)
            samples_data[enrolment_id] = {
                "user_enrolments": enrolment,
                "course": entity_store.get_course(enrolment.course_id),
                "user": entity_store.get_user(enrolment.user_id),
            }
        return ids, samples_data

    def get_sample_analysable(self, sample_id: int) -> Analysable:
        enrolment = self.context.entity_store.get_enrolment(sample_id)
        return self.context.analysables.get(enrolment.course_id)
