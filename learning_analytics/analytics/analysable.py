"""Analysable entities.

An analysable is the top-level entity a model is evaluated per (a course).
Its time window may be configured or unknown (0); unknown bounds can be
guessed from the activity logs of its students.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Callable, Iterable

if TYPE_CHECKING:
    from learning_analytics.core.domain.types import CourseRecord, EnrolmentRecord
    from learning_analytics.core.ports.clock import Clock
    from learning_analytics.core.ports.entity_store import EntityStore
    from learning_analytics.core.ports.log_store import LogStore

LOGGER = logging.getLogger(__name__)

WEEK_SECONDS = 7 * 24 * 3600

# Upper bound used by time splitting methods without an end.
MAX_TIME = 9999999999

STUDENT_ROLES = ("student",)
TEACHER_ROLES = ("teacher", "editingteacher")


def median(values: Iterable[int]) -> int:
    """Median of the values, truncated toward zero for even lengths."""
    ordered = sorted(values)
    count = len(ordered)
    if count == 0:
        raise ValueError("median() of an empty sequence")
    if count == 1:
        return int(ordered[0])

    middle = (count - 1) // 2
    if count % 2:
        return int(ordered[middle])
    return int((ordered[middle] + ordered[middle + 1]) / 2)


class Analysable(ABC):
    """Entity with an id and a (possibly unknown) time window."""

    @property
    @abstractmethod
    def id(self) -> int:
        """Analysable id."""

    @abstractmethod
    def get_start(self) -> int:
        """Start timestamp, 0 if unknown."""

    @abstractmethod
    def get_end(self) -> int:
        """End timestamp, 0 if unknown."""

    def get_context_id(self) -> str:
        return f"analysable:{self.id}"


class CourseAnalysable(Analysable):
    """A course and its enrolled users.

    Students and teachers are loaded once on construction; the start, end
    and log count are computed on first use.
    """

    ONGOING_WINDOW_SECONDS = 8 * WEEK_SECONDS

    def __init__(
        self,
        course: CourseRecord,
        *,
        entity_store: EntityStore,
        log_store: LogStore,
        clock: Clock,
    ) -> None:
        self.course = course
        self._log_store = log_store
        self._now = clock.now()

        enrolments = entity_store.get_enrolments(course.id)
        self._student_enrolments: list[EnrolmentRecord] = [
            e for e in enrolments if e.role in STUDENT_ROLES
        ]
        self._student_ids = sorted({e.user_id for e in self._student_enrolments})
        self._teacher_ids = sorted({e.user_id for e in enrolments if e.role in TEACHER_ROLES})

        self._total_logs: int | None = None

    @property
    def id(self) -> int:
        return self.course.id

    def get_context_id(self) -> str:
        return f"course:{self.course.id}"

    # ------------------------------------------------------------------
    # Time window
    # ------------------------------------------------------------------

    def get_start(self) -> int:
        return int(self.course.start_date) if self.course.start_date else 0

    def get_end(self) -> int:
        return int(self.course.end_date) if self.course.end_date else 0

    def guess_start(self) -> int:
        """Midpoint of the students' median first access and median enrolment start."""
        if not self.get_total_logs():
            return 0

        first_accesses = []
        for user_id in self._student_ids:
            first = self._log_store.first_event_time(user_id, self.course.id)
            if first is not None:
                first_accesses.append(first)
        if not first_accesses:
            return 0

        if not self._student_enrolments:
            return 0
        enrolment_starts = [e.effective_start for e in self._student_enrolments]

        return int((median(enrolment_starts) + median(first_accesses)) / 2)

    def guess_end(self) -> int:
        """Median of the students' last accesses, 0 while the course looks ongoing."""
        if not self.get_total_logs():
            return 0

        accesses = self._log_store.last_accesses(self.course.id, self._student_ids)

        recent_boundary = self._now - self.ONGOING_WINDOW_SECONDS
        if any(access.time_access > recent_boundary for access in accesses):
            LOGGER.debug("Course still accessed, end not guessed", extra={"course_id": self.id})
            return 0

        last_accesses = [access.time_access for access in accesses if access.time_access]
        if not last_accesses:
            return 0
        return median(last_accesses)

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    def was_started(self) -> bool:
        start = self.get_start()
        return start != 0 and self._now >= start

    def is_finished(self) -> bool:
        end = self.get_end()
        return end != 0 and self._now >= end

    def is_valid(self) -> bool:
        """Started and finished courses are the ones indicators can be extracted from."""
        return self.was_started() and self.is_finished()

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    def get_students(self) -> list[int]:
        return list(self._student_ids)

    def get_teachers(self) -> list[int]:
        return list(self._teacher_ids)

    def get_total_logs(self) -> int:
        """Number of log events of the course students."""
        if not self._student_ids:
            return 0
        if self._total_logs is None:
            self._total_logs = self._log_store.count_events(self.course.id, self._student_ids)
        return self._total_logs


class AnalysableCache:
    """Per-process cache of analysables, keyed by id.

    Owned by the analytics context; ``reset()`` drops every cached instance.
    """

    def __init__(self, factory: Callable[[int], Analysable]) -> None:
        self._factory = factory
        self._instances: dict[int, Analysable] = {}

    def get(self, analysable_id: int) -> Analysable:
        instance = self._instances.get(analysable_id)
        if instance is None:
            instance = self._factory(analysable_id)
            self._instances[analysable_id] = instance
        return instance

    def reset(self) -> None:
        self._instances.clear()

    def __contains__(self, analysable_id: object) -> bool:
        return analysable_id in self._instances

    def __len__(self) -> int:
        return len(self._instances)
