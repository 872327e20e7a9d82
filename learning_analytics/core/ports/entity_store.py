"""Entity store protocol.

Read-only boundary to the learning platform's database. Concrete stores
adapt a specific backend (SQL, REST export, JSON dump) to this protocol.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable, Protocol

if TYPE_CHECKING:
    from learning_analytics.core.domain.types import (
        CourseRecord,
        EnrolmentRecord,
        UserRecord,
    )


class EntityStore(Protocol):
    """Parameterised row queries keyed by foreign ids."""

    def list_course_ids(self) -> list[int]:
        """Return all course ids, ascending."""

    def get_course(self, course_id: int) -> CourseRecord:
        """Return a course. Raises KeyError if it does not exist."""

    def get_user(self, user_id: int) -> UserRecord:
        """Return a user. Raises KeyError if it does not exist."""

    def get_enrolment(self, enrolment_id: int) -> EnrolmentRecord:
        """Return an enrolment. Raises KeyError if it does not exist."""

    def get_enrolments(
        self,
        course_id: int,
        *,
        roles: Iterable[str] | None = None,
    ) -> list[EnrolmentRecord]:
        """Return the course enrolments, optionally filtered by role."""
