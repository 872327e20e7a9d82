"""Activity log store protocol.

A queryable, time-ordered event log. The analytics core only needs a few
aggregate queries; implementations are expected to answer them with
indexed lookups rather than by scanning the whole log.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable, Protocol

if TYPE_CHECKING:
    from learning_analytics.core.domain.types import LastAccessRecord


class LogStore(Protocol):

    def count_events(self, course_id: int, user_ids: Iterable[int]) -> int:
        """Count the events of the given users in the course."""

    def first_event_time(self, user_id: int, course_id: int) -> int | None:
        """Timestamp of the user's first event in the course, None if none."""

    def count_user_events(
        self,
        user_id: int,
        course_id: int,
        *,
        start: int,
        end: int,
        crud: Iterable[str] | None = None,
    ) -> int:
        """Count the user's course events with start <= time_created < end.

        Ranges are half-open so that adjacent time ranges never share an event.
        """

    def last_accesses(
        self,
        course_id: int,
        user_ids: Iterable[int],
    ) -> list[LastAccessRecord]:
        """Return the last access record of each given user in the course."""
