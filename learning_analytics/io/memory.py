"""In-memory entity and log stores.

Loadable from a JSON dump of the learning platform:

    {
      "courses": [{"id": 1, "shortname": "a1", "fullname": "A 1", ...}],
      "users": [{"id": 10, "username": "student10"}],
      "enrolments": [{"id": 100, "user_id": 10, "course_id": 1, "role": "student"}],
      "logs": [{"user_id": 10, "course_id": 1, "time_created": 1700000000, "crud": "r"}],
      "last_access": [{"user_id": 10, "course_id": 1, "time_access": 1700000000}]
    }

``last_access`` is optional; it is derived from the logs when missing.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Iterable

from learning_analytics.core.domain.types import (
    CourseRecord,
    EnrolmentRecord,
    LastAccessRecord,
    LogEvent,
    UserRecord,
)


class InMemoryEntityStore:
    def __init__(
        self,
        *,
        courses: Iterable[CourseRecord] = (),
        users: Iterable[UserRecord] = (),
        enrolments: Iterable[EnrolmentRecord] = (),
    ) -> None:
        self._courses = {course.id: course for course in courses}
        self._users = {user.id: user for user in users}
        self._enrolments = {enrolment.id: enrolment for enrolment in enrolments}

    @classmethod
    def from_json_obj(cls, dump: dict[str, Any]) -> InMemoryEntityStore:
        return cls(
            courses=[CourseRecord.model_validate(c) for c in dump.get("courses", [])],
            users=[UserRecord.model_validate(u) for u in dump.get("users", [])],
            enrolments=[EnrolmentRecord.model_validate(e) for e in dump.get("enrolments", [])],
        )

    @classmethod
    def from_json_file(cls, path: str | Path) -> InMemoryEntityStore:
        return cls.from_json_obj(_load_json(path))

    def add_course(self, course: CourseRecord) -> None:
        self._courses[course.id] = course

    def add_user(self, user: UserRecord) -> None:
        self._users[user.id] = user

    def add_enrolment(self, enrolment: EnrolmentRecord) -> None:
        self._enrolments[enrolment.id] = enrolment

    def list_course_ids(self) -> list[int]:
        return sorted(self._courses)

    def get_course(self, course_id: int) -> CourseRecord:
        return self._courses[course_id]

    def get_user(self, user_id: int) -> UserRecord:
        return self._users[user_id]

    def get_enrolment(self, enrolment_id: int) -> EnrolmentRecord:
        return self._enrolments[enrolment_id]

    def get_enrolments(
        self,
        course_id: int,
        *,
        roles: Iterable[str] | None = None,
    ) -> list[EnrolmentRecord]:
        wanted = set(roles) if roles is not None else None
        return [
            enrolment
            for enrolment in sorted(self._enrolments.values(), key=lambda e: e.id)
            if enrolment.course_id == course_id and (wanted is None or enrolment.role in wanted)
        ]


class InMemoryLogStore:
    def __init__(
        self,
        events: Iterable[LogEvent] = (),
        *,
        last_access: Iterable[LastAccessRecord] | None = None,
    ) -> None:
        self._events: list[LogEvent] = sorted(events, key=lambda e: e.time_created)
        self._last_access: dict[tuple[int, int], LastAccessRecord] | None = None
        if last_access is not None:
            self._last_access = {(r.user_id, r.course_id): r for r in last_access}

    @classmethod
    def from_json_obj(cls, dump: dict[str, Any]) -> InMemoryLogStore:
        last_access = dump.get("last_access")
        return cls(
            [LogEvent.model_validate(e) for e in dump.get("logs", [])],
            last_access=(
                [LastAccessRecord.model_validate(r) for r in last_access] if last_access is not None else None
            ),
        )

    @classmethod
    def from_json_file(cls, path: str | Path) -> InMemoryLogStore:
        return cls.from_json_obj(_load_json(path))

    def add_event(self, event: LogEvent) -> None:
        self._events.append(event)
        self._events.sort(key=lambda e: e.time_created)

    def count_events(self, course_id: int, user_ids: Iterable[int]) -> int:
        users = set(user_ids)
        return sum(1 for e in self._events if e.course_id == course_id and e.user_id in users)

    def first_event_time(self, user_id: int, course_id: int) -> int | None:
        for event in self._events:
            if event.user_id == user_id and event.course_id == course_id:
                return event.time_created
        return None

    def count_user_events(
        self,
        user_id: int,
        course_id: int,
        *,
        start: int,
        end: int,
        crud: Iterable[str] | None = None,
    ) -> int:
        wanted = set(crud) if crud is not None else None
        return sum(
            1
            for e in self._events
            if e.user_id == user_id
            and e.course_id == course_id
            and start <= e.time_created < end
            and (wanted is None or e.crud in wanted)
        )

    def last_accesses(self, course_id: int, user_ids: Iterable[int]) -> list[LastAccessRecord]:
        users = set(user_ids)
        if self._last_access is not None:
            records = self._last_access.values()
        else:
            latest: dict[tuple[int, int], int] = {}
            for event in self._events:
                latest[(event.user_id, event.course_id)] = event.time_created
            records = [
                LastAccessRecord(user_id=user_id, course_id=cid, time_access=time_access)
                for (user_id, cid), time_access in latest.items()
            ]
        return sorted(
            (r for r in records if r.course_id == course_id and r.user_id in users),
            key=lambda r: r.user_id,
        )


def _load_json(path: str | Path) -> dict[str, Any]:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(path)
    return json.loads(path.read_text(encoding="utf-8"))
