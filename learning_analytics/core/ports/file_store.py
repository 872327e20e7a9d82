"""File store protocol.

Id-addressable blob storage used for dataset artifacts. File ids are
path-like keys that embed the creation timestamp, which keeps listings
chronological on every backend and makes the creation time retrievable
without a separate metadata call.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Protocol

_TIME_DIGITS = 12


@dataclass(frozen=True, slots=True)
class StoredFile:
    """
    Immutable metadata describing a single stored blob.
    """

    file_id: str
    time_created: int
    size_bytes: int


def build_file_id(prefix: str, time_created: int, suffix: str = ".npz") -> str:
    """Return a new unique file id under ``prefix``."""
    token = uuid.uuid4().hex[:12]
    return f"{prefix.rstrip('/')}/{time_created:0{_TIME_DIGITS}d}-{token}{suffix}"


def parse_time_created(file_id: str) -> int:
    """Extract the creation timestamp embedded by ``build_file_id``."""
    name = file_id.rsplit("/", 1)[-1]
    head = name.split("-", 1)[0]
    if len(head) != _TIME_DIGITS or not head.isdigit():
        raise ValueError(f"Not a dataset file id: {file_id!r}")
    return int(head)


class FileStore(Protocol):

    def put(self, file_id: str, data: bytes) -> StoredFile:
        """Store ``data`` under ``file_id`` (ids are never overwritten)."""

    def get(self, file_id: str) -> bytes:
        """Return the content of a stored file. Raises KeyError if missing."""

    def list(self, prefix: str) -> list[StoredFile]:
        """List the files under ``prefix``, oldest first."""

    def delete(self, file_id: str) -> None:
        """Delete a stored file; missing files are ignored."""
