"""Filesystem file store.

Files live under ``root`` at their id (a relative, slash separated path).
Writes go to a temporary sibling first and are renamed into place, so
readers never see partial content.
"""

from __future__ import annotations

import os
import uuid
from pathlib import Path

from learning_analytics.core.ports.file_store import StoredFile, parse_time_created

_TMP_SUFFIX = ".tmp"


class LocalFileStore:
    def __init__(self, root: str | Path) -> None:
        self._root = Path(root)
        self._root.mkdir(parents=True, exist_ok=True)

    @property
    def root(self) -> Path:
        return self._root

    def put(self, file_id: str, data: bytes) -> StoredFile:
        path = self._path(file_id)
        if path.exists():
            raise FileExistsError(file_id)
        path.parent.mkdir(parents=True, exist_ok=True)

        tmp_path = path.with_name(f".{path.name}.{uuid.uuid4().hex[:8]}{_TMP_SUFFIX}")
        tmp_path.write_bytes(data)
        os.replace(tmp_path, path)

        return StoredFile(file_id=file_id, time_created=self._time_created(file_id, path), size_bytes=len(data))

    def get(self, file_id: str) -> bytes:
        try:
            return self._path(file_id).read_bytes()
        except FileNotFoundError:
            raise KeyError(file_id) from None

    def list(self, prefix: str) -> list[StoredFile]:
        # Only the directory part of the prefix can be walked.
        base = self._root / prefix.rsplit("/", 1)[0] if "/" in prefix else self._root
        if not base.is_dir():
            return []

        stored = []
        for path in base.rglob("*"):
            if not path.is_file() or path.name.endswith(_TMP_SUFFIX):
                continue
            file_id = path.relative_to(self._root).as_posix()
            if not file_id.startswith(prefix):
                continue
            stored.append(
                StoredFile(
                    file_id=file_id,
                    time_created=self._time_created(file_id, path),
                    size_bytes=path.stat().st_size,
                )
            )

        stored.sort(key=lambda f: (f.time_created, f.file_id))
        return stored

    def delete(self, file_id: str) -> None:
        self._path(file_id).unlink(missing_ok=True)

    # ------------------------------------------------------------------

    def _path(self, file_id: str) -> Path:
        parts = file_id.split("/")
        if not file_id or file_id.startswith("/") or any(part in ("", ".", "..") for part in parts):
            raise ValueError(f"Invalid file id: {file_id!r}")
        return self._root.joinpath(*parts)

    @staticmethod
    def _time_created(file_id: str, path: Path) -> int:
        try:
            return parse_time_created(file_id)
        except ValueError:
            return int(path.stat().st_mtime)
