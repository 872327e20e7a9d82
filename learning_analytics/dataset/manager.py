"""Dataset manager.

Persists calculated dataset matrices as immutable files and guarantees that
at most one worker analyses a given (model, analysable, time splitting,
mode) combination at a time.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING, Iterator

from learning_analytics.core.events.event_bus import NullEventBus
from learning_analytics.core.events.events import DatasetStoredEvent
from learning_analytics.core.ports.file_store import build_file_id
from learning_analytics.dataset.artifacts import DatasetKey, DatasetMatrix, StoredDataset
from learning_analytics.dataset.lease import default_holder_id

if TYPE_CHECKING:
    from learning_analytics.core.events.event_bus import EventBus
    from learning_analytics.core.ports.clock import Clock
    from learning_analytics.core.ports.file_store import FileStore
    from learning_analytics.dataset.lease import FileLeaseStore, Lease

LOGGER = logging.getLogger(__name__)


class DatasetStore:
    """Shared collaborators of all dataset managers.

    Responsibilities:
    - create per-key ``DatasetManager`` instances
    - write, list, load and merge dataset artifacts
    """

    def __init__(
        self,
        *,
        file_store: FileStore,
        lease_store: FileLeaseStore,
        clock: Clock,
        event_bus: EventBus | None = None,
    ) -> None:
        self._file_store = file_store
        self._lease_store = lease_store
        self._clock = clock
        self._event_bus = event_bus if event_bus is not None else NullEventBus()

    @property
    def lease_store(self) -> FileLeaseStore:
        return self._lease_store

    def manager(
        self,
        *,
        model_id: int,
        analysable_id: int,
        time_splitting: str,
        evaluation: bool,
        include_target: bool,
    ) -> DatasetManager:
        key = DatasetKey(
            model_id=model_id,
            analysable_id=analysable_id,
            time_splitting=time_splitting,
            evaluation=evaluation,
            include_target=include_target,
        )
        return DatasetManager(key, store=self)

    # ------------------------------------------------------------------
    # Artifacts
    # ------------------------------------------------------------------

    def save(self, key: DatasetKey, matrix: DatasetMatrix) -> StoredDataset:
        """Write a matrix under ``key`` and return its handle."""
        now = self._clock.now()
        matrix.metadata = matrix.metadata.model_copy(update={"time_created": now})

        stored_file = self._file_store.put(build_file_id(key.prefix, now), matrix.to_bytes())
        stored = StoredDataset(key=key, file=stored_file, _file_store=self._file_store)

        self._event_bus.emit(
            DatasetStoredEvent(
                ts=now,
                model_id=key.model_id,
                file_id=stored.id,
                analysable_id=key.analysable_id,
                time_splitting=key.time_splitting,
                evaluation=key.evaluation,
                include_target=key.include_target,
                n_rows=len(matrix),
            )
        )
        LOGGER.info(
            "Dataset stored",
            extra={"file_id": stored.id, "mode": key.mode, "rows": len(matrix)},
        )
        return stored

    def load(self, file_id: str) -> DatasetMatrix:
        return DatasetMatrix.from_bytes(self._file_store.get(file_id))

    def list(self, key: DatasetKey) -> list[StoredDataset]:
        """List the artifacts stored under ``key``, oldest first."""
        # The trailing slash keeps "analysable_1" from matching "analysable_12".
        return [
            StoredDataset(key=key, file=stored_file, _file_store=self._file_store)
            for stored_file in self._file_store.list(key.prefix + "/")
        ]

    def latest(self, key: DatasetKey) -> StoredDataset | None:
        stored = self.list(key)
        return stored[-1] if stored else None

    def get_evaluation_analysable_file(
        self,
        model_id: int,
        analysable_id: int,
        time_splitting: str,
    ) -> StoredDataset | None:
        """Return the most recent evaluation dataset of an analysable, if any."""
        return self.latest(
            DatasetKey(
                model_id=model_id,
                analysable_id=analysable_id,
                time_splitting=time_splitting,
                evaluation=True,
                include_target=True,
            )
        )

    def merge(
        self,
        datasets: list[StoredDataset],
        *,
        model_id: int,
        time_splitting: str,
        evaluation: bool,
        include_target: bool,
    ) -> StoredDataset | None:
        """Merge per-analysable datasets into a single artifact."""
        if not datasets:
            return None

        merged: DatasetMatrix | None = None
        for stored in datasets:
            matrix = stored.get_content()
            if merged is None:
                merged = DatasetMatrix(
                    columns=list(matrix.columns),
                    rows={},
                    metadata=matrix.metadata.model_copy(update={"analysable_id": None}),
                )
            elif matrix.columns != merged.columns:
                raise ValueError(
                    f"Cannot merge datasets with different columns ({stored.id})"
                )
            merged.rows.update(matrix.rows)

        key = DatasetKey(
            model_id=model_id,
            analysable_id=None,
            time_splitting=time_splitting,
            evaluation=evaluation,
            include_target=include_target,
        )
        return self.save(key, merged)

    def delete_model_files(self, model_id: int) -> int:
        """Delete every artifact of a model; returns the number of files."""
        stored_files = self._file_store.list(f"model_{model_id}/")
        for stored_file in stored_files:
            self._file_store.delete(stored_file.file_id)
        return len(stored_files)


class DatasetManager:
    """Artifact writer for one dataset key.

    Invariant:
    - ``init_process`` succeeds for at most one worker per key until that
      worker calls ``close_process`` (or its lease expires).
    - ``close_process`` must run on every exit path; prefer ``claim()``.
    """

    def __init__(self, key: DatasetKey, *, store: DatasetStore) -> None:
        self.key = key
        self._store = store
        self._holder = default_holder_id()
        self._lease: Lease | None = None

    @property
    def is_claimed(self) -> bool:
        return self._lease is not None

    def init_process(self) -> bool:
        """Flag the key as being analysed. False if another run holds it."""
        if self._lease is not None:
            return True

        self._lease = self._store.lease_store.acquire(self.key.lease_name, self._holder)
        if self._lease is None:
            LOGGER.info("Dataset key busy", extra={"key": self.key.prefix})
            return False
        return True

    def close_process(self) -> None:
        """Release the claim taken by ``init_process``."""
        if self._lease is None:
            return
        lease, self._lease = self._lease, None
        self._store.lease_store.release(lease)

    @contextmanager
    def claim(self) -> Iterator[bool]:
        """Scoped ``init_process`` / ``close_process`` pair.

        Yields whether the claim was obtained; it is released on exit
        (including exceptions) only if it was obtained here.
        """
        acquired = self.init_process()
        try:
            yield acquired
        finally:
            if acquired:
                self.close_process()

    def store(self, matrix: DatasetMatrix) -> StoredDataset:
        """Write the calculated matrix of this key."""
        if self._lease is None:
            raise RuntimeError(f"Dataset key not claimed: {self.key.prefix}")
        return self._store.save(self.key, matrix)

    def previous(self) -> StoredDataset | None:
        """Return the most recent artifact stored under this key."""
        return self._store.latest(self.key)
