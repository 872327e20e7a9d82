"""JSON / JSONL analytics repository.

Layout under ``root``:
- models/model_<id>.json: one pydantic JSON document per model definition
- train_samples.jsonl, predict_ranges.jsonl, used_files.jsonl,
  predictions.jsonl: append-only bookkeeping tables, one record per line
"""

from __future__ import annotations

import logging
import os
import threading
from pathlib import Path
from typing import Iterable, TypeVar

from pydantic import BaseModel

from learning_analytics.core.domain.types import (
    ModelDefinition,
    PredictionRecord,
    PredictRangeRecord,
    TrainSampleRecord,
    UsedFileRecord,
)

LOGGER = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", bound=BaseModel)

TRAIN_SAMPLES = "train_samples.jsonl"
PREDICT_RANGES = "predict_ranges.jsonl"
USED_FILES = "used_files.jsonl"
PREDICTIONS = "predictions.jsonl"


class JsonlAnalyticsRepository:
    def __init__(self, root: str | Path) -> None:
        self._root = Path(root)
        self._models_dir = self._root / "models"
        self._models_dir.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Models
    # ------------------------------------------------------------------

    def next_model_id(self) -> int:
        ids = [definition.id for definition in self.list_models()]
        return max(ids, default=0) + 1

    def save_model(self, definition: ModelDefinition) -> None:
        path = self._model_path(definition.id)
        tmp_path = path.with_suffix(".json.tmp")
        tmp_path.write_text(definition.model_dump_json(indent=2), encoding="utf-8")
        os.replace(tmp_path, path)

    def get_model(self, model_id: int) -> ModelDefinition:
        path = self._model_path(model_id)
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            raise KeyError(model_id) from None
        return ModelDefinition.model_validate_json(raw)

    def list_models(self) -> list[ModelDefinition]:
        models = [
            ModelDefinition.model_validate_json(path.read_text(encoding="utf-8"))
            for path in self._models_dir.glob("model_*.json")
        ]
        return sorted(models, key=lambda definition: definition.id)

    # ------------------------------------------------------------------
    # Bookkeeping
    # ------------------------------------------------------------------

    def add_train_samples(self, record: TrainSampleRecord) -> None:
        self._append(TRAIN_SAMPLES, [record])

    def get_train_samples(
        self,
        model_id: int,
        analysable_id: int | None = None,
        time_splitting: str | None = None,
    ) -> list[TrainSampleRecord]:
        return [
            record
            for record in self._read(TRAIN_SAMPLES, TrainSampleRecord)
            if _matches(record, model_id, analysable_id, time_splitting)
        ]

    def add_predict_ranges(self, records: Iterable[PredictRangeRecord]) -> None:
        self._append(PREDICT_RANGES, list(records))

    def get_predict_ranges(
        self,
        model_id: int,
        analysable_id: int | None = None,
        time_splitting: str | None = None,
    ) -> list[PredictRangeRecord]:
        return [
            record
            for record in self._read(PREDICT_RANGES, PredictRangeRecord)
            if _matches(record, model_id, analysable_id, time_splitting)
        ]

    def add_used_file(self, record: UsedFileRecord) -> None:
        self._append(USED_FILES, [record])

    def get_used_files(self, model_id: int, action: str | None = None) -> list[UsedFileRecord]:
        return [
            record
            for record in self._read(USED_FILES, UsedFileRecord)
            if record.model_id == model_id and (action is None or record.action == action)
        ]

    def add_predictions(self, records: Iterable[PredictionRecord]) -> int:
        with self._lock:
            seen = {
                (record.model_id, record.unique_sample_id)
                for record in self._read(PREDICTIONS, PredictionRecord)
            }
            new_records = []
            for record in records:
                key = (record.model_id, record.unique_sample_id)
                if key in seen:
                    continue
                seen.add(key)
                new_records.append(record)
            self._append(PREDICTIONS, new_records, locked=True)
        return len(new_records)

    def get_predictions(self, model_id: int) -> list[PredictionRecord]:
        return [record for record in self._read(PREDICTIONS, PredictionRecord) if record.model_id == model_id]

    def clear_model(self, model_id: int) -> None:
        tables = (
            (TRAIN_SAMPLES, TrainSampleRecord),
            (PREDICT_RANGES, PredictRangeRecord),
            (USED_FILES, UsedFileRecord),
            (PREDICTIONS, PredictionRecord),
        )
        with self._lock:
            for name, record_type in tables:
                kept = [record for record in self._read(name, record_type) if record.model_id != model_id]
                self._rewrite(name, kept)
        LOGGER.info("Model bookkeeping cleared", extra={"model_id": model_id})

    # ------------------------------------------------------------------

    def _model_path(self, model_id: int) -> Path:
        return self._models_dir / f"model_{model_id}.json"

    def _append(self, name: str, records: list[BaseModel], *, locked: bool = False) -> None:
        if not records:
            return
        payload = "".join(record.model_dump_json() + "\n" for record in records)
        if locked:
            self._write_append(name, payload)
            return
        with self._lock:
            self._write_append(name, payload)

    def _write_append(self, name: str, payload: str) -> None:
        with (self._root / name).open("a", encoding="utf-8") as fh:
            fh.write(payload)
            fh.flush()

    def _rewrite(self, name: str, records: list[BaseModel]) -> None:
        path = self._root / name
        tmp_path = path.with_suffix(".jsonl.tmp")
        tmp_path.write_text("".join(record.model_dump_json() + "\n" for record in records), encoding="utf-8")
        os.replace(tmp_path, path)

    def _read(self, name: str, record_type: type[RecordT]) -> list[RecordT]:
        path = self._root / name
        if not path.exists():
            return []
        with path.open("r", encoding="utf-8") as fh:
            return [record_type.model_validate_json(line) for line in fh if line.strip()]


def _matches(
    record: TrainSampleRecord | PredictRangeRecord,
    model_id: int,
    analysable_id: int | None,
    time_splitting: str | None,
) -> bool:
    if record.model_id != model_id:
        return False
    if analysable_id is not None and record.analysable_id != analysable_id:
        return False
    if time_splitting is not None and record.time_splitting != time_splitting:
        return False
    return True
