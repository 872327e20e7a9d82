"""Bookkeeping repository protocol.

Persists model definitions and the append-only bookkeeping records that
keep the pipeline from analysing the same samples or ranges twice.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable, Protocol

if TYPE_CHECKING:
    from learning_analytics.core.domain.types import (
        ModelDefinition,
        PredictionRecord,
        PredictRangeRecord,
        TrainSampleRecord,
        UsedFileRecord,
    )


class AnalyticsRepository(Protocol):

    # Models ---------------------------------------------------------------

    def next_model_id(self) -> int:
        """Return an id not used by any stored model."""

    def save_model(self, definition: ModelDefinition) -> None:
        """Insert or replace a model definition."""

    def get_model(self, model_id: int) -> ModelDefinition:
        """Return a model definition. Raises KeyError if missing."""

    def list_models(self) -> list[ModelDefinition]:
        """Return all model definitions ordered by id."""

    # Bookkeeping ----------------------------------------------------------

    def add_train_samples(self, record: TrainSampleRecord) -> None:
        """Record the samples used in a training dataset."""

    def get_train_samples(
        self,
        model_id: int,
        analysable_id: int | None = None,
        time_splitting: str | None = None,
    ) -> list[TrainSampleRecord]:
        """Return the train-sample records matching the filters."""

    def add_predict_ranges(self, records: Iterable[PredictRangeRecord]) -> None:
        """Record the ranges that produced predictions."""

    def get_predict_ranges(
        self,
        model_id: int,
        analysable_id: int | None = None,
        time_splitting: str | None = None,
    ) -> list[PredictRangeRecord]:
        """Return the predict-range records matching the filters."""

    def add_used_file(self, record: UsedFileRecord) -> None:
        """Record that a dataset file was used for training or prediction."""

    def get_used_files(self, model_id: int, action: str | None = None) -> list[UsedFileRecord]:
        """Return the used-file records of a model."""

    def add_predictions(self, records: Iterable[PredictionRecord]) -> int:
        """Store predictions not stored yet; returns how many were new."""

    def get_predictions(self, model_id: int) -> list[PredictionRecord]:
        """Return the stored predictions of a model."""

    def clear_model(self, model_id: int) -> None:
        """Delete every bookkeeping record and prediction of a model."""
