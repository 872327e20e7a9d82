"""
Domain event models.

These events represent immutable facts observed while analysing,
training and predicting. They are consumed by loggers, recorders, and
monitoring pipelines.
"""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class AnalysableRejectedEvent:
    ts: int
    model_id: int
    analysable_id: int

    # None when the analysable was rejected before any time splitting ran.
    time_splitting: str | None
    reason: str


@dataclass(slots=True)
class TimeSplittingProcessedEvent:
    ts: int
    model_id: int
    analysable_id: int
    time_splitting: str

    status: int
    message: str
    file_id: str | None


@dataclass(slots=True)
class DatasetStoredEvent:
    ts: int
    model_id: int
    file_id: str

    analysable_id: int | None
    time_splitting: str
    evaluation: bool
    include_target: bool
    n_rows: int


@dataclass(slots=True)
class ModelStateTransitionEvent:
    ts: int
    model_id: int
    prev_state: str | None
    next_state: str
    valid: bool


@dataclass(slots=True)
class PredictionsSavedEvent:
    ts: int
    model_id: int
    time_splitting: str

    n_predictions: int
    n_new: int


AnalyticsEvent = (
    AnalysableRejectedEvent
    | TimeSplittingProcessedEvent
    | DatasetStoredEvent
    | ModelStateTransitionEvent
    | PredictionsSavedEvent
)
