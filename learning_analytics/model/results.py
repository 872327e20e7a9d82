"""Results returned by model operations."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from learning_analytics.core.domain.status import AnalysisStatus

if TYPE_CHECKING:
    from learning_analytics.core.domain.types import PredictionRecord


@dataclass(slots=True)
class TrainResult:
    status: AnalysisStatus
    info: list[str] = field(default_factory=list)
    file_id: str | None = None


@dataclass(slots=True)
class PredictResult:
    status: AnalysisStatus
    info: list[str] = field(default_factory=list)
    file_id: str | None = None

    # Predictions calculated in this run; n_new of them were not stored yet.
    predictions: list[PredictionRecord] = field(default_factory=list)
    n_new: int = 0


@dataclass(slots=True)
class EvaluationResult:
    """Evaluation of one time splitting method.

    ``time_splitting`` is None for static models, which are not evaluated.
    """

    time_splitting: str | None
    status: AnalysisStatus
    score: float = 0.0
    deviation: float = 0.0
    n_samples: int = 0
    info: list[str] = field(default_factory=list)
    file_id: str | None = None
