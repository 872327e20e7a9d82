"""Prediction processor interface.

The machine-learning backend is pluggable: the pipeline only hands it
dataset matrices and reads back scores and predictions. Concrete processors
are loaded by ``class_path`` ("module:Class") from configuration.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from learning_analytics.dataset.artifacts import DatasetMatrix


@dataclass(slots=True)
class TrainOutcome:
    """Result of training a processor model on one dataset."""

    ok: bool
    info: list[str] = field(default_factory=list)


@dataclass(slots=True)
class PredictionRow:
    """One predicted row, keyed by the dataset's unique sample id."""

    unique_sample_id: str
    prediction: float
    prediction_score: float


@dataclass(slots=True)
class EvaluationOutcome:
    """Quality of a dataset for predictive purposes.

    ``score`` is in [0, 1]; ``deviation`` is the standard deviation of the
    score across evaluation iterations.
    """

    score: float
    deviation: float = 0.0
    n_samples: int = 0
    info: list[str] = field(default_factory=list)


class PredictionProcessor(ABC):
    """Machine-learning backend used by models."""

    def is_ready(self) -> bool:
        """Return True when the backend can be used (dependencies present...)."""
        return True

    @abstractmethod
    def train(self, unique_id: str, dataset: DatasetMatrix) -> TrainOutcome:
        """Train (or update) the backend model identified by ``unique_id``."""

    @abstractmethod
    def predict(self, unique_id: str, dataset: DatasetMatrix) -> list[PredictionRow]:
        """Predict every row of an unlabelled dataset."""

    @abstractmethod
    def evaluate(
        self,
        unique_id: str,
        dataset: DatasetMatrix,
        *,
        max_deviation: float,
        iterations: int,
    ) -> EvaluationOutcome:
        """Score how well the labelled dataset can be predicted."""

    def clear_model(self, unique_id: str) -> None:
        """Forget the trained backend model identified by ``unique_id``."""
        return
