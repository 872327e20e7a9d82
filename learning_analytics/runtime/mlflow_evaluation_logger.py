from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING, Sequence

import mlflow

if TYPE_CHECKING:
    from learning_analytics.core.domain.types import ModelDefinition
    from learning_analytics.model.results import EvaluationResult

LOGGER = logging.getLogger(__name__)


class MlflowEvaluationLogger:
    """Logs model evaluation results to MLflow, one run per time splitting.

    Tracking is configured via environment variables:
    - MLFLOW_TRACKING_URI: HTTP(S) address of the MLflow tracking server.
      Example: http://mlflow.ml.svc.cluster.local:5000

    This logger is best-effort. Callers should catch exceptions and continue.
    """

    def __init__(self, *, experiment_prefix: str = "learning-analytics") -> None:
        tracking_uri = os.environ.get("MLFLOW_TRACKING_URI")
        if tracking_uri:
            mlflow.set_tracking_uri(tracking_uri)
        self._experiment_prefix = experiment_prefix

    def log(
        self,
        *,
        definition: ModelDefinition,
        results: Sequence[EvaluationResult],
    ) -> None:
        """Log each evaluated time splitting as an MLflow run."""

        # mlflow.set_experiment creates the experiment if it does not exist.
        mlflow.set_experiment(f"{self._experiment_prefix}-model-{definition.id}")

        for result in results:
            run_name = result.time_splitting or "static"
            with mlflow.start_run(run_name=run_name):
                # Parameters
                mlflow.log_param("target", definition.target)
                mlflow.log_param("indicators", ",".join(definition.indicators))
                mlflow.log_param("time_splitting", run_name)

                # Metrics
                mlflow.log_metric("score", result.score)
                mlflow.log_metric("deviation", result.deviation)
                mlflow.log_metric("n_samples", result.n_samples)

                # Tags
                mlflow.set_tag("status", int(result.status))
                mlflow.set_tag("model_id", definition.id)

        LOGGER.info(
            "MLflow evaluation log submitted",
            extra={"model_id": definition.id, "runs": len(results)},
        )
