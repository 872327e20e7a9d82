"""Model coordinator.

A model binds a target, a set of indicators and (once enabled) one time
splitting method. It trains, predicts and evaluates on top of the analyser
and the dataset store, and keeps its persisted definition in sync with its
lifecycle:

    created -> configured -> enabled -> trained -> (predict)*

Evaluation is a side loop: it neither requires nor changes the state.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Sequence

from learning_analytics.analytics.analyser.base import AnalysisOptions
from learning_analytics.core.domain.errors import ModelStateError
from learning_analytics.core.domain.model_state_machine import is_valid_transition, model_state
from learning_analytics.core.domain.ranges import infer_sample_info
from learning_analytics.core.domain.reject_reasons import RejectReason
from learning_analytics.core.domain.status import AnalysisStatus
from learning_analytics.core.domain.types import ModelDefinition, PredictionRecord, UsedFileRecord
from learning_analytics.core.events.events import ModelStateTransitionEvent, PredictionsSavedEvent
from learning_analytics.core.ports.prediction_processor import PredictionRow
from learning_analytics.model.results import EvaluationResult, PredictResult, TrainResult

if TYPE_CHECKING:
    from learning_analytics.analytics.analyser.base import Analyser
    from learning_analytics.analytics.context import AnalyticsContext
    from learning_analytics.analytics.indicator.base import Indicator
    from learning_analytics.analytics.target.base import Target
    from learning_analytics.core.ports.prediction_processor import PredictionProcessor
    from learning_analytics.dataset.artifacts import DatasetMatrix

LOGGER = logging.getLogger(__name__)


class Model:
    """Configuration holder and train / predict / evaluate coordinator."""

    def __init__(self, definition: ModelDefinition, *, context: AnalyticsContext) -> None:
        self._definition = definition
        self.context = context
        self._target: Target | None = None

    @classmethod
    def create(
        cls,
        target_id: str,
        indicator_ids: Sequence[str],
        *,
        context: AnalyticsContext,
    ) -> Model:
        """Create and persist a model for a target and its indicators."""
        registry = context.registry
        registry.get_class("target", target_id)
        for indicator_id in indicator_ids:
            registry.get_class("indicator", indicator_id)

        now = context.clock.now()
        definition = ModelDefinition(
            id=context.repository.next_model_id(),
            target=target_id,
            indicators=list(indicator_ids),
            time_created=now,
            time_modified=now,
        )

        model = cls(definition, context=context)
        # Fail on indicators the target's analyser cannot feed before persisting.
        model.get_analyser(AnalysisOptions(evaluation=True), time_splitting_ids=[])

        context.repository.save_model(definition)
        model._emit_transition(None, "created")
        model._emit_transition("created", model.state)

        LOGGER.info(
            "Model created",
            extra={"model_id": definition.id, "target": target_id, "indicators": list(indicator_ids)},
        )
        return model

    @classmethod
    def load(cls, model_id: int, *, context: AnalyticsContext) -> Model:
        return cls(context.repository.get_model(model_id), context=context)

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    @property
    def id(self) -> int:
        return self._definition.id

    @property
    def definition(self) -> ModelDefinition:
        return self._definition

    @property
    def state(self) -> str:
        return model_state(
            configured=bool(self._definition.indicators),
            enabled=self._definition.enabled,
            trained=self._definition.trained,
        )

    def get_time_splitting_id(self) -> str | None:
        return self._definition.time_splitting

    def is_enabled(self) -> bool:
        return self._definition.enabled

    def is_trained(self) -> bool:
        return self._definition.trained

    def is_static(self) -> bool:
        return self.get_target().is_static()

    def get_unique_id(self) -> str:
        """Identifier of the processor model; changes whenever the model is cleared."""
        return f"model_{self.id}_v{self._definition.version}"

    def get_target(self) -> Target:
        if self._target is None:
            self._target = self.context.registry.target(self._definition.target, self.context)
        return self._target

    def get_indicators(self) -> list[Indicator]:
        """Fresh indicator instances, one per configured id."""
        registry = self.context.registry
        return [registry.indicator(indicator_id, self.context) for indicator_id in self._definition.indicators]

    def get_analyser(
        self,
        options: AnalysisOptions | None = None,
        *,
        time_splitting_ids: Sequence[str] | None = None,
    ) -> Analyser:
        """Build the target's analyser for this model.

        Outside evaluation the analyser uses the model's time splitting
        method; evaluation defaults to the site settings.
        """
        options = options if options is not None else AnalysisOptions()

        if time_splitting_ids is None:
            if options.evaluation:
                time_splitting_ids = self.context.settings.time_splittings
            else:
                time_splitting_ids = [self._require_time_splitting()]

        registry = self.context.registry
        target = self.get_target()
        return registry.analyser(
            target.get_analyser_id(),
            model_id=self.id,
            target=target,
            indicators=self.get_indicators(),
            time_splittings=[registry.time_splitting(ts_id) for ts_id in time_splitting_ids],
            context=self.context,
            options=options,
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def enable(self, time_splitting_id: str | None = None) -> None:
        """Enable the model with one time splitting method.

        Switching to a different method clears the model first. Static
        models are trained as soon as they are enabled.
        """
        prev_state = self.state

        changes: dict[str, Any] = {"enabled": True}
        if time_splitting_id is not None:
            self.context.registry.get_class("time_splitting", time_splitting_id)
            current = self._definition.time_splitting
            if current is not None and current != time_splitting_id:
                self.clear()
            changes["time_splitting"] = time_splitting_id
        elif not self._definition.time_splitting:
            raise ModelStateError(f"Model {self.id} needs a time splitting method to be enabled")

        if self.is_static():
            changes["trained"] = True

        self._update(**changes)
        self._emit_transition(prev_state, self.state)
        LOGGER.info(
            "Model enabled",
            extra={"model_id": self.id, "time_splitting": self._definition.time_splitting},
        )

    def disable(self) -> None:
        prev_state = self.state
        self._update(enabled=False)
        self._emit_transition(prev_state, self.state)

    def mark_as_trained(self) -> None:
        prev_state = self.state
        self._update(trained=True)
        self._emit_transition(prev_state, self.state)

    def clear(self) -> None:
        """Purge bookkeeping, predictions, datasets and the processor model."""
        prev_state = self.state

        processor = self.context.processor
        if processor is not None:
            try:
                processor.clear_model(self.get_unique_id())
            except Exception:
                LOGGER.exception("Processor clear_model failed", extra={"model_id": self.id})

        self.context.repository.clear_model(self.id)
        n_files = self.context.dataset_store.delete_model_files(self.id)

        self._update(trained=False, version=self._definition.version + 1)
        self._emit_transition(prev_state, self.state)
        LOGGER.info("Model cleared", extra={"model_id": self.id, "deleted_files": n_files})

    # ------------------------------------------------------------------
    # Train / predict / evaluate
    # ------------------------------------------------------------------

    def train(self) -> TrainResult:
        """Train the processor with the samples not used for training yet."""
        if not self.is_enabled():
            raise ModelStateError(f"Model {self.id} is not enabled")
        time_splitting_id = self._require_time_splitting()

        if self.is_static():
            LOGGER.info("Static model, nothing to train", extra={"model_id": self.id})
            return TrainResult(status=AnalysisStatus.OK, info=[RejectReason.MODEL_IS_STATIC])

        processor = self._require_processor()
        if not processor.is_ready():
            return TrainResult(status=AnalysisStatus.GENERAL_ERROR, info=[RejectReason.PROCESSOR_NOT_READY])

        analyser = self.get_analyser()
        stored = analyser.get_labelled_data().get(time_splitting_id)
        if stored is None:
            return TrainResult(
                status=AnalysisStatus.NO_DATASET,
                info=analyser.get_logs() or [RejectReason.NO_DATASET_FOR_TIME_SPLITTING],
            )

        outcome = processor.train(self.get_unique_id(), stored.get_content())
        if not outcome.ok:
            LOGGER.warning("Processor training failed", extra={"model_id": self.id, "info": outcome.info})
            return TrainResult(status=AnalysisStatus.GENERAL_ERROR, info=outcome.info, file_id=stored.id)

        self.context.repository.add_used_file(
            UsedFileRecord(model_id=self.id, file_id=stored.id, action="trained", time=self.context.clock.now())
        )
        if not self.is_trained():
            self.mark_as_trained()

        return TrainResult(status=AnalysisStatus.OK, info=outcome.info, file_id=stored.id)

    def predict(self) -> PredictResult:
        """Predict the ready ranges that were not predicted yet."""
        if not self.is_enabled():
            raise ModelStateError(f"Model {self.id} is not enabled")
        time_splitting_id = self._require_time_splitting()

        static = self.is_static()
        if not static and not self.is_trained():
            raise ModelStateError(f"Model {self.id} has not been trained yet")

        processor = None if static else self._require_processor()
        if processor is not None and not processor.is_ready():
            return PredictResult(status=AnalysisStatus.GENERAL_ERROR, info=[RejectReason.PROCESSOR_NOT_READY])

        analyser = self.get_analyser()
        stored = analyser.get_unlabelled_data().get(time_splitting_id)
        if stored is None:
            return PredictResult(
                status=AnalysisStatus.NO_DATASET,
                info=analyser.get_logs() or [RejectReason.NO_DATASET_FOR_TIME_SPLITTING],
            )

        dataset = stored.get_content()
        if processor is None:
            rows = self._static_predictions(dataset, analyser)
        else:
            rows = processor.predict(self.get_unique_id(), dataset)

        records = self._prediction_records(rows, analyser)
        n_new = self.context.repository.add_predictions(records)
        self.context.repository.add_used_file(
            UsedFileRecord(model_id=self.id, file_id=stored.id, action="predicted", time=self.context.clock.now())
        )

        self.context.event_bus.emit(
            PredictionsSavedEvent(
                ts=self.context.clock.now(),
                model_id=self.id,
                time_splitting=time_splitting_id,
                n_predictions=len(records),
                n_new=n_new,
            )
        )
        LOGGER.info(
            "Predictions saved",
            extra={"model_id": self.id, "predictions": len(records), "new": n_new},
        )
        return PredictResult(
            status=AnalysisStatus.OK,
            file_id=stored.id,
            predictions=records,
            n_new=n_new,
        )

    def evaluate(
        self,
        *,
        time_splitting_ids: Sequence[str] | None = None,
        reuse_prev_analysed: bool | None = None,
    ) -> list[EvaluationResult]:
        """Score every candidate time splitting method.

        No bookkeeping is read or written: every call evaluates the whole
        labelled dataset.
        """
        if self.is_static():
            LOGGER.info("Static model, nothing to evaluate", extra={"model_id": self.id})
            return [
                EvaluationResult(
                    time_splitting=None,
                    status=AnalysisStatus.OK,
                    info=[RejectReason.MODEL_IS_STATIC],
                )
            ]

        settings = self.context.settings
        if time_splitting_ids is None:
            time_splitting_ids = settings.time_splittings
        if reuse_prev_analysed is None:
            reuse_prev_analysed = settings.reuse_prev_analysed

        processor = self._require_processor()
        if not processor.is_ready():
            return [
                EvaluationResult(
                    time_splitting=ts_id,
                    status=AnalysisStatus.GENERAL_ERROR,
                    info=[RejectReason.PROCESSOR_NOT_READY],
                )
                for ts_id in time_splitting_ids
            ]

        options = AnalysisOptions(
            evaluation=True,
            reuse_prev_analysed=reuse_prev_analysed,
            reuse_window_seconds=settings.reuse_window_seconds,
        )
        analyser = self.get_analyser(options, time_splitting_ids=time_splitting_ids)
        datasets = analyser.get_labelled_data()

        results = []
        for ts_id in time_splitting_ids:
            stored = datasets.get(ts_id)
            if stored is None:
                results.append(
                    EvaluationResult(
                        time_splitting=ts_id,
                        status=AnalysisStatus.NO_DATASET,
                        info=[RejectReason.NO_DATASET_FOR_TIME_SPLITTING],
                    )
                )
                continue

            outcome = processor.evaluate(
                f"{self.get_unique_id()}/evaluation/{ts_id}",
                stored.get_content(),
                max_deviation=settings.max_deviation,
                iterations=settings.iterations,
            )

            status = AnalysisStatus.OK
            if outcome.deviation > settings.max_deviation:
                status |= AnalysisStatus.EVALUATE_NOT_ENOUGH_DATA
            if outcome.score < settings.min_score:
                status |= AnalysisStatus.EVALUATE_LOW_SCORE

            results.append(
                EvaluationResult(
                    time_splitting=ts_id,
                    status=status,
                    score=outcome.score,
                    deviation=outcome.deviation,
                    n_samples=outcome.n_samples,
                    info=list(outcome.info),
                    file_id=stored.id,
                )
            )

        LOGGER.info(
            "Model evaluated",
            extra={
                "model_id": self.id,
                "results": {r.time_splitting: (int(r.status), r.score) for r in results},
            },
        )
        return results

    # ------------------------------------------------------------------
    # Predictions
    # ------------------------------------------------------------------

    def get_predictions(self) -> list[PredictionRecord]:
        return self.context.repository.get_predictions(self.id)

    def get_predictions_contexts(self) -> list[str]:
        """Contexts with at least one stored prediction."""
        return sorted({record.context_id for record in self.get_predictions()})

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _static_predictions(self, dataset: DatasetMatrix, analyser: Analyser) -> list[PredictionRow]:
        """Predictions of rule based targets: the target's own label, score 1."""
        decoded = {unique_id: infer_sample_info(unique_id) for unique_id in dataset.sample_ids}
        sample_ids = sorted({sample_id for sample_id, _ in decoded.values()})

        target = self.get_target().instance()
        _, samples_data = analyser.get_samples(sample_ids)
        target.add_sample_data(samples_data)

        labels: dict[int, float | None] = {}
        for sample_id in sample_ids:
            labels[sample_id] = target.calculate_sample(sample_id, analyser.get_sample_analysable(sample_id))

        rows = []
        for unique_id, (sample_id, _) in decoded.items():
            label = labels[sample_id]
            if label is None:
                continue
            rows.append(PredictionRow(unique_sample_id=unique_id, prediction=label, prediction_score=1.0))
        return rows

    def _prediction_records(self, rows: Sequence[PredictionRow], analyser: Analyser) -> list[PredictionRecord]:
        target = self.get_target()
        now = self.context.clock.now()

        records = []
        for row in rows:
            if not target.triggers_callback(row.prediction, row.prediction_score):
                continue
            sample_id, range_index = infer_sample_info(row.unique_sample_id)
            records.append(
                PredictionRecord(
                    model_id=self.id,
                    context_id=analyser.sample_access_context(sample_id),
                    sample_id=sample_id,
                    range_index=range_index,
                    prediction=row.prediction,
                    prediction_score=row.prediction_score,
                    time_created=now,
                )
            )
        return records

    def _require_time_splitting(self) -> str:
        time_splitting_id = self._definition.time_splitting
        if not time_splitting_id:
            raise ModelStateError(f"Model {self.id} has no time splitting method")
        return time_splitting_id

    def _require_processor(self) -> PredictionProcessor:
        if self.context.processor is None:
            raise ModelStateError(f"Model {self.id} needs a prediction processor")
        return self.context.processor

    def _update(self, **changes: Any) -> None:
        data = self._definition.model_dump()
        data.update(changes)
        data["time_modified"] = self.context.clock.now()
        self._definition = ModelDefinition.model_validate(data)
        self.context.repository.save_model(self._definition)

    def _emit_transition(self, prev_state: str | None, next_state: str) -> None:
        valid = is_valid_transition(prev_state, next_state)
        if not valid:
            LOGGER.warning(
                "Unexpected model state transition",
                extra={"model_id": self.id, "prev_state": prev_state, "next_state": next_state},
            )
        self.context.event_bus.emit(
            ModelStateTransitionEvent(
                ts=self.context.clock.now(),
                model_id=self.id,
                prev_state=prev_state,
                next_state=next_state,
                valid=valid,
            )
        )
