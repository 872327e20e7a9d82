"""Analyser: turns analysables into dataset artifacts.

For every analysable and time splitting method the analyser:
- rejects analysables the target or the time splitting method cannot use
- skips samples already used for training and ranges already predicted
- claims the dataset key so that concurrent workers do not duplicate work
- calculates the indicator (and target) values and stores them
- records the trained samples / predicted ranges while the claim is held

Rejections are returned as ``AnalysisResult`` values and logged; they are
never raised.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, ClassVar, Iterable, Sequence

from learning_analytics.analytics.analysable import WEEK_SECONDS
from learning_analytics.core.domain.errors import RequirementsError
from learning_analytics.core.domain.reject_reasons import RejectReason
from learning_analytics.core.domain.status import AnalysisStatus
from learning_analytics.core.domain.types import PredictRangeRecord, TrainSampleRecord
from learning_analytics.core.events.events import AnalysableRejectedEvent, TimeSplittingProcessedEvent
from learning_analytics.dataset.artifacts import DatasetMatrix, DatasetMetadata

if TYPE_CHECKING:
    from learning_analytics.analytics.analysable import Analysable
    from learning_analytics.analytics.context import AnalyticsContext
    from learning_analytics.analytics.indicator.base import Indicator
    from learning_analytics.analytics.target.base import Target
    from learning_analytics.analytics.time_splitting.base import TimeSplitting
    from learning_analytics.core.domain.ranges import TimeRange
    from learning_analytics.dataset.artifacts import StoredDataset

LOGGER = logging.getLogger(__name__)

TARGET_COLUMN = "target"

SampleData = dict[int, dict[str, Any]]


@dataclass(frozen=True, slots=True)
class AnalysisOptions:
    evaluation: bool = False
    # Evaluation only: reuse evaluation datasets younger than the window.
    reuse_prev_analysed: bool = False
    reuse_window_seconds: int = WEEK_SECONDS


@dataclass(slots=True)
class AnalysisResult:
    """Outcome of one (analysable x time splitting) cell."""

    time_splitting: str
    status: AnalysisStatus
    message: str
    file: StoredDataset | None = None


class Analyser(ABC):
    """Sample provider and dataset calculation orchestrator."""

    id: ClassVar[str] = ""

    def __init__(
        self,
        *,
        model_id: int,
        target: Target,
        indicators: Sequence[Indicator],
        time_splittings: Sequence[TimeSplitting],
        context: AnalyticsContext,
        options: AnalysisOptions | None = None,
    ) -> None:
        self.model_id = model_id
        self.target = target
        self.indicators = list(indicators)
        self.time_splittings = list(time_splittings)
        self.context = context
        self.options = options if options is not None else AnalysisOptions()

        self._log: list[str] = []
        self._results: list[tuple[int, AnalysisResult]] = []

        self.check_indicators_requirements()

    @classmethod
    def get_id(cls) -> str:
        return cls.id or cls.__name__

    # ------------------------------------------------------------------
    # Sample provider contract
    # ------------------------------------------------------------------

    @abstractmethod
    def get_analysables(self) -> list[Analysable]:
        """Return the analysables of this analyser, ordered by id."""

    @abstractmethod
    def get_all_samples(self, analysable: Analysable) -> tuple[list[int], SampleData]:
        """Return the sample ids of an analysable and their entity data."""

    @abstractmethod
    def get_samples(self, sample_ids: Iterable[int]) -> tuple[list[int], SampleData]:
        """Return the entity data of an explicit set of samples."""

    @abstractmethod
    def get_sample_analysable(self, sample_id: int) -> Analysable:
        """Return the analysable a sample belongs to."""

    @abstractmethod
    def get_samples_origin(self) -> str:
        """Name of the entity the samples are."""

    @abstractmethod
    def sample_access_context(self, sample_id: int) -> str:
        """Context that controls access to a sample's predictions."""

    def provided_sample_data(self) -> list[str]:
        return [self.get_samples_origin()]

    # ------------------------------------------------------------------
    # Requirements
    # ------------------------------------------------------------------

    def check_indicators_requirements(self) -> None:
        for indicator in self.indicators:
            missing = self.check_indicator_requirements(indicator)
            if missing:
                raise RequirementsError(indicator.get_id(), self.get_id(), missing)

    def check_indicator_requirements(self, indicator: Indicator) -> list[str]:
        """Return the required origins this analyser does not provide."""
        provided = set(self.provided_sample_data())
        return [origin for origin in indicator.required_sample_data() if origin not in provided]

    # ------------------------------------------------------------------
    # Analysis
    # ------------------------------------------------------------------

    def get_labelled_data(self) -> dict[str, StoredDataset]:
        return self.get_analysable_data(include_target=True)

    def get_unlabelled_data(self) -> dict[str, StoredDataset]:
        return self.get_analysable_data(include_target=False)

    def get_analysable_data(self, include_target: bool) -> dict[str, StoredDataset]:
        """Process every analysable and merge the datasets of each time splitting."""
        files_by_time_splitting: dict[str, list[StoredDataset]] = {}

        for analysable in self.get_analysables():
            results = self.process_analysable(analysable, include_target)
            for time_splitting_id, result in results.items():
                if result.file is not None:
                    files_by_time_splitting.setdefault(time_splitting_id, []).append(result.file)

        merged: dict[str, StoredDataset] = {}
        for time_splitting_id, files in files_by_time_splitting.items():
            stored = self.context.dataset_store.merge(
                files,
                model_id=self.model_id,
                time_splitting=time_splitting_id,
                evaluation=self.options.evaluation,
                include_target=include_target,
            )
            if stored is not None:
                merged[time_splitting_id] = stored
        return merged

    def process_analysable(self, analysable: Analysable, include_target: bool) -> dict[str, AnalysisResult]:
        """Process one analysable with every time splitting method."""
        # Target state is scoped to one analysable.
        target = self.target.instance()

        valid = target.is_valid_analysable(analysable, include_target)
        if valid is not True:
            self.add_log(f"Analysable {analysable.id} is not valid for {target.get_id()}: {valid}")
            self._emit_rejected(analysable.id, None, RejectReason.INVALID_FOR_TARGET)
            return {}

        now = self.context.clock.now()
        results: dict[str, AnalysisResult] = {}

        for time_splitting in self.time_splittings:
            time_splitting_id = time_splitting.get_id()

            if self.options.evaluation and self.options.reuse_prev_analysed:
                previous = self.context.dataset_store.get_evaluation_analysable_file(
                    self.model_id, analysable.id, time_splitting_id
                )
                if previous is not None and previous.time_created > now - self.options.reuse_window_seconds:
                    results[time_splitting_id] = AnalysisResult(
                        time_splitting=time_splitting_id,
                        status=AnalysisStatus.OK,
                        message="Previous evaluation dataset reused",
                        file=previous,
                    )
                    continue

            try:
                result = self._process_time_splitting(time_splitting, analysable, target, include_target)
            finally:
                # Indicator instances are shared by every analysable of the run.
                for indicator in self.indicators:
                    indicator.clear_sample_data()
            results[time_splitting_id] = result
            self._results.append((analysable.id, result))

            self.context.event_bus.emit(
                TimeSplittingProcessedEvent(
                    ts=self.context.clock.now(),
                    model_id=self.model_id,
                    analysable_id=analysable.id,
                    time_splitting=time_splitting_id,
                    status=int(result.status),
                    message=result.message,
                    file_id=result.file.id if result.file is not None else None,
                )
            )

        if not any(result.file is not None for result in results.values()):
            errors = ", ".join(f"{ts_id}: {result.message}" for ts_id, result in results.items())
            self.add_log(f"Analysable {analysable.id} not used: {errors}")

        return results

    def _process_time_splitting(
        self,
        time_splitting: TimeSplitting,
        analysable: Analysable,
        target: Target,
        include_target: bool,
    ) -> AnalysisResult:
        time_splitting_id = time_splitting.get_id()

        if not time_splitting.is_valid_analysable(analysable):
            return self._reject(
                analysable,
                time_splitting_id,
                AnalysisStatus.ANALYSABLE_REJECTED_TIME_SPLITTING_METHOD,
                RejectReason.INVALID_FOR_TIME_SPLITTING,
            )
        time_splitting.set_analysable(analysable)

        sample_ids, samples_data = self.get_all_samples(analysable)
        if not sample_ids:
            return self._reject(
                analysable,
                time_splitting_id,
                AnalysisStatus.ANALYSABLE_REJECTED_TIME_SPLITTING_METHOD,
                RejectReason.NO_DATA,
            )

        if include_target:
            ranges = time_splitting.get_all_ranges()
        else:
            ranges = time_splitting.get_ready_ranges(self.context.clock.now())

        # Evaluation always uses the whole dataset.
        if not self.options.evaluation:
            sample_ids, ranges, reason = self._pending_work(
                sample_ids, ranges, analysable.id, time_splitting_id, include_target
            )
            if reason is not None:
                return self._reject(
                    analysable,
                    time_splitting_id,
                    AnalysisStatus.ANALYSABLE_REJECTED_TIME_SPLITTING_METHOD,
                    reason,
                )

        manager = self.context.dataset_store.manager(
            model_id=self.model_id,
            analysable_id=analysable.id,
            time_splitting=time_splitting_id,
            evaluation=self.options.evaluation,
            include_target=include_target,
        )

        with manager.claim() as acquired:
            if not acquired:
                return self._reject(
                    analysable,
                    time_splitting_id,
                    AnalysisStatus.NO_DATASET,
                    RejectReason.ANALYSIS_IN_PROGRESS,
                )

            # Another worker may have recorded these samples or ranges
            # between the check above and the claim.
            if not self.options.evaluation:
                sample_ids, ranges, reason = self._pending_work(
                    sample_ids, ranges, analysable.id, time_splitting_id, include_target
                )
                if reason is not None:
                    return self._reject(
                        analysable,
                        time_splitting_id,
                        AnalysisStatus.ANALYSABLE_REJECTED_TIME_SPLITTING_METHOD,
                        reason,
                    )

            target.add_sample_data(samples_data)
            sample_ids = target.filter_out_invalid_samples(sample_ids, analysable, include_target)
            if not sample_ids:
                return self._reject(
                    analysable,
                    time_splitting_id,
                    AnalysisStatus.NO_DATASET,
                    RejectReason.NO_VALID_SAMPLES,
                )

            for indicator in self.indicators:
                indicator.add_sample_data(samples_data)

            rows = time_splitting.calculate(
                sample_ids,
                self.get_samples_origin(),
                self.indicators,
                ranges,
                target if include_target else None,
            )
            if not rows:
                return self._reject(
                    analysable,
                    time_splitting_id,
                    AnalysisStatus.ANALYSABLE_REJECTED_TIME_SPLITTING_METHOD,
                    RejectReason.NO_VALID_DATA,
                )

            stored = manager.store(
                self._build_matrix(rows, analysable.id, time_splitting_id, include_target)
            )

            if not self.options.evaluation:
                if include_target:
                    self.save_train_samples(sample_ids, analysable.id, time_splitting_id, stored)
                else:
                    self.save_prediction_ranges(ranges, analysable.id, time_splitting_id)

        LOGGER.info(
            "Analysable processed",
            extra={
                "model_id": self.model_id,
                "analysable_id": analysable.id,
                "time_splitting": time_splitting_id,
                "rows": len(rows),
                "file_id": stored.id,
            },
        )
        return AnalysisResult(
            time_splitting=time_splitting_id,
            status=AnalysisStatus.OK,
            message="Successfully analysed",
            file=stored,
        )

    # ------------------------------------------------------------------
    # Bookkeeping
    # ------------------------------------------------------------------

    def _pending_work(
        self,
        sample_ids: Sequence[int],
        ranges: Sequence[TimeRange],
        analysable_id: int,
        time_splitting_id: str,
        include_target: bool,
    ) -> tuple[list[int], list[TimeRange], str | None]:
        """Samples and ranges not recorded yet, or the reason there are none."""
        if not ranges:
            return list(sample_ids), [], RejectReason.NO_NEW_DATA

        sample_ids = self.filter_out_train_samples(sample_ids, analysable_id, time_splitting_id)
        if not sample_ids:
            return [], list(ranges), RejectReason.NO_NEW_DATA

        if not include_target:
            ranges = self.filter_out_prediction_ranges(ranges, analysable_id, time_splitting_id)
        if not ranges:
            return sample_ids, [], RejectReason.NO_NEW_TIME_RANGES

        return sample_ids, list(ranges), None

    def filter_out_train_samples(
        self,
        sample_ids: Iterable[int],
        analysable_id: int,
        time_splitting_id: str,
    ) -> list[int]:
        """Drop the samples already part of a training dataset."""
        used: set[int] = set()
        for record in self.context.repository.get_train_samples(
            self.model_id, analysable_id, time_splitting_id
        ):
            used.update(record.sample_ids)
        return [sample_id for sample_id in sample_ids if sample_id not in used]

    def filter_out_prediction_ranges(
        self,
        ranges: Iterable[TimeRange],
        analysable_id: int,
        time_splitting_id: str,
    ) -> list[TimeRange]:
        """Drop the ranges that already produced predictions."""
        predicted = {
            record.range_index
            for record in self.context.repository.get_predict_ranges(
                self.model_id, analysable_id, time_splitting_id
            )
        }
        return [time_range for time_range in ranges if time_range.index not in predicted]

    def save_train_samples(
        self,
        sample_ids: Sequence[int],
        analysable_id: int,
        time_splitting_id: str,
        stored: StoredDataset,
    ) -> None:
        self.context.repository.add_train_samples(
            TrainSampleRecord(
                model_id=self.model_id,
                analysable_id=analysable_id,
                time_splitting=time_splitting_id,
                file_id=stored.id,
                sample_ids=list(sample_ids),
                time_created=self.context.clock.now(),
            )
        )

    def save_prediction_ranges(
        self,
        ranges: Iterable[TimeRange],
        analysable_id: int,
        time_splitting_id: str,
    ) -> None:
        now = self.context.clock.now()
        self.context.repository.add_predict_ranges(
            PredictRangeRecord(
                model_id=self.model_id,
                analysable_id=analysable_id,
                time_splitting=time_splitting_id,
                range_index=time_range.index,
                time_created=now,
            )
            for time_range in ranges
        )

    # ------------------------------------------------------------------
    # Analysis log
    # ------------------------------------------------------------------

    def add_log(self, message: str) -> None:
        self._log.append(message)
        LOGGER.info(message, extra={"model_id": self.model_id, "analyser": self.get_id()})

    def get_logs(self) -> list[str]:
        return list(self._log)

    def get_results(self) -> list[tuple[int, AnalysisResult]]:
        """(analysable id, result) of every computed cell, in processing order."""
        return list(self._results)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _build_matrix(
        self,
        rows: dict[str, list[float]],
        analysable_id: int,
        time_splitting_id: str,
        include_target: bool,
    ) -> DatasetMatrix:
        columns = [indicator.get_id() for indicator in self.indicators]
        if include_target:
            columns.append(TARGET_COLUMN)

        metadata = DatasetMetadata(
            model_id=self.model_id,
            analysable_id=analysable_id,
            time_splitting=time_splitting_id,
            evaluation=self.options.evaluation,
            include_target=include_target,
            n_features=len(self.indicators),
            target_id=self.target.get_id(),
            target_type=self.target.target_type,
            target_classes=list(self.target.classes),
        )
        return DatasetMatrix(columns=columns, rows=rows, metadata=metadata)

    def _reject(
        self,
        analysable: Analysable,
        time_splitting_id: str,
        status: AnalysisStatus,
        reason: str,
    ) -> AnalysisResult:
        LOGGER.info(
            "Time splitting rejected",
            extra={
                "model_id": self.model_id,
                "analysable_id": analysable.id,
                "time_splitting": time_splitting_id,
                "reason": reason,
            },
        )
        self._emit_rejected(analysable.id, time_splitting_id, reason)
        return AnalysisResult(time_splitting=time_splitting_id, status=status, message=reason)

    def _emit_rejected(self, analysable_id: int, time_splitting_id: str | None, reason: str) -> None:
        self.context.event_bus.emit(
            AnalysableRejectedEvent(
                ts=self.context.clock.now(),
                model_id=self.model_id,
                analysable_id=analysable_id,
                time_splitting=time_splitting_id,
                reason=reason,
            )
        )
