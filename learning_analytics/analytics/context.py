"""Analytics context.

Holds the collaborators one worker process uses to analyse, train and
predict: stores, clock, repository, dataset store, registry, prediction
processor and the analysable cache.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from learning_analytics.analytics.analysable import AnalysableCache, CourseAnalysable
from learning_analytics.analytics.registry import ComponentRegistry, load_class
from learning_analytics.core.events.event_bus import NullEventBus
from learning_analytics.core.ports.clock import SystemClock
from learning_analytics.core.ports.prediction_processor import PredictionProcessor
from learning_analytics.dataset.lease import FileLeaseStore
from learning_analytics.dataset.manager import DatasetStore
from learning_analytics.model.model_config import AnalyticsSettings

if TYPE_CHECKING:
    from learning_analytics.core.events.event_bus import EventBus
    from learning_analytics.core.ports.analytics_repository import AnalyticsRepository
    from learning_analytics.core.ports.clock import Clock
    from learning_analytics.core.ports.entity_store import EntityStore
    from learning_analytics.core.ports.file_store import FileStore
    from learning_analytics.core.ports.log_store import LogStore
    from learning_analytics.model.model_config import ProcessorConfig


def build_processor(config: ProcessorConfig) -> PredictionProcessor:
    """Instantiate the prediction processor specified in the configuration."""
    cls = load_class(config.class_path, PredictionProcessor)
    return cls(**config.to_processor_params())


@dataclass(slots=True)
class AnalyticsContext:
    entity_store: EntityStore
    log_store: LogStore
    repository: AnalyticsRepository
    dataset_store: DatasetStore
    clock: Clock
    registry: ComponentRegistry
    settings: AnalyticsSettings
    event_bus: EventBus
    processor: PredictionProcessor | None = None
    analysables: AnalysableCache = field(init=False)

    def __post_init__(self) -> None:
        self.analysables = AnalysableCache(self._build_analysable)

    @classmethod
    def create(
        cls,
        *,
        entity_store: EntityStore,
        log_store: LogStore,
        repository: AnalyticsRepository,
        file_store: FileStore,
        lease_root: str | Path,
        settings: AnalyticsSettings | None = None,
        clock: Clock | None = None,
        registry: ComponentRegistry | None = None,
        event_bus: EventBus | None = None,
        processor: PredictionProcessor | None = None,
    ) -> AnalyticsContext:
        """Wire a context; the processor defaults to ``settings.processor``."""
        settings = settings if settings is not None else AnalyticsSettings()
        clock = clock if clock is not None else SystemClock()
        event_bus = event_bus if event_bus is not None else NullEventBus()

        if processor is None and settings.processor is not None:
            processor = build_processor(settings.processor)

        dataset_store = DatasetStore(
            file_store=file_store,
            lease_store=FileLeaseStore(lease_root, clock=clock, ttl_seconds=settings.lease_ttl_seconds),
            clock=clock,
            event_bus=event_bus,
        )

        return cls(
            entity_store=entity_store,
            log_store=log_store,
            repository=repository,
            dataset_store=dataset_store,
            clock=clock,
            registry=registry if registry is not None else ComponentRegistry.with_defaults(),
            settings=settings,
            event_bus=event_bus,
            processor=processor,
        )

    def _build_analysable(self, course_id: int) -> CourseAnalysable:
        return CourseAnalysable(
            self.entity_store.get_course(course_id),
            entity_store=self.entity_store,
            log_store=self.log_store,
            clock=self.clock,
        )
