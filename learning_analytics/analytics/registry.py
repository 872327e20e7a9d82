"""Component registry.

Analysers, time splitting methods, indicators and targets are selected by
identifier strings. Built-in components are registered by ``with_defaults``;
extra ones are registered as classes or loaded by ``class_path``
("module:Class").
"""

from __future__ import annotations

import importlib
from typing import TYPE_CHECKING, Any, TypeVar

from learning_analytics.analytics.analyser.base import Analyser
from learning_analytics.analytics.indicator.base import Indicator
from learning_analytics.analytics.target.base import Target
from learning_analytics.analytics.time_splitting.base import TimeSplitting
from learning_analytics.core.domain.errors import UnknownComponentError

if TYPE_CHECKING:
    from learning_analytics.analytics.context import AnalyticsContext

T = TypeVar("T")

COMPONENT_KINDS: dict[str, type] = {
    "analyser": Analyser,
    "time_splitting": TimeSplitting,
    "indicator": Indicator,
    "target": Target,
}


def load_class(class_path: str, base: type[T]) -> type[T]:
    """Dynamically load a ``base`` subclass from "module:Class"."""
    module_path, sep, class_name = class_path.partition(":")
    if not sep or not module_path or not class_name:
        raise ValueError(f"class_path must look like 'module:Class', got {class_path!r}")

    module = importlib.import_module(module_path)
    cls = getattr(module, class_name)

    if not isinstance(cls, type) or not issubclass(cls, base):
        raise TypeError(f"Loaded class {class_name} is not a subclass of {base.__name__}.")

    return cls


class ComponentRegistry:
    """Component classes by kind and id."""

    def __init__(self) -> None:
        self._components: dict[str, dict[str, type]] = {kind: {} for kind in COMPONENT_KINDS}

    @classmethod
    def with_defaults(cls) -> ComponentRegistry:
        # pylint: disable=import-outside-toplevel
        from learning_analytics.analytics.analyser.by_course import (
            CoursesAnalyser,
            StudentEnrolmentsAnalyser,
        )
        from learning_analytics.analytics.indicator.course import (
            AnyCourseAccess,
            AnyWriteAction,
            ReadActions,
            StudentActivity,
        )
        from learning_analytics.analytics.target.course import CourseDropout, NoTeaching
        from learning_analytics.analytics.time_splitting.equal_parts import (
            Deciles,
            DecilesAccum,
            Quarters,
            QuartersAccum,
        )
        from learning_analytics.analytics.time_splitting.periodic import Weekly
        from learning_analytics.analytics.time_splitting.single import NoSplitting, SingleRange

        registry = cls()
        for analyser in (CoursesAnalyser, StudentEnrolmentsAnalyser):
            registry.register("analyser", analyser)
        for time_splitting in (
            Quarters,
            QuartersAccum,
            Deciles,
            DecilesAccum,
            NoSplitting,
            SingleRange,
            Weekly,
        ):
            registry.register("time_splitting", time_splitting)
        for indicator in (AnyWriteAction, AnyCourseAccess, ReadActions, StudentActivity):
            registry.register("indicator", indicator)
        for target in (CourseDropout, NoTeaching):
            registry.register("target", target)
        return registry

    def register(self, kind: str, component: type) -> type:
        """Register a component class under its ``get_id()``."""
        base = self._base(kind)
        if not isinstance(component, type) or not issubclass(component, base):
            raise TypeError(f"{component!r} is not a subclass of {base.__name__}")

        component_id = component.get_id()
        registered = self._components[kind].get(component_id)
        if registered is not None and registered is not component:
            raise ValueError(f"{kind} id {component_id!r} is already registered by {registered.__name__}")

        self._components[kind][component_id] = component
        return component

    def register_class_path(self, kind: str, class_path: str) -> type:
        return self.register(kind, load_class(class_path, self._base(kind)))

    def get_class(self, kind: str, component_id: str) -> type:
        try:
            return self._components[self._kind(kind)][component_id]
        except KeyError:
            raise UnknownComponentError(f"Unknown {kind} {component_id!r}") from None

    def ids(self, kind: str) -> list[str]:
        return sorted(self._components[self._kind(kind)])

    def has(self, kind: str, component_id: str) -> bool:
        return component_id in self._components[self._kind(kind)]

    # ------------------------------------------------------------------
    # Instances
    # ------------------------------------------------------------------

    def time_splitting(self, component_id: str) -> TimeSplitting:
        return self.get_class("time_splitting", component_id)()

    def indicator(self, component_id: str, context: AnalyticsContext) -> Indicator:
        indicator = self.get_class("indicator", component_id)()
        indicator.bind(context)
        return indicator

    def target(self, component_id: str, context: AnalyticsContext) -> Target:
        target = self.get_class("target", component_id)()
        target.bind(context)
        return target

    def analyser(self, component_id: str, **kwargs: Any) -> Analyser:
        return self.get_class("analyser", component_id)(**kwargs)

    # ------------------------------------------------------------------

    @staticmethod
    def _kind(kind: str) -> str:
        if kind not in COMPONENT_KINDS:
            raise ValueError(f"Unknown component kind {kind!r}")
        return kind

    def _base(self, kind: str) -> type:
        return COMPONENT_KINDS[self._kind(kind)]
