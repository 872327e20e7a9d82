"""Target interface.

A target is the label (and prediction subject) of a model. It decides which
analysables and samples are valid, computes the training labels and, for
static targets, the predictions themselves.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, ClassVar, Iterable, Literal

from learning_analytics.analytics.calculable import Calculable

if TYPE_CHECKING:
    from learning_analytics.analytics.analysable import Analysable


class Target(Calculable):
    """Per-sample label calculator.

    Class attributes:
    - ``analyser_id``: registry id of the analyser that provides the samples
    - ``static``: rule based targets need no training, their label is the prediction
    - ``target_type``: "discrete" (labels in ``classes``) or "linear"
    - ``ignored_classes`` / ``min_prediction_score``: predictions that do not
      trigger the model callback (and are therefore not stored)
    """

    analyser_id: ClassVar[str] = ""
    static: ClassVar[bool] = False
    target_type: ClassVar[Literal["discrete", "linear"]] = "discrete"
    classes: ClassVar[tuple[float, ...]] = (0.0, 1.0)
    ignored_classes: ClassVar[tuple[float, ...]] = ()
    min_prediction_score: ClassVar[float] = 0.0

    def instance(self) -> Target:
        """Fresh instance for one analysable, bound to the same context."""
        target = type(self)()
        if self._context is not None:
            target.bind(self._context)
        return target

    @classmethod
    def is_static(cls) -> bool:
        return cls.static

    @classmethod
    def get_analyser_id(cls) -> str:
        return cls.analyser_id

    @abstractmethod
    def is_valid_analysable(self, analysable: Analysable, include_target: bool) -> bool | str:
        """True if the analysable can be used, otherwise the reason why not."""

    def is_valid_sample(self, sample_id: int, analysable: Analysable, include_target: bool) -> bool:
        return True

    def filter_out_invalid_samples(
        self,
        sample_ids: Iterable[int],
        analysable: Analysable,
        include_target: bool,
    ) -> list[int]:
        return [
            sample_id
            for sample_id in sample_ids
            if self.is_valid_sample(sample_id, analysable, include_target)
        ]

    @abstractmethod
    def calculate_sample(self, sample_id: int, analysable: Analysable) -> float | None:
        """Return the label of a sample, None if it cannot be labelled."""

    def calculate(self, sample_ids: Iterable[int], analysable: Analysable) -> dict[int, float | None]:
        return {sample_id: self.calculate_sample(sample_id, analysable) for sample_id in sample_ids}

    def triggers_callback(self, predicted_value: float, prediction_score: float) -> bool:
        """Return True if a prediction is worth storing and reporting."""
        if predicted_value in self.ignored_classes:
            return False
        return prediction_score >= self.min_prediction_score
