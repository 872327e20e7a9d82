"""Public API for the learning_analytics package.

Only symbols imported here are considered part of the stable,
supported external interface.
"""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

# ----------------------------------------------------------------------
# Analytics components (used by plugin authors)
# ----------------------------------------------------------------------
from learning_analytics.analytics.analysable import Analysable, CourseAnalysable
from learning_analytics.analytics.analyser.base import Analyser, AnalysisOptions, AnalysisResult
from learning_analytics.analytics.context import AnalyticsContext
from learning_analytics.analytics.indicator.base import BinaryIndicator, Indicator, LinearIndicator
from learning_analytics.analytics.registry import ComponentRegistry
from learning_analytics.analytics.target.base import Target
from learning_analytics.analytics.time_splitting.base import TimeSplitting

# ----------------------------------------------------------------------
# Domain Types
# ----------------------------------------------------------------------
from learning_analytics.core.domain.errors import (
    AnalyticsError,
    IndicatorValueError,
    ModelStateError,
    RequirementsError,
    UnknownComponentError,
)
from learning_analytics.core.domain.ranges import TimeRange, append_range_index, infer_sample_info
from learning_analytics.core.domain.status import AnalysisStatus
from learning_analytics.core.domain.types import ModelDefinition, PredictionRecord
from learning_analytics.core.ports.prediction_processor import (
    EvaluationOutcome,
    PredictionProcessor,
    PredictionRow,
    TrainOutcome,
)

# ----------------------------------------------------------------------
# Config API (used by consumers)
# ----------------------------------------------------------------------
from learning_analytics.model.model import Model
from learning_analytics.model.model_config import AnalyticsSettings, ProcessorConfig

# ----------------------------------------------------------------------
# Public API definition
# ----------------------------------------------------------------------

__all__ = [
    # Models
    "Model",
    "AnalyticsContext",
    "ComponentRegistry",

    # Config
    "AnalyticsSettings",
    "ProcessorConfig",

    # Component interfaces
    "Analysable",
    "CourseAnalysable",
    "Analyser",
    "AnalysisOptions",
    "AnalysisResult",
    "Indicator",
    "BinaryIndicator",
    "LinearIndicator",
    "Target",
    "TimeSplitting",
    "PredictionProcessor",
    "TrainOutcome",
    "PredictionRow",
    "EvaluationOutcome",

    # Domain API
    "AnalysisStatus",
    "ModelDefinition",
    "PredictionRecord",
    "TimeRange",
    "append_range_index",
    "infer_sample_info",
    "AnalyticsError",
    "IndicatorValueError",
    "ModelStateError",
    "RequirementsError",
    "UnknownComponentError",

    # Version
    "__version__",
]

# ----------------------------------------------------------------------
# Package version
# ----------------------------------------------------------------------

try:
    __version__ = version("learning-analytics")
except PackageNotFoundError:
    __version__ = "0.0.0"
