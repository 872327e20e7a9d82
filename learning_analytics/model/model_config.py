"""Analytics configuration models.

This module defines the settings shared by every model of a site (evaluation
time splittings, scores, lease expiry) and the prediction processor
configuration, parsed from JSON.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from learning_analytics.analytics.analysable import WEEK_SECONDS
from learning_analytics.dataset.lease import DEFAULT_LEASE_TTL_SECONDS

DEFAULT_TIME_SPLITTINGS = [
    "quarters_accum",
    "quarters",
    "deciles_accum",
    "deciles",
    "single_range",
    "no_splitting",
    "weekly",
]


class ProcessorConfig(BaseModel):
    """Prediction processor config that collects arbitrary extra keys into ``params``.

    JSON example:
        "processor": {
          "class_path": "my_ml.backends:LogisticProcessor",
          "output_dir": "/var/lib/analytics/models",
          "epochs": 50
        }

    Result:
        class_path="my_ml.backends:LogisticProcessor"
        params={"output_dir": "/var/lib/analytics/models", "epochs": 50}
    """

    class_path: str = Field(..., min_length=1)

    params: dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(extra="allow")

    @model_validator(mode="before")
    @classmethod
    def _collect_extras_into_params(cls, data: Any) -> Any:
        """Collect unknown top-level keys into the ``params`` mapping."""
        if not isinstance(data, dict):
            return data

        d = dict(data)
        explicit_params = d.pop("params", None)

        extras = {k: v for k, v in d.items() if k != "class_path"}
        for k in extras:
            d.pop(k, None)

        merged: dict[str, Any] = {}
        if isinstance(explicit_params, dict):
            merged.update(explicit_params)
        merged.update(extras)

        d["params"] = merged
        return d

    def to_processor_params(self) -> dict[str, Any]:
        """Return a shallow copy of the processor parameters."""
        return dict(self.params)


class AnalyticsSettings(BaseModel):
    """Site-wide analytics settings."""

    # Time splitting methods tried by evaluate().
    time_splittings: list[str] = Field(default_factory=lambda: list(DEFAULT_TIME_SPLITTINGS), min_length=1)

    # Reuse evaluation datasets younger than reuse_window_seconds.
    reuse_prev_analysed: bool = True
    reuse_window_seconds: int = Field(default=WEEK_SECONDS, ge=0)

    # Evaluation scores below min_score flag EVALUATE_LOW_SCORE.
    min_score: float = Field(default=0.7, ge=0, le=1)
    # Score deviations above max_deviation flag EVALUATE_NOT_ENOUGH_DATA.
    max_deviation: float = Field(default=0.02, ge=0)
    iterations: int = Field(default=10, ge=1)

    lease_ttl_seconds: int = Field(default=DEFAULT_LEASE_TTL_SECONDS, ge=1)

    processor: ProcessorConfig | None = None

    model_config = ConfigDict(extra="forbid")

    @classmethod
    def from_json_obj(cls, settings_obj: dict[str, Any]) -> AnalyticsSettings:
        """Create an AnalyticsSettings instance from a JSON-compatible object."""
        return cls.model_validate(settings_obj)

    @model_validator(mode="after")
    def validate_time_splittings(self) -> AnalyticsSettings:
        if len(set(self.time_splittings)) != len(self.time_splittings):
            raise ValueError("time_splittings must not contain duplicates")
        return self
