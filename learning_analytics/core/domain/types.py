"""Core shared data models and schemas.

This module defines the canonical Pydantic models used across the analytics
pipeline: the source records read from the learning platform (courses,
users, enrolments, activity logs) and the bookkeeping records the pipeline
persists (model definitions, train samples, predict ranges, used files,
predictions). The bookkeeping models are mirrored by the JSON schemas in
``learning_analytics/core/schemas``.
"""

# pylint: disable=missing-class-docstring,missing-function-docstring
from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from learning_analytics.core.domain.ranges import append_range_index

# ---------------------------------------------------------------------------
# Source records (read-only, supplied by the entity and log stores)
# ---------------------------------------------------------------------------


class CourseRecord(BaseModel):
    id: int = Field(..., ge=1)
    shortname: str = Field(..., min_length=1)
    fullname: str = Field(..., min_length=1)
    # 0 means "not configured"; the analysable may guess it from the logs.
    start_date: int = Field(default=0, ge=0)
    end_date: int = Field(default=0, ge=0)
    visible: bool = True
    # Course format ("topics", "weeks", "social", ...). Informative only.
    format: str = "topics"

    model_config = ConfigDict(extra="forbid")


class UserRecord(BaseModel):
    id: int = Field(..., ge=1)
    username: str = Field(..., min_length=1)
    firstname: str = ""
    lastname: str = ""

    model_config = ConfigDict(extra="forbid")


EnrolmentRole = Literal["student", "teacher", "editingteacher"]


class EnrolmentRecord(BaseModel):
    id: int = Field(..., ge=1)
    user_id: int = Field(..., ge=1)
    course_id: int = Field(..., ge=1)
    role: EnrolmentRole = "student"
    time_start: int = Field(default=0, ge=0)
    time_end: int = Field(default=0, ge=0)
    time_created: int = Field(default=0, ge=0)

    model_config = ConfigDict(extra="forbid")

    @property
    def effective_start(self) -> int:
        """Enrolment start, falling back to the enrolment creation time."""
        return self.time_start if self.time_start else self.time_created


LogCrud = Literal["c", "r", "u", "d"]


class LogEvent(BaseModel):
    user_id: int = Field(..., ge=1)
    course_id: int = Field(..., ge=1)
    time_created: int = Field(..., ge=0)
    crud: LogCrud = "r"

    model_config = ConfigDict(extra="forbid")


class LastAccessRecord(BaseModel):
    user_id: int = Field(..., ge=1)
    course_id: int = Field(..., ge=1)
    time_access: int = Field(..., ge=0)

    model_config = ConfigDict(extra="forbid")


# ---------------------------------------------------------------------------
# Model definition (persisted by the repository)
# ---------------------------------------------------------------------------


class ModelDefinition(BaseModel):
    id: int = Field(..., ge=1)
    target: str = Field(..., min_length=1)
    indicators: list[str] = Field(..., min_length=1)
    # The single time splitting method used once the model is enabled.
    time_splitting: str | None = Field(default=None, min_length=1)
    enabled: bool = False
    trained: bool = False
    version: int = Field(default=0, ge=0)
    time_created: int = Field(default=0, ge=0)
    time_modified: int = Field(default=0, ge=0)

    model_config = ConfigDict(extra="forbid")

    @model_validator(mode="after")
    def validate_enabled_has_time_splitting(self) -> ModelDefinition:
        """An enabled model must have exactly one time splitting method."""
        if self.enabled and not self.time_splitting:
            raise ValueError("enabled models require a time_splitting")
        return self


# ---------------------------------------------------------------------------
# Bookkeeping records (appended by the analyser and the model)
# ---------------------------------------------------------------------------


class TrainSampleRecord(BaseModel):
    model_id: int = Field(..., ge=1)
    analysable_id: int = Field(..., ge=0)
    time_splitting: str = Field(..., min_length=1)
    file_id: str = Field(..., min_length=1)
    sample_ids: list[int]
    time_created: int = Field(..., ge=0)

    model_config = ConfigDict(extra="forbid")


class PredictRangeRecord(BaseModel):
    model_id: int = Field(..., ge=1)
    analysable_id: int = Field(..., ge=0)
    time_splitting: str = Field(..., min_length=1)
    range_index: int = Field(..., ge=0)
    time_created: int = Field(..., ge=0)

    model_config = ConfigDict(extra="forbid")


UsedFileAction = Literal["trained", "predicted"]


class UsedFileRecord(BaseModel):
    model_id: int = Field(..., ge=1)
    file_id: str = Field(..., min_length=1)
    action: UsedFileAction
    time: int = Field(..., ge=0)

    model_config = ConfigDict(extra="forbid")


class PredictionRecord(BaseModel):
    model_id: int = Field(..., ge=1)
    context_id: str = Field(..., min_length=1)
    sample_id: int
    range_index: int = Field(..., ge=0)
    prediction: float
    prediction_score: float = Field(..., ge=0, le=1)
    time_created: int = Field(..., ge=0)

    model_config = ConfigDict(extra="forbid")

    @property
    def unique_sample_id(self) -> str:
        return append_range_index(self.sample_id, self.range_index)
