"""Runtime configuration of the batch entrypoint."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from learning_analytics.model.model_config import AnalyticsSettings


class ObjectStorageConfig(BaseModel):
    """Dataset files on OCI object storage instead of the work dir."""

    bucket: str = Field(..., min_length=1)
    root_prefix: str = "analytics"
    region: str | None = None
    auth_mode: Literal["instance_principal", "api_key"] = "instance_principal"
    oci_config_file: str | None = None
    oci_profile: str = "DEFAULT"

    model_config = ConfigDict(extra="forbid")


class RuntimeConfig(BaseModel):
    """
    JSON example:
        {
          "data_dump": "/data/lms_dump.json",
          "work_dir": "/mnt/scratch/analytics",
          "events_file": "/mnt/scratch/analytics/events.jsonl",
          "settings": {"min_score": 0.7, "processor": {"class_path": "..."}}
        }

    ``work_dir`` holds the repository, the leases and (without object
    storage) the dataset files.
    """

    data_dump: Path
    work_dir: Path
    events_file: Path | None = None
    object_storage: ObjectStorageConfig | None = None
    settings: AnalyticsSettings = Field(default_factory=AnalyticsSettings)

    model_config = ConfigDict(extra="forbid")

    @classmethod
    def from_json_obj(cls, config_obj: dict[str, Any]) -> RuntimeConfig:
        return cls.model_validate(config_obj)

    @property
    def repository_dir(self) -> Path:
        return self.work_dir / "repository"

    @property
    def lease_dir(self) -> Path:
        return self.work_dir / "leases"

    @property
    def files_dir(self) -> Path:
        return self.work_dir / "files"
