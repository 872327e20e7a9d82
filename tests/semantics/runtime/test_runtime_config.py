"""
Semantic test: runtime and analytics configuration.

Invariant:
Unknown processor keys become constructor parameters, the processor class
is loaded from its class path, and the settings reject inconsistent
input instead of guessing.
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from analytics_fixtures import DeterministicProcessor
from learning_analytics.analytics.context import build_processor
from learning_analytics.model.model_config import AnalyticsSettings, ProcessorConfig
from learning_analytics.runtime.runtime_config import RuntimeConfig


def test_processor_extras_are_collected_into_params() -> None:
    config = ProcessorConfig.model_validate(
        {"class_path": "analytics_fixtures:DeterministicProcessor", "score": 0.5, "params": {"deviation": 0.1}}
    )

    assert config.class_path == "analytics_fixtures:DeterministicProcessor"
    assert config.to_processor_params() == {"score": 0.5, "deviation": 0.1}


def test_processor_is_built_from_its_class_path() -> None:
    config = ProcessorConfig.model_validate({"class_path": "analytics_fixtures:DeterministicProcessor", "score": 0.5})

    processor = build_processor(config)

    assert isinstance(processor, DeterministicProcessor)
    assert processor.score == 0.5


def test_settings_reject_duplicate_time_splittings() -> None:
    with pytest.raises(ValidationError):
        AnalyticsSettings.from_json_obj({"time_splittings": ["quarters", "quarters"]})


def test_settings_defaults() -> None:
    settings = AnalyticsSettings()

    assert settings.min_score == 0.7
    assert "no_splitting" in settings.time_splittings
    assert settings.processor is None


def test_runtime_config_paths_and_strictness(tmp_path) -> None:
    config = RuntimeConfig.from_json_obj({"data_dump": str(tmp_path / "dump.json"), "work_dir": str(tmp_path)})

    assert config.repository_dir == tmp_path / "repository"
    assert config.lease_dir == tmp_path / "leases"
    assert config.files_dir == tmp_path / "files"
    assert config.object_storage is None

    with pytest.raises(ValidationError):
        RuntimeConfig.from_json_obj({"data_dump": "d.json", "work_dir": "w", "unexpected": 1})
