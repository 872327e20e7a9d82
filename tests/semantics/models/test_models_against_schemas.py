"""Schema conformance tests for the persisted Pydantic records.

This test suite validates that the model definition and the bookkeeping
records both accept valid inputs and reject invalid ones in strict
alignment with their corresponding JSON Schemas.
"""

# pylint: disable=line-too-long,missing-function-docstring
# pylint: disable=redefined-outer-name,global-statement
from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest
from jsonschema import ValidationError as JsonSchemaValidationError
from jsonschema import validate as jsonschema_validate
from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError
from referencing import Registry, Resource
from referencing.jsonschema import DRAFT202012

from learning_analytics.core.domain.types import (
    ModelDefinition,
    PredictionRecord,
    PredictRangeRecord,
    TrainSampleRecord,
    UsedFileRecord,
)

SCHEMA_REGISTRY = Registry()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def load_schema(name: str) -> dict:
    """
    Load JSON schema from the package schema directory.
    """
    global SCHEMA_REGISTRY

    root = Path(__file__).parent.parent.parent.parent
    schema_path = root / "learning_analytics" / "core" / "schemas" / name

    with schema_path.open("r", encoding="utf-8") as f:
        schema = json.load(f)

    schema_id = schema.get("$id")
    if isinstance(schema_id, str) and schema_id:
        resource = Resource.from_contents(schema, default_specification=DRAFT202012)
        SCHEMA_REGISTRY = SCHEMA_REGISTRY.with_resource(schema_id, resource)

    return schema


def dump_for_jsonschema(model: Any) -> dict:
    """
    Dump a Pydantic model to a JSON-compatible dict for schema validation.
    Excludes None values so optional fields are omitted instead of null.
    """
    return model.model_dump(mode="json", exclude_none=True)


def pydantic_validate(model_type: Any, data: dict[str, Any]) -> Any:
    adapter = TypeAdapter(model_type)
    return adapter.validate_python(data)


def assert_pydantic_then_schema_ok(model_type: Any, data: dict[str, Any], schema: dict[str, Any]) -> dict:
    """
    Validate with Pydantic first, then validate the dumped instance with JSON Schema.
    Returns the dumped instance.
    """
    obj = pydantic_validate(model_type, data)
    instance = dump_for_jsonschema(obj)
    jsonschema_validate(instance=instance, schema=schema, registry=SCHEMA_REGISTRY)
    return instance


def assert_schema_invalid_but_pydantic_rejects(model_type: Any, data: dict[str, Any], schema: dict[str, Any]):
    """
    Ensures Pydantic is at least as strict as the JSON Schema for the given input.
    If schema rejects, Pydantic must reject too (otherwise model is too lax).
    """
    with pytest.raises(JsonSchemaValidationError):
        jsonschema_validate(instance=data, schema=schema, registry=SCHEMA_REGISTRY)

    with pytest.raises(PydanticValidationError):
        pydantic_validate(model_type, data)


def assert_both_reject_additional_properties(model_type: Any, data: dict[str, Any], schema: dict[str, Any]):
    data = dict(data)
    data["unexpected"] = "x"

    with pytest.raises(PydanticValidationError):
        pydantic_validate(model_type, data)

    with pytest.raises(JsonSchemaValidationError):
        jsonschema_validate(instance=data, schema=schema, registry=SCHEMA_REGISTRY)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture(scope="module", autouse=True)
def _load_common_schema() -> None:
    load_schema("common.schema.json")


@pytest.fixture(scope="module")
def model_definition_schema() -> dict:
    return load_schema("model_definition.schema.json")


@pytest.fixture(scope="module")
def train_sample_schema() -> dict:
    return load_schema("train_sample_record.schema.json")


@pytest.fixture(scope="module")
def predict_range_schema() -> dict:
    return load_schema("predict_range_record.schema.json")


@pytest.fixture(scope="module")
def used_file_schema() -> dict:
    return load_schema("used_file_record.schema.json")


@pytest.fixture(scope="module")
def prediction_schema() -> dict:
    return load_schema("prediction_record.schema.json")


# ---------------------------------------------------------------------------
# ModelDefinition
# ---------------------------------------------------------------------------

def make_definition(**overrides) -> dict[str, Any]:
    data: dict[str, Any] = {
        "id": 1,
        "target": "course_dropout",
        "indicators": ["any_write_action", "read_actions"],
    }
    data.update(overrides)
    return data


def test_model_definition_valid_minimal(model_definition_schema):
    instance = assert_pydantic_then_schema_ok(ModelDefinition, make_definition(), model_definition_schema)
    assert "time_splitting" not in instance


def test_model_definition_valid_enabled(model_definition_schema):
    data = make_definition(enabled=True, trained=True, time_splitting="quarters", version=2)
    assert_pydantic_then_schema_ok(ModelDefinition, data, model_definition_schema)


def test_model_definition_enabled_requires_time_splitting(model_definition_schema):
    bad = make_definition(enabled=True)
    assert_schema_invalid_but_pydantic_rejects(ModelDefinition, bad, model_definition_schema)


def test_model_definition_requires_indicators(model_definition_schema):
    bad = make_definition(indicators=[])
    assert_schema_invalid_but_pydantic_rejects(ModelDefinition, bad, model_definition_schema)


def test_model_definition_min_constraints(model_definition_schema):
    assert_schema_invalid_but_pydantic_rejects(ModelDefinition, make_definition(id=0), model_definition_schema)
    assert_schema_invalid_but_pydantic_rejects(ModelDefinition, make_definition(target=""), model_definition_schema)
    assert_schema_invalid_but_pydantic_rejects(
        ModelDefinition, make_definition(time_splitting=""), model_definition_schema
    )
    assert_schema_invalid_but_pydantic_rejects(ModelDefinition, make_definition(version=-1), model_definition_schema)


def test_model_definition_rejects_additional_properties(model_definition_schema):
    assert_both_reject_additional_properties(ModelDefinition, make_definition(), model_definition_schema)


# ---------------------------------------------------------------------------
# TrainSampleRecord
# ---------------------------------------------------------------------------

def make_train_samples(**overrides) -> dict[str, Any]:
    data: dict[str, Any] = {
        "model_id": 1,
        "analysable_id": 3,
        "time_splitting": "quarters",
        "file_id": "model_1/training/quarters/analysable_3/001700000000-abcdef012345.npz",
        "sample_ids": [100, 101],
        "time_created": 1700000000,
    }
    data.update(overrides)
    return data


def test_train_sample_record_valid(train_sample_schema):
    assert_pydantic_then_schema_ok(TrainSampleRecord, make_train_samples(), train_sample_schema)
    assert_pydantic_then_schema_ok(TrainSampleRecord, make_train_samples(sample_ids=[]), train_sample_schema)


def test_train_sample_record_constraints(train_sample_schema):
    assert_schema_invalid_but_pydantic_rejects(
        TrainSampleRecord, make_train_samples(analysable_id=-1), train_sample_schema
    )
    assert_schema_invalid_but_pydantic_rejects(
        TrainSampleRecord, make_train_samples(time_splitting=""), train_sample_schema
    )
    assert_schema_invalid_but_pydantic_rejects(TrainSampleRecord, make_train_samples(file_id=""), train_sample_schema)


def test_train_sample_record_rejects_additional_properties(train_sample_schema):
    assert_both_reject_additional_properties(TrainSampleRecord, make_train_samples(), train_sample_schema)


# ---------------------------------------------------------------------------
# PredictRangeRecord
# ---------------------------------------------------------------------------

def make_predict_range(**overrides) -> dict[str, Any]:
    data: dict[str, Any] = {
        "model_id": 1,
        "analysable_id": 3,
        "time_splitting": "weekly",
        "range_index": 4,
        "time_created": 1700000000,
    }
    data.update(overrides)
    return data


def test_predict_range_record_valid(predict_range_schema):
    assert_pydantic_then_schema_ok(PredictRangeRecord, make_predict_range(), predict_range_schema)


def test_predict_range_record_constraints(predict_range_schema):
    assert_schema_invalid_but_pydantic_rejects(
        PredictRangeRecord, make_predict_range(range_index=-1), predict_range_schema
    )
    assert_schema_invalid_but_pydantic_rejects(PredictRangeRecord, make_predict_range(model_id=0), predict_range_schema)


# ---------------------------------------------------------------------------
# UsedFileRecord
# ---------------------------------------------------------------------------

def make_used_file(**overrides) -> dict[str, Any]:
    data: dict[str, Any] = {
        "model_id": 1,
        "file_id": "model_1/training/quarters/merged/001700000000-abcdef012345.npz",
        "action": "trained",
        "time": 1700000000,
    }
    data.update(overrides)
    return data


def test_used_file_record_valid(used_file_schema):
    assert_pydantic_then_schema_ok(UsedFileRecord, make_used_file(), used_file_schema)
    assert_pydantic_then_schema_ok(UsedFileRecord, make_used_file(action="predicted"), used_file_schema)


def test_used_file_record_action_enum(used_file_schema):
    assert_schema_invalid_but_pydantic_rejects(UsedFileRecord, make_used_file(action="deleted"), used_file_schema)


# ---------------------------------------------------------------------------
# PredictionRecord
# ---------------------------------------------------------------------------

def make_prediction(**overrides) -> dict[str, Any]:
    data: dict[str, Any] = {
        "model_id": 1,
        "context_id": "course:3",
        "sample_id": 101,
        "range_index": 2,
        "prediction": 1.0,
        "prediction_score": 0.85,
        "time_created": 1700000000,
    }
    data.update(overrides)
    return data


def test_prediction_record_valid(prediction_schema):
    instance = assert_pydantic_then_schema_ok(PredictionRecord, make_prediction(), prediction_schema)
    assert "unique_sample_id" not in instance


def test_prediction_record_score_bounds(prediction_schema):
    assert_pydantic_then_schema_ok(PredictionRecord, make_prediction(prediction_score=1.0), prediction_schema)
    assert_schema_invalid_but_pydantic_rejects(PredictionRecord, make_prediction(prediction_score=1.5), prediction_schema)
    assert_schema_invalid_but_pydantic_rejects(PredictionRecord, make_prediction(prediction_score=-0.1), prediction_schema)


def test_prediction_record_context_min_length(prediction_schema):
    assert_schema_invalid_but_pydantic_rejects(PredictionRecord, make_prediction(context_id=""), prediction_schema)


def test_prediction_record_rejects_additional_properties(prediction_schema):
    assert_both_reject_additional_properties(PredictionRecord, make_prediction(), prediction_schema)
