"""
Semantic test: batch entrypoint.

Invariant:
A rule based model can be created, enabled and used for predictions from
the command line; predicting twice stores nothing new.
"""

from __future__ import annotations

import json

import pytest

from learning_analytics.core.domain.status import AnalysisStatus
from learning_analytics.runtime.entrypoint import main

DUMP = {
    "courses": [
        {"id": 1, "shortname": "nt1", "fullname": "No teacher", "start_date": 1},
        {"id": 2, "shortname": "ok2", "fullname": "With teacher", "start_date": 1},
    ],
    "users": [
        {"id": 10, "username": "student10"},
        {"id": 11, "username": "student11"},
        {"id": 20, "username": "teacher20"},
    ],
    "enrolments": [
        {"id": 100, "user_id": 10, "course_id": 1, "role": "student"},
        {"id": 101, "user_id": 11, "course_id": 2, "role": "student"},
        {"id": 102, "user_id": 20, "course_id": 2, "role": "editingteacher"},
    ],
    "logs": [
        {"user_id": 10, "course_id": 1, "time_created": 1_600_000_000},
        {"user_id": 11, "course_id": 2, "time_created": 1_600_000_000},
        {"user_id": 20, "course_id": 2, "time_created": 1_600_000_100, "crud": "c"},
    ],
}


@pytest.fixture
def config_path(tmp_path, monkeypatch):
    monkeypatch.delenv("PROMETHEUS_PUSHGATEWAY_URL", raising=False)

    dump_path = tmp_path / "dump.json"
    dump_path.write_text(json.dumps(DUMP), encoding="utf-8")

    path = tmp_path / "config.json"
    path.write_text(
        json.dumps(
            {
                "data_dump": str(dump_path),
                "work_dir": str(tmp_path / "work"),
                "events_file": str(tmp_path / "work" / "events.jsonl"),
            }
        ),
        encoding="utf-8",
    )
    return path


def _run(capsys, *argv: str) -> list[dict]:
    main(list(argv))
    return json.loads(capsys.readouterr().out)


def test_static_model_from_the_command_line(config_path, capsys) -> None:
    config = str(config_path)

    created = _run(capsys, "--config", config, "--create", "--target", "no_teaching", "--indicators", "student_activity")
    assert created == [{"model_id": 1, "state": "configured"}]

    enabled = _run(capsys, "--config", config, "--enable", "--model-id", "1", "--time-splitting", "no_splitting")
    assert enabled == [{"model_id": 1, "state": "trained", "time_splitting": "no_splitting"}]

    first = _run(capsys, "--config", config, "--predict")
    assert first[0]["status"] == int(AnalysisStatus.OK)
    assert first[0]["predictions"] == 1
    assert first[0]["new_predictions"] == 1

    second = _run(capsys, "--config", config, "--predict")
    assert second[0]["status"] == int(AnalysisStatus.NO_DATASET)

    events_file = config_path.parent / "work" / "events.jsonl"
    assert "PredictionsSavedEvent" in events_file.read_text(encoding="utf-8")


def test_guess_dates(config_path, capsys) -> None:
    rows = _run(capsys, "--config", str(config_path), "--guess-dates")

    assert [row["course_id"] for row in rows] == [1, 2]
    assert rows[0]["start"] == 1
    assert rows[0]["end"] == 0


def test_an_action_is_required(config_path) -> None:
    with pytest.raises(SystemExit) as exc_info:
        main(["--config", str(config_path)])

    assert exc_info.value.code == 2
