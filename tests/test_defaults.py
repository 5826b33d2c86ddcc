import json

import pytest
from pydantic import ValidationError

from perfgate.core.defaults import DEFAULT_SCENARIOS, DEFAULT_TESTS, load_definitions_file
from perfgate.schemas.performance_test import TestType


def test_builtin_catalog_and_tests() -> None:
    assert sum(s.weight for s in DEFAULT_SCENARIOS) == 100
    assert [t.id for t in DEFAULT_TESTS] == ["daily-load-test", "stress-test", "regression-test"]
    assert [t.is_scheduled for t in DEFAULT_TESTS] == [True, True, False]


def test_load_definitions_file(tmp_path) -> None:
    path = tmp_path / "definitions.json"
    path.write_text(json.dumps([{
        "id": "soak",
        "name": "Soak",
        "test_type": "endurance",
        "config": {
            "duration_seconds": 3600,
            "concurrency": 4,
            "targets": ["http://soak.local"],
            "thresholds": {"max_avg_response_ms": 700, "max_error_rate_percent": 1, "min_throughput_per_sec": 2},
        },
    }]), encoding="utf-8")

    definitions = load_definitions_file(str(path))

    assert [d.id for d in definitions] == ["soak"]
    assert definitions[0].test_type == TestType.ENDURANCE
    assert definitions[0].config.ramp_up_seconds == 0


def test_load_definitions_file_rejects_malformed_json(tmp_path) -> None:
    path = tmp_path / "definitions.json"
    path.write_text("[{\"id\": \"broken\",", encoding="utf-8")

    with pytest.raises(ValidationError):
        load_definitions_file(str(path))
