import logging
from pathlib import Path
from typing import List

from pydantic import TypeAdapter

from perfgate.schemas.performance_test import Scenario, TestDefinition

logger = logging.getLogger(__name__)

DEFAULT_TARGET = "http://localhost:3000"

# 기본 시나리오 (가중치 합 100)
DEFAULT_SCENARIOS: List[Scenario] = [
    Scenario.model_validate({
        "name": "Basic SEO Analysis",
        "weight": 40,
        "requests": [
            {"method": "POST", "path": "/api/analysis", "body": {"url": "https://example.com"}, "expected_status": 200},
            {"method": "GET", "path": "/api/analysis/:id", "expected_status": 200},
        ],
    }),
    Scenario.model_validate({
        "name": "Rival Audit Flow",
        "weight": 30,
        "requests": [
            {"method": "POST", "path": "/api/audit", "body": {"urls": ["https://example.com"]}, "expected_status": 200},
            {"method": "GET", "path": "/api/audit/:id", "expected_status": 200},
            {"method": "GET", "path": "/api/audit/:id/results", "expected_status": 200},
        ],
    }),
    Scenario.model_validate({
        "name": "User Authentication",
        "weight": 20,
        "requests": [
            {"method": "POST", "path": "/api/auth/login", "body": {"username": "test", "password": "test"},
             "expected_status": 200},
            {"method": "GET", "path": "/api/auth/profile", "expected_status": 200},
            {"method": "POST", "path": "/api/auth/logout", "expected_status": 200},
        ],
    }),
    Scenario.model_validate({
        "name": "Monitoring & Health",
        "weight": 10,
        "requests": [
            {"method": "GET", "path": "/api/health", "expected_status": 200},
            {"method": "GET", "path": "/api/metrics/current", "expected_status": 200},
            {"method": "GET", "path": "/api/business-intelligence/insights", "expected_status": 200},
        ],
    }),
]

# 기본 테스트 정의
DEFAULT_TESTS: List[TestDefinition] = [
    TestDefinition.model_validate({
        "id": "daily-load-test",
        "name": "Daily Load Test",
        "description": "Daily automated load test to ensure system can handle normal traffic",
        "test_type": "load",
        "config": {
            "duration_seconds": 300,  # 5분
            "concurrency": 10,
            "ramp_up_seconds": 60,
            "targets": [DEFAULT_TARGET],
            "thresholds": {
                "max_avg_response_ms": 2000,
                "max_error_rate_percent": 5,
                "min_throughput_per_sec": 50,
            },
        },
        "schedule": {"enabled": True, "cron_expression": "0 2 * * *", "timezone": "UTC"},  # 매일 02시
    }),
    TestDefinition.model_validate({
        "id": "stress-test",
        "name": "Weekly Stress Test",
        "description": "Weekly stress test to identify breaking points",
        "test_type": "stress",
        "config": {
            "duration_seconds": 600,  # 10분
            "concurrency": 50,
            "ramp_up_seconds": 120,
            "targets": [DEFAULT_TARGET],
            "thresholds": {
                "max_avg_response_ms": 5000,
                "max_error_rate_percent": 10,
                "min_throughput_per_sec": 20,
            },
        },
        "schedule": {"enabled": True, "cron_expression": "0 3 * * 0", "timezone": "UTC"},  # 매주 일요일 03시
    }),
    TestDefinition.model_validate({
        "id": "regression-test",
        "name": "Pre-deployment Regression Test",
        "description": "Quick performance regression test before deployments",
        "test_type": "regression",
        "config": {
            "duration_seconds": 120,  # 2분
            "concurrency": 5,
            "ramp_up_seconds": 30,
            "targets": [DEFAULT_TARGET],
            "thresholds": {
                "max_avg_response_ms": 1000,
                "max_error_rate_percent": 2,
                "min_throughput_per_sec": 10,
            },
        },
        "schedule": {"enabled": False, "cron_expression": "", "timezone": "UTC"},
    }),
]

REGRESSION_TEST_ID = "regression-test"

_definitions_adapter = TypeAdapter(List[TestDefinition])


def load_definitions_file(path: str) -> List[TestDefinition]:
    """
    JSON 파일에서 테스트 정의 목록 로드

    Args:
        path: TestDefinition 객체 배열을 담은 JSON 파일 경로

    Returns:
        List[TestDefinition]: 검증된 테스트 정의 목록
    """
    content = Path(path).read_text(encoding="utf-8")
    definitions = _definitions_adapter.validate_json(content)
    logger.info(f"Loaded {len(definitions)} test definitions from {path}")
    return definitions
