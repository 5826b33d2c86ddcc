"""
결과 집계 모듈

누적된 메트릭 스냅샷을 완료된 TestResult로 변환합니다.
숨은 상태 없이 입력만으로 결과가 결정되는 순수 함수로 유지합니다.
"""

from datetime import datetime
from typing import Dict, List, Optional

from perfgate.engine.metrics_accumulator import MetricsSnapshot
from perfgate.engine.threshold_evaluator import classify_status, evaluate_thresholds
from perfgate.schemas.performance_test import (
    EndpointSummary,
    ErrorSummary,
    ResultMetrics,
    TestDefinition,
    TestResult,
    TestStatus,
)
from perfgate.utils.metrics_calculator import MetricsCalculator


TEST_EXECUTION_ERROR = "test_execution_error"

ERROR_MESSAGES: Dict[str, str] = {
    "timeout": "Request timeout",
    "server_error": "Server error (5xx)",
    "network_error": "Network connection error",
    "client_error": "Client error (4xx)",
    "unexpected_status": "Unexpected response status",
    "worker_crash": "Worker terminated unexpectedly",
}


def get_error_message(error_kind: str) -> str:
    return ERROR_MESSAGES.get(error_kind, "Unknown error")


def build_run_id(test_id: str, start_time: datetime) -> str:
    return f"{test_id}-{int(start_time.timestamp() * 1000)}"


def _duration_ms(start_time: datetime, end_time: datetime) -> float:
    return max((end_time - start_time).total_seconds() * 1000, 0.0)


def aggregate(
    test_id: str,
    definition: TestDefinition,
    start_time: datetime,
    end_time: datetime,
    snapshot: MetricsSnapshot,
    run_id: Optional[str] = None,
) -> TestResult:
    """
    스냅샷을 TestResult로 집계

    Args:
        test_id: 테스트 정의 ID
        definition: 임계값 판정에 사용할 테스트 정의
        start_time: 실행 시작 시각
        end_time: 실행 종료 시각
        snapshot: MetricsAccumulator.snapshot() 결과
        run_id: 실행 ID (None이면 test_id와 시작 시각으로 생성)

    Returns:
        TestResult: 상태 판정까지 끝난 불변 결과
    """
    duration_ms = _duration_ms(start_time, end_time)
    total = snapshot.total_requests

    sorted_latencies = sorted(snapshot.latencies_ms)
    avg_ms = snapshot.latency_sum_ms / snapshot.latency_count if snapshot.latency_count else 0.0

    metrics = ResultMetrics(
        total_requests=total,
        successful_requests=snapshot.success_count,
        failed_requests=snapshot.failure_count,
        avg_response_time_ms=avg_ms,
        min_response_time_ms=snapshot.latency_min_ms,
        max_response_time_ms=snapshot.latency_max_ms,
        p95_response_time_ms=MetricsCalculator.percentile(sorted_latencies, 0.95),
        p99_response_time_ms=MetricsCalculator.percentile(sorted_latencies, 0.99),
        throughput_per_sec=MetricsCalculator.safe_rate(total, duration_ms) if total > 0 else 0.0,
        error_rate_percent=MetricsCalculator.safe_ratio_percent(snapshot.failure_count, total),
    )

    endpoints: List[EndpointSummary] = []
    for endpoint_key, data in snapshot.per_endpoint.items():
        method, _, url = endpoint_key.partition(" ")
        request_count = data.successes + data.failures
        endpoints.append(EndpointSummary(
            url=url,
            method=method,
            avg_response_time_ms=data.latency_sum_ms / data.latency_count if data.latency_count else 0.0,
            success_rate_percent=MetricsCalculator.safe_ratio_percent(data.successes, request_count),
            request_count=request_count,
        ))

    errors = [
        ErrorSummary(
            kind=kind,
            message=get_error_message(kind),
            count=count,
            percentage=MetricsCalculator.safe_ratio_percent(count, total),
        )
        for kind, count in snapshot.error_tally.items()
    ]

    violations = evaluate_thresholds(definition.config.thresholds, metrics)

    return TestResult(
        test_id=test_id,
        run_id=run_id or build_run_id(test_id, start_time),
        start_time=start_time,
        end_time=end_time,
        duration_ms=duration_ms,
        status=classify_status(violations),
        metrics=metrics,
        endpoints=endpoints,
        errors=errors,
        threshold_violations=violations,
    )


def build_failed_result(
    test_id: str,
    start_time: datetime,
    end_time: datetime,
    message: str,
    run_id: Optional[str] = None,
) -> TestResult:
    """실행 자체를 시작하지 못한 경우의 결과 (메트릭 0, 합성 에러 1건)"""
    return TestResult(
        test_id=test_id,
        run_id=run_id or build_run_id(test_id, start_time),
        start_time=start_time,
        end_time=end_time,
        duration_ms=_duration_ms(start_time, end_time),
        status=TestStatus.FAILED,
        metrics=ResultMetrics(),
        endpoints=[],
        errors=[ErrorSummary(kind=TEST_EXECUTION_ERROR, message=message, count=1, percentage=100.0)],
        threshold_violations=[],
    )


class ResultAggregator:
    """aggregate()를 주입 가능한 객체 형태로 감싼 래퍼"""

    def aggregate(
        self,
        test_id: str,
        definition: TestDefinition,
        start_time: datetime,
        end_time: datetime,
        snapshot: MetricsSnapshot,
        run_id: Optional[str] = None,
    ) -> TestResult:
        return aggregate(test_id, definition, start_time, end_time, snapshot, run_id=run_id)

    def failed(
        self,
        test_id: str,
        start_time: datetime,
        end_time: datetime,
        message: str,
        run_id: Optional[str] = None,
    ) -> TestResult:
        return build_failed_result(test_id, start_time, end_time, message, run_id=run_id)
