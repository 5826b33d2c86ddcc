from typing import List

from perfgate.schemas.performance_test import (
    ResultMetrics,
    Severity,
    TestStatus,
    ThresholdViolation,
    Thresholds,
)

AVG_RESPONSE_TIME = "Average Response Time"
ERROR_RATE = "Error Rate"
THROUGHPUT = "Throughput"

# 상한 지표는 기준의 2배 초과, 하한 지표는 기준의 50% 미만이면 critical
CRITICAL_UPPER_FACTOR = 2.0
CRITICAL_LOWER_FACTOR = 0.5


def evaluate_thresholds(thresholds: Thresholds, metrics: ResultMetrics) -> List[ThresholdViolation]:
    """
    세 가지 독립 기준으로 위반 목록 생성

    Args:
        thresholds: 테스트 정의의 임계값
        metrics: 집계된 실행 메트릭

    Returns:
        List[ThresholdViolation]: 평균 응답시간, 에러율, 처리량 순서의 위반 목록
    """
    violations: List[ThresholdViolation] = []

    if metrics.avg_response_time_ms > thresholds.max_avg_response_ms:
        violations.append(ThresholdViolation(
            metric=AVG_RESPONSE_TIME,
            expected=thresholds.max_avg_response_ms,
            actual=metrics.avg_response_time_ms,
            severity=_upper_bound_severity(metrics.avg_response_time_ms, thresholds.max_avg_response_ms),
        ))

    if metrics.error_rate_percent > thresholds.max_error_rate_percent:
        violations.append(ThresholdViolation(
            metric=ERROR_RATE,
            expected=thresholds.max_error_rate_percent,
            actual=metrics.error_rate_percent,
            severity=_upper_bound_severity(metrics.error_rate_percent, thresholds.max_error_rate_percent),
        ))

    if metrics.throughput_per_sec < thresholds.min_throughput_per_sec:
        severity = (
            Severity.CRITICAL
            if metrics.throughput_per_sec < thresholds.min_throughput_per_sec * CRITICAL_LOWER_FACTOR
            else Severity.WARNING
        )
        violations.append(ThresholdViolation(
            metric=THROUGHPUT,
            expected=thresholds.min_throughput_per_sec,
            actual=metrics.throughput_per_sec,
            severity=severity,
        ))

    return violations


def classify_status(violations: List[ThresholdViolation]) -> TestStatus:
    """critical 위반이 하나라도 있으면 failed, 위반이 있으면 warning, 없으면 passed"""
    if any(v.severity == Severity.CRITICAL for v in violations):
        return TestStatus.FAILED
    if violations:
        return TestStatus.WARNING
    return TestStatus.PASSED


def _upper_bound_severity(actual: float, expected: float) -> Severity:
    if actual > expected * CRITICAL_UPPER_FACTOR:
        return Severity.CRITICAL
    return Severity.WARNING
