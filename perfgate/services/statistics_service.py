import logging
from datetime import datetime, timedelta
from typing import List, Optional

import pytz

from perfgate.core.defaults import REGRESSION_TEST_ID
from perfgate.schemas.performance_test import (
    PerformanceHealth,
    PerformanceStatistics,
    RegressionReport,
    StatisticsTrends,
    TestResult,
    TestStatus,
    TestType,
)
from perfgate.services.test_registry import TestRegistry
from perfgate.utils.metrics_calculator import MetricsCalculator

logger = logging.getLogger(__name__)

TREND_WINDOW = 5
TREND_STABLE_PERCENT = 5.0


def calculate_trend(results: List[TestResult], metric: str) -> str:
    """
    가장 오래된 5건과 최근 5건의 평균을 비교한 추세

    Args:
        results: 비교할 결과 목록 (순서 무관)
        metric: ResultMetrics 필드명 (예: 'avg_response_time_ms')

    Returns:
        str: 'stable' | 'increasing' | 'decreasing'
    """
    if len(results) < 2:
        return "stable"

    ordered = sorted(results, key=lambda r: r.start_time)
    recent = [getattr(r.metrics, metric) for r in ordered[-TREND_WINDOW:]]
    older = [getattr(r.metrics, metric) for r in ordered[:TREND_WINDOW]]

    recent_avg = MetricsCalculator.mean(recent)
    older_avg = MetricsCalculator.mean(older)
    change_percent = ((recent_avg - older_avg) / older_avg) * 100 if older_avg != 0 else 0.0

    if abs(change_percent) < TREND_STABLE_PERCENT:
        return "stable"
    return "increasing" if change_percent > 0 else "decreasing"


def get_statistics(registry: TestRegistry, days: int = 30, now: Optional[datetime] = None) -> PerformanceStatistics:
    """최근 days일 동안의 결과 통계"""
    now = now or datetime.now(pytz.utc)
    cutoff = now - timedelta(days=days)
    recent = [r for r in registry.get_all_results() if r.start_time >= cutoff]

    tests_by_type = {test_type.value: 0 for test_type in TestType}
    definitions = {d.id: d for d in registry.get_definitions()}
    for result in recent:
        definition = definitions.get(result.test_id)
        if definition is not None:
            tests_by_type[definition.test_type.value] += 1

    return PerformanceStatistics(
        period_days=days,
        total_tests=len(recent),
        passed_tests=sum(1 for r in recent if r.status == TestStatus.PASSED),
        failed_tests=sum(1 for r in recent if r.status == TestStatus.FAILED),
        warning_tests=sum(1 for r in recent if r.status == TestStatus.WARNING),
        avg_response_time_ms=MetricsCalculator.mean([r.metrics.avg_response_time_ms for r in recent]),
        avg_throughput_per_sec=MetricsCalculator.mean([r.metrics.throughput_per_sec for r in recent]),
        avg_error_rate_percent=MetricsCalculator.mean([r.metrics.error_rate_percent for r in recent]),
        tests_by_type=tests_by_type,
        trends=StatisticsTrends(
            response_time=calculate_trend(recent, "avg_response_time_ms"),
            throughput=calculate_trend(recent, "throughput_per_sec"),
            error_rate=calculate_trend(recent, "error_rate_percent"),
        ),
    )


def get_health(registry: TestRegistry) -> PerformanceHealth:
    definitions = registry.get_definitions()
    results = registry.get_all_results()
    last_result = results[0] if results else None

    return PerformanceHealth(
        status="healthy",
        available_tests=len(definitions),
        last_test_run=last_result.start_time if last_result else None,
        last_test_status=last_result.status.value if last_result else "unknown",
        scheduled_tests=sum(1 for d in definitions if d.is_scheduled),
        active_schedules=len(registry.scheduled_test_ids),
        active_runs=len(registry.active_run_ids),
        timestamp=datetime.now(pytz.utc),
    )


def run_regression(registry: TestRegistry, test_id: str = REGRESSION_TEST_ID) -> RegressionReport:
    """배포 전 회귀 성능 테스트 실행 및 판정"""
    result = registry.run_now(test_id)
    passed = result.status == TestStatus.PASSED
    logger.info(f"Regression test {result.run_id} finished: {result.status.value}")

    return RegressionReport(
        passed=passed,
        status=result.status,
        duration_ms=result.duration_ms,
        response_time_ms=result.metrics.avg_response_time_ms,
        error_rate_percent=result.metrics.error_rate_percent,
        throughput_per_sec=result.metrics.throughput_per_sec,
        violations=result.threshold_violations,
        recommendation="Safe to deploy" if passed else "Review performance issues before deployment",
    )
