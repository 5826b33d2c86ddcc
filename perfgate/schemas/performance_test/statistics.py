from datetime import datetime
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel

from perfgate.schemas.performance_test.test_result import TestStatus, ThresholdViolation

Trend = Literal["stable", "increasing", "decreasing"]


class StatisticsTrends(BaseModel):
    response_time: Trend = "stable"
    throughput: Trend = "stable"
    error_rate: Trend = "stable"


class PerformanceStatistics(BaseModel):
    """기간별 성능 테스트 통계"""
    period_days: int
    total_tests: int = 0
    passed_tests: int = 0
    failed_tests: int = 0
    warning_tests: int = 0
    avg_response_time_ms: float = 0.0
    avg_throughput_per_sec: float = 0.0
    avg_error_rate_percent: float = 0.0
    tests_by_type: Dict[str, int] = {}
    trends: StatisticsTrends = StatisticsTrends()


class PerformanceHealth(BaseModel):
    status: str = "healthy"
    available_tests: int
    last_test_run: Optional[datetime] = None
    last_test_status: str = "unknown"
    scheduled_tests: int
    active_schedules: int
    active_runs: int
    timestamp: datetime


class RegressionReport(BaseModel):
    """배포 전 회귀 테스트 결과"""
    passed: bool
    status: TestStatus
    duration_ms: float
    response_time_ms: float
    error_rate_percent: float
    throughput_per_sec: float
    violations: List[ThresholdViolation] = []
    recommendation: str
