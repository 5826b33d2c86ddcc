from perfgate.schemas.performance_test.test_definition import (
    TestType,
    Thresholds,
    TestConfig,
    TestSchedule,
    TestDefinition,
    TestDefinitionCreateRequest,
)
from perfgate.schemas.performance_test.scenario import Scenario, ScenarioRequest
from perfgate.schemas.performance_test.test_result import (
    TestStatus,
    Severity,
    ResultMetrics,
    EndpointSummary,
    ErrorSummary,
    ThresholdViolation,
    TestResult,
)
from perfgate.schemas.performance_test.statistics import (
    StatisticsTrends,
    PerformanceStatistics,
    PerformanceHealth,
    RegressionReport,
)

__all__ = [
    "TestType",
    "Thresholds",
    "TestConfig",
    "TestSchedule",
    "TestDefinition",
    "TestDefinitionCreateRequest",
    "Scenario",
    "ScenarioRequest",
    "TestStatus",
    "Severity",
    "ResultMetrics",
    "EndpointSummary",
    "ErrorSummary",
    "ThresholdViolation",
    "TestResult",
    "StatisticsTrends",
    "PerformanceStatistics",
    "PerformanceHealth",
    "RegressionReport",
]
