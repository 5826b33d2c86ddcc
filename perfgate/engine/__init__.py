from perfgate.engine.executor import (
    RequestExecutor,
    HttpxRequestExecutor,
    HttpExecutorConfig,
    PreparedRequest,
    ExecutionResult,
    TransportError,
)
from perfgate.engine.scenario_catalog import ScenarioCatalog
from perfgate.engine.metrics_accumulator import MetricsAccumulator, MetricsSnapshot, EndpointSnapshot
from perfgate.engine.worker_scheduler import WorkerScheduler, WorkerReport
from perfgate.engine.result_aggregator import ResultAggregator, aggregate, build_failed_result
from perfgate.engine.threshold_evaluator import evaluate_thresholds, classify_status
from perfgate.engine.alert_bridge import AlertBridge, AlertEvent, LoggingAlertBridge

__all__ = [
    "RequestExecutor",
    "HttpxRequestExecutor",
    "HttpExecutorConfig",
    "PreparedRequest",
    "ExecutionResult",
    "TransportError",
    "ScenarioCatalog",
    "MetricsAccumulator",
    "MetricsSnapshot",
    "EndpointSnapshot",
    "WorkerScheduler",
    "WorkerReport",
    "ResultAggregator",
    "aggregate",
    "build_failed_result",
    "evaluate_thresholds",
    "classify_status",
    "AlertBridge",
    "AlertEvent",
    "LoggingAlertBridge",
]
