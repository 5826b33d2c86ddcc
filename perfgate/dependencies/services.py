import logging
from typing import Iterable, Optional

from fastapi import Request

from perfgate.core.config import settings
from perfgate.core.defaults import DEFAULT_SCENARIOS, DEFAULT_TESTS, load_definitions_file
from perfgate.engine.alert_bridge import AlertBridge
from perfgate.engine.executor import HttpExecutorConfig, HttpxRequestExecutor, RequestExecutor
from perfgate.engine.scenario_catalog import ScenarioCatalog
from perfgate.repositories.test_result_repository import InMemoryTestResultRepository
from perfgate.scheduler.trigger_scheduler import IntervalTriggerScheduler, TriggerScheduler
from perfgate.schemas.performance_test import Scenario
from perfgate.services.test_registry import TestRegistry

logger = logging.getLogger(__name__)


def build_test_registry(
    executor: Optional[RequestExecutor] = None,
    trigger_scheduler: Optional[TriggerScheduler] = None,
    alert_bridge: Optional[AlertBridge] = None,
    scenarios: Optional[Iterable[Scenario]] = None,
) -> TestRegistry:
    """settings 기반으로 TestRegistry 생성 및 기본/파일 정의 등록"""
    engine_config = settings.get_engine_config()

    registry = TestRegistry(
        catalog=ScenarioCatalog(scenarios if scenarios is not None else DEFAULT_SCENARIOS),
        executor=executor or HttpxRequestExecutor(HttpExecutorConfig.from_settings()),
        alert_bridge=alert_bridge,
        trigger_scheduler=trigger_scheduler or IntervalTriggerScheduler(),
        repository=InMemoryTestResultRepository(max_per_test=settings.PERF_HISTORY_LIMIT),
        think_time_ms=engine_config["think_time_ms"],
        path_param_default=engine_config["path_param_default"],
        max_latency_samples=engine_config["max_latency_samples"],
    )

    if settings.PERF_LOAD_DEFAULT_TESTS:
        for definition in DEFAULT_TESTS:
            registry.register_definition(definition)

    if settings.PERF_DEFINITIONS_FILE:
        for definition in load_definitions_file(settings.PERF_DEFINITIONS_FILE):
            registry.register_definition(definition)

    logger.info(f"TestRegistry built with {len(registry.get_definitions())} definitions "
                f"and {len(registry.catalog)} scenarios")
    return registry


def get_test_registry(request: Request) -> TestRegistry:
    """lifespan 에서 생성한 레지스트리 반환"""
    return request.app.state.registry
