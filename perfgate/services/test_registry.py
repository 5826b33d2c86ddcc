"""
성능 테스트 레지스트리

테스트 정의, 반복 실행 스케줄, 실행 중인 run, 결과 히스토리를 관리합니다.
프로세스 진입점에서 한 번 생성해 API 계층에 주입하며, 종료 시 shutdown()으로 모든 트리거를 정리합니다.

실행 흐름:
    run_now(test_id) → 정의 조회 → WorkerScheduler 실행(내부 병렬) → ResultAggregator 집계
    → 히스토리 저장 → failed/warning 이면 AlertBridge 통지
"""

import logging
import random
import threading
import time
import uuid
from datetime import datetime
from typing import Callable, Dict, List, Optional, Tuple

import pytz

from perfgate.common.exception import ConfigurationError, RunInProgressError, TestNotFoundError
from perfgate.engine.alert_bridge import AlertBridge, LoggingAlertBridge, build_alert_event
from perfgate.engine.executor import RequestExecutor
from perfgate.engine.metrics_accumulator import MetricsAccumulator
from perfgate.engine.result_aggregator import ResultAggregator
from perfgate.engine.scenario_catalog import ScenarioCatalog
from perfgate.engine.worker_scheduler import WorkerScheduler
from perfgate.repositories.test_result_repository import InMemoryTestResultRepository, TestResultRepository
from perfgate.scheduler.trigger_scheduler import ScheduledTestHandle, TriggerScheduler
from perfgate.schemas.performance_test import TestDefinition, TestDefinitionCreateRequest, TestResult

logger = logging.getLogger(__name__)


def generate_run_id(test_id: str) -> str:
    timestamp = datetime.now(pytz.utc).strftime("%Y%m%d%H%M%S")
    unique_id = str(uuid.uuid4())[:6]
    return f"{test_id}-{timestamp}{unique_id}"


def has_trigger(definition: TestDefinition) -> bool:
    """반복 실행 대상 여부 - 스케줄이 켜져 있고 cron 표현식이 있어야 함"""
    return definition.is_scheduled and bool(definition.schedule.cron_expression)


class TestRegistry:
    """
    테스트 정의/스케줄/히스토리 관리자

    Args:
        catalog: 모든 실행이 공유하는 시나리오 카탈로그
        executor: 요청 실행기 (shutdown 시 close)
        alert_bridge: 알림 전달 채널 (기본: 로그)
        trigger_scheduler: 반복 실행 트리거 제공자 (없으면 schedule() 불가)
        repository: 결과 히스토리 저장소
        think_time_ms: 요청 간 무작위 대기 범위
        path_param_default: 경로 플레이스홀더 치환값
        max_latency_samples: 실행별 지연시간 샘플 상한 (None = 전체)
        rng: 워커 대기시간 난수 생성기
        clock: 워커용 단조 시계
    """
    __test__ = False

    def __init__(
        self,
        catalog: ScenarioCatalog,
        executor: RequestExecutor,
        alert_bridge: Optional[AlertBridge] = None,
        trigger_scheduler: Optional[TriggerScheduler] = None,
        repository: Optional[TestResultRepository] = None,
        aggregator: Optional[ResultAggregator] = None,
        think_time_ms: Tuple[float, float] = (100.0, 500.0),
        path_param_default: str = "12345",
        max_latency_samples: Optional[int] = None,
        rng: Optional[random.Random] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.catalog = catalog
        self.executor = executor
        self.alert_bridge = alert_bridge or LoggingAlertBridge()
        self.trigger_scheduler = trigger_scheduler
        self.repository = repository or InMemoryTestResultRepository()
        self.aggregator = aggregator or ResultAggregator()
        self.think_time_ms = think_time_ms
        self.path_param_default = path_param_default
        self.max_latency_samples = max_latency_samples
        self._rng = rng
        self._clock = clock

        self._definitions_lock = threading.Lock()
        self._definitions: Dict[str, TestDefinition] = {}

        self._schedule_lock = threading.Lock()
        self._scheduled: Dict[str, ScheduledTestHandle] = {}

        # 같은 test_id 의 실행 중복 방지
        self._active_lock = threading.Lock()
        self._active_runs: Dict[str, WorkerScheduler] = {}

        self._is_shutdown = False

    # ------------------------------------------------------------------ 정의 관리

    def register_definition(self, definition: TestDefinition) -> TestDefinition:
        """정의 등록 - 같은 ID가 있으면 덮어쓰며 기존 히스토리는 그대로 유지"""
        with self._definitions_lock:
            replaced = definition.id in self._definitions
            self._definitions[definition.id] = definition

        logger.info(f"{'Replaced' if replaced else 'Registered'} test definition: {definition.id} ({definition.name})")
        return definition

    def create_definition(self, request: TestDefinitionCreateRequest) -> TestDefinition:
        """커스텀 테스트 생성 (ID: custom-<epoch ms>), 스케줄이 켜져 있으면 바로 등록"""
        test_id = f"custom-{int(time.time() * 1000)}"
        with self._definitions_lock:
            while test_id in self._definitions:
                test_id = f"custom-{int(time.time() * 1000)}-{uuid.uuid4().hex[:4]}"

        definition = TestDefinition(id=test_id, **request.model_dump())
        if self.trigger_scheduler is not None and has_trigger(definition):
            # 트리거 등록에 성공해야 정의도 등록됨
            self.schedule(definition)
        else:
            self.register_definition(definition)
        logger.info(f"Created custom test: {definition.name}")
        return definition

    def get_definitions(self) -> List[TestDefinition]:
        with self._definitions_lock:
            return list(self._definitions.values())

    list_definitions = get_definitions

    def get_definition(self, test_id: str) -> TestDefinition:
        with self._definitions_lock:
            definition = self._definitions.get(test_id)
        if definition is None:
            raise TestNotFoundError(test_id)
        return definition

    # ------------------------------------------------------------------ 실행

    def run_now(self, test_id: str) -> TestResult:
        """
        테스트 즉시 실행 (호출자 입장에서는 동기, 내부는 병렬)

        Raises:
            TestNotFoundError: 등록되지 않은 test_id
            ConfigurationError: 워커 시작 전 검출된 설정 오류
            RunInProgressError: 같은 test_id 가 이미 실행 중

        Returns:
            TestResult: 실행 결과 (실행 도중 예외가 나도 failed 결과로 반환)
        """
        definition = self.get_definition(test_id)

        accumulator = MetricsAccumulator(max_latency_samples=self.max_latency_samples)
        worker_scheduler = WorkerScheduler(
            definition=definition,
            catalog=self.catalog,
            executor=self.executor,
            accumulator=accumulator,
            think_time_ms=self.think_time_ms,
            path_param_default=self.path_param_default,
            rng=self._rng,
            clock=self._clock,
        )
        worker_scheduler.validate()

        with self._active_lock:
            if test_id in self._active_runs:
                logger.warning(f"Rejected run for {test_id}: a run is already in progress")
                raise RunInProgressError(test_id)
            self._active_runs[test_id] = worker_scheduler

        try:
            return self._execute_run(definition, worker_scheduler, accumulator)
        finally:
            with self._active_lock:
                self._active_runs.pop(test_id, None)

    def _execute_run(
        self,
        definition: TestDefinition,
        worker_scheduler: WorkerScheduler,
        accumulator: MetricsAccumulator,
    ) -> TestResult:
        run_id = generate_run_id(definition.id)
        start_time = datetime.now(pytz.utc)
        logger.info(f"Starting performance test: {definition.name} (run_id={run_id})")

        try:
            worker_scheduler.run()
            end_time = datetime.now(pytz.utc)
            result = self.aggregator.aggregate(
                definition.id, definition, start_time, end_time, accumulator.snapshot(), run_id=run_id,
            )
        except Exception as e:
            logger.error(f"Performance test failed: {definition.name}", exc_info=True)
            end_time = datetime.now(pytz.utc)
            result = self.aggregator.failed(definition.id, start_time, end_time, str(e) or type(e).__name__,
                                            run_id=run_id)

        # 모든 워커 join 이후에만 히스토리를 변경
        self.repository.append(result)
        self._dispatch_alert(definition, result)

        logger.info(f"Performance test completed: {definition.name} - Status: {result.status.value} "
                    f"(requests={result.metrics.total_requests}, "
                    f"avg={result.metrics.avg_response_time_ms:.1f}ms, "
                    f"throughput={result.metrics.throughput_per_sec:.2f}/s)")
        return result

    def _dispatch_alert(self, definition: TestDefinition, result: TestResult) -> None:
        event = build_alert_event(definition, result)
        if event is None:
            return
        try:
            self.alert_bridge.notify(event)
        except Exception as e:
            logger.error(f"Failed to deliver alert for {result.run_id}: {e}")

    def stop_run(self, test_id: str) -> bool:
        """
        실행 중인 테스트의 마감 시각을 지금으로 당김

        Returns:
            bool: 실행 중이던 run 이 있었으면 True
        """
        self.get_definition(test_id)
        with self._active_lock:
            worker_scheduler = self._active_runs.get(test_id)
        if worker_scheduler is None:
            return False
        worker_scheduler.stop()
        return True

    def is_running(self, test_id: str) -> bool:
        with self._active_lock:
            return test_id in self._active_runs

    @property
    def active_run_ids(self) -> List[str]:
        with self._active_lock:
            return list(self._active_runs.keys())

    # ------------------------------------------------------------------ 스케줄

    def schedule(self, definition: TestDefinition) -> ScheduledTestHandle:
        """
        반복 실행 등록 - 언제 실행할지는 trigger_scheduler 가 결정하고, 트리거마다 run_now 호출

        Raises:
            ConfigurationError: 스케줄이 비활성이거나 cron 이 비어 있거나 trigger_scheduler 가 없는 경우,
                또는 트리거 생성 실패 (예: 알 수 없는 timezone)
        """
        if not has_trigger(definition):
            raise ConfigurationError(f"Test {definition.id} has no enabled schedule with a cron expression")
        if self.trigger_scheduler is None:
            raise ConfigurationError("No trigger scheduler configured")

        # 새 트리거 생성이 실패하면 기존 정의와 트리거는 그대로 유지
        trigger = self.trigger_scheduler.schedule(
            definition.schedule.cron_expression,
            definition.schedule.timezone,
            lambda: self._run_scheduled(definition.id),
        )
        self.register_definition(definition)

        handle = ScheduledTestHandle(test_id=definition.id, trigger=trigger, scheduled_at=datetime.now(pytz.utc))
        with self._schedule_lock:
            previous = self._scheduled.get(definition.id)
            self._scheduled[definition.id] = handle
        if previous is not None:
            self.trigger_scheduler.cancel(previous.trigger)
            logger.info(f"Replaced trigger for scheduled test: {definition.id}")

        logger.info(f"Scheduled test: {definition.name} ({definition.schedule.cron_expression})")
        return handle

    def _run_scheduled(self, test_id: str) -> None:
        logger.info(f"Running scheduled test: {test_id}")
        try:
            self.run_now(test_id)
        except RunInProgressError:
            logger.warning(f"Skipped scheduled run for {test_id}: previous run still in progress")

    def schedule_enabled_definitions(self) -> List[str]:
        """스케줄이 켜져 있고 cron 표현식이 있는 정의를 모두 등록"""
        scheduled = []
        for definition in self.get_definitions():
            if has_trigger(definition):
                self.schedule(definition)
                scheduled.append(definition.id)
        return scheduled

    def unschedule(self, test_id: str) -> bool:
        """반복 실행 해제 - 모르는 ID면 아무 것도 하지 않음"""
        with self._schedule_lock:
            handle = self._scheduled.pop(test_id, None)
        if handle is None:
            return False

        self.trigger_scheduler.cancel(handle.trigger)
        logger.info(f"Stopped scheduled test: {test_id}")
        return True

    stop_schedule = unschedule

    def stop_all_schedules(self) -> List[str]:
        with self._schedule_lock:
            test_ids = list(self._scheduled.keys())
        return [test_id for test_id in test_ids if self.unschedule(test_id)]

    @property
    def scheduled_test_ids(self) -> List[str]:
        with self._schedule_lock:
            return list(self._scheduled.keys())

    def get_scheduled_handle(self, test_id: str) -> Optional[ScheduledTestHandle]:
        with self._schedule_lock:
            return self._scheduled.get(test_id)

    # ------------------------------------------------------------------ 조회

    def get_history(self, test_id: str, limit: int = 10) -> List[TestResult]:
        """최근 limit건 (최신순), 모르는 ID면 빈 목록"""
        return self.repository.get_history(test_id, limit)

    history = get_history

    def get_all_results(self) -> List[TestResult]:
        return self.repository.get_all()

    def get_result(self, run_id: str) -> Optional[TestResult]:
        return self.repository.get_by_run_id(run_id)

    # ------------------------------------------------------------------ 종료

    def shutdown(self) -> None:
        """모든 트리거 해제, 실행 중인 run 중지, 실행기 정리"""
        if self._is_shutdown:
            return
        self._is_shutdown = True

        stopped = self.stop_all_schedules()
        with self._active_lock:
            active = list(self._active_runs.values())
        for worker_scheduler in active:
            worker_scheduler.stop()
        if self.trigger_scheduler is not None:
            self.trigger_scheduler.shutdown()
        self.executor.close()

        logger.info(f"TestRegistry shut down (stopped_schedules={len(stopped)})")
