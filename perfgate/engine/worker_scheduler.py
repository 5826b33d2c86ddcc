"""
워커 스케줄러 모듈

concurrency 수만큼의 독립 가상 사용자(스레드)를 선형 ramp-up으로 순차 기동하고,
각 워커가 실행 마감 시각까지 시나리오 트래픽을 발생시키도록 관리합니다.

- 워커 i 의 시작 지연 = i * (ramp_up_seconds * 1000 / concurrency) ms
- 워커 i 의 실행 시간 = duration_seconds * 1000 - 지연 (마감 시각은 run 시작 + duration 으로 모든 워커가 공유)
- 워커 간 공유 자원은 MetricsAccumulator 와 중지 이벤트뿐
- run() 은 모든 워커가 종료(join)된 뒤에 반환
"""

import logging
import random
import re
import threading
import time
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from perfgate.common.exception import ConfigurationError
from perfgate.engine.executor import PreparedRequest, RequestExecutor, TransportError
from perfgate.engine.metrics_accumulator import MetricsAccumulator
from perfgate.engine.scenario_catalog import ScenarioCatalog
from perfgate.schemas.performance_test import ScenarioRequest, TestDefinition

logger = logging.getLogger(__name__)

PATH_PARAM_PATTERN = re.compile(r":([A-Za-z_][A-Za-z0-9_]*)")
WORKER_CRASH = "worker_crash"


@dataclass
class WorkerReport:
    """워커 1개의 실행 기록 (ms 단위 오프셋은 run 시작 기준)"""
    index: int
    planned_delay_ms: float
    started_at_ms: Optional[float] = None
    stopped_at_ms: Optional[float] = None
    requests_issued: int = 0
    scenarios_started: int = 0
    crashed: bool = False
    error: Optional[str] = None


def classify_outcome(status_code: int, expected_status: Optional[int]) -> Tuple[bool, Optional[str]]:
    """
    응답 상태 코드로 성공 여부와 에러 종류 판정

    Returns:
        (성공 여부, 에러 종류) 튜플. 성공이면 에러 종류는 None
    """
    if expected_status is not None:
        success = status_code == expected_status
    else:
        success = status_code < 400

    if success:
        return True, None
    if status_code in (408, 504):
        return False, "timeout"
    if status_code >= 500:
        return False, "server_error"
    if status_code >= 400:
        return False, "client_error"
    return False, "unexpected_status"


def substitute_path_params(path: str, default_value: str) -> str:
    """`:id` 같은 경로 플레이스홀더를 고정 기본값으로 치환"""
    return PATH_PARAM_PATTERN.sub(default_value, path)


class WorkerScheduler:
    """
    실행 1회의 워커 풀 관리자

    Args:
        definition: 실행할 테스트 정의
        catalog: 시나리오 카탈로그 (실행 중 읽기 전용)
        executor: 요청 실행기
        accumulator: 이 실행 전용 메트릭 누적기
        think_time_ms: 요청 간 무작위 대기 범위 (min, max)
        path_param_default: 경로 플레이스홀더 치환값
        rng: 대기시간 난수 생성기
        clock: 단조 시계 (초 단위)
    """

    def __init__(
        self,
        definition: TestDefinition,
        catalog: ScenarioCatalog,
        executor: RequestExecutor,
        accumulator: MetricsAccumulator,
        think_time_ms: Tuple[float, float] = (100.0, 500.0),
        path_param_default: str = "12345",
        rng: Optional[random.Random] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.definition = definition
        self.catalog = catalog
        self.executor = executor
        self.accumulator = accumulator
        self.think_time_ms = think_time_ms
        self.path_param_default = path_param_default
        self._rng = rng or random.Random()
        self._clock = clock
        self._stop_event = threading.Event()
        self._run_started: Optional[float] = None
        self.reports: List[WorkerReport] = []

    def validate(self) -> None:
        """워커 시작 전 설정 검증 (실패 시 ConfigurationError)"""
        config = self.definition.config
        if config.concurrency <= 0:
            raise ConfigurationError(f"Concurrency must be positive: {config.concurrency}")
        if config.duration_seconds <= 0:
            raise ConfigurationError(f"Duration must be positive: {config.duration_seconds}")
        if config.ramp_up_seconds < 0:
            raise ConfigurationError(f"Ramp-up must not be negative: {config.ramp_up_seconds}")
        if not config.targets:
            raise ConfigurationError(f"Test {self.definition.id} has no targets")
        low, high = self.think_time_ms
        if low < 0 or high < low:
            raise ConfigurationError(f"Invalid think time range: {self.think_time_ms}")
        self.catalog.validate()

    def stop(self) -> None:
        """실행 마감 시각을 '지금'으로 당김 - 워커는 다음 확인 시점에 종료"""
        if not self._stop_event.is_set():
            logger.info(f"Stop requested for running test: {self.definition.id}")
        self._stop_event.set()

    @property
    def is_stopped(self) -> bool:
        return self._stop_event.is_set()

    def worker_delay_ms(self, index: int) -> float:
        config = self.definition.config
        return index * (config.ramp_up_seconds * 1000 / config.concurrency)

    def run(self) -> List[WorkerReport]:
        """
        모든 워커를 기동하고 전원 종료될 때까지 대기

        Returns:
            List[WorkerReport]: 워커별 실행 기록
        """
        self.validate()
        config = self.definition.config

        self._run_started = self._clock()
        self.reports = [
            WorkerReport(index=i, planned_delay_ms=self.worker_delay_ms(i))
            for i in range(config.concurrency)
        ]

        logger.info(f"Starting {config.concurrency} workers for {self.definition.id} "
                    f"(duration={config.duration_seconds}s, ramp_up={config.ramp_up_seconds}s)")

        threads = []
        for report in self.reports:
            target = config.targets[report.index % len(config.targets)]
            thread = threading.Thread(
                target=self._worker_main,
                args=(report, target),
                name=f"perf-worker-{self.definition.id}-{report.index}",
                daemon=True,
            )
            threads.append(thread)
            thread.start()

        for thread in threads:
            thread.join()

        crashed = sum(1 for r in self.reports if r.crashed)
        issued = sum(r.requests_issued for r in self.reports)
        logger.info(f"All workers finished for {self.definition.id}: "
                    f"requests={issued}, crashed_workers={crashed}")
        return self.reports

    def _elapsed_ms(self) -> float:
        return (self._clock() - self._run_started) * 1000

    def _worker_main(self, report: WorkerReport, target: str) -> None:
        """워커 스레드 진입점 - 예상치 못한 예외는 여기서 기록하고 워커만 조기 종료"""
        try:
            # ramp-up 대기 (중지 요청 시 즉시 깨어남)
            wait_seconds = (report.planned_delay_ms - self._elapsed_ms()) / 1000
            if wait_seconds > 0 and self._stop_event.wait(timeout=wait_seconds):
                return

            report.started_at_ms = self._elapsed_ms()
            # 기동이 늦어져도 모든 워커는 run 시작 + duration 에 종료
            worker_deadline = self._run_started + self.definition.config.duration_seconds
            self._worker_loop(report, target, worker_deadline)

        except Exception as e:
            report.crashed = True
            report.error = str(e)
            self.accumulator.record_error(WORKER_CRASH)
            logger.error(f"Worker {report.index} of {self.definition.id} crashed: {e}", exc_info=True)
        finally:
            report.stopped_at_ms = self._elapsed_ms()

    def _time_left(self, worker_deadline: float) -> float:
        if self._stop_event.is_set():
            return 0.0
        return worker_deadline - self._clock()

    def _worker_loop(self, report: WorkerReport, target: str, worker_deadline: float) -> None:
        while self._time_left(worker_deadline) > 0:
            scenario = self.catalog.select_scenario()
            report.scenarios_started += 1

            for request in scenario.requests:
                if self._time_left(worker_deadline) <= 0:
                    break

                self._execute_request(request, target)
                report.requests_issued += 1

                pause = self._rng.uniform(*self.think_time_ms) / 1000
                pause = min(pause, max(self._time_left(worker_deadline), 0.0))
                if pause > 0 and self._stop_event.wait(timeout=pause):
                    return

    def _execute_request(self, request: ScenarioRequest, target: str) -> None:
        path = substitute_path_params(request.path, self.path_param_default)
        endpoint_key = f"{request.method} {path}"
        prepared = PreparedRequest(
            method=request.method,
            url=f"{target.rstrip('/')}{path}",
            headers=dict(request.headers or {}),
            body=request.body,
        )

        started = time.perf_counter()
        try:
            result = self.executor.execute(prepared)
        except TransportError as e:
            logger.debug(f"Transport error on {endpoint_key}: {e}")
            self.accumulator.record_outcome(endpoint_key, None, False, e.kind)
            return
        except Exception as e:
            logger.debug(f"Executor failure on {endpoint_key}: {e}")
            self.accumulator.record_outcome(endpoint_key, None, False, "network_error")
            return

        latency_ms = (time.perf_counter() - started) * 1000
        success, error_kind = classify_outcome(result.status_code, request.expected_status)
        self.accumulator.record_outcome(endpoint_key, latency_ms, success, error_kind)
