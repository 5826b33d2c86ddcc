"""
실행 1회의 메트릭 누적기

다수의 워커 스레드가 높은 빈도로 record_outcome()을 호출하므로
전체 구조에 하나의 락을 거는 대신 필드 그룹별로 락을 분리합니다.

- 요청 카운터 (total / success / failure)
- 지연시간 샘플 (+ 합계/최소/최대)
- 에러 종류별 집계
- 엔드포인트 맵 (엔드포인트마다 자체 락 보유)
"""

import logging
import random
import threading
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EndpointSnapshot:
    """엔드포인트별 집계 스냅샷"""
    latency_count: int
    latency_sum_ms: float
    successes: int
    failures: int


@dataclass(frozen=True)
class MetricsSnapshot:
    """record_outcome() 호출 시점 기준의 불변 복사본"""
    total_requests: int = 0
    success_count: int = 0
    failure_count: int = 0
    latencies_ms: Tuple[float, ...] = ()
    latency_count: int = 0
    latency_sum_ms: float = 0.0
    latency_min_ms: float = 0.0
    latency_max_ms: float = 0.0
    per_endpoint: Dict[str, EndpointSnapshot] = field(default_factory=dict)
    error_tally: Dict[str, int] = field(default_factory=dict)


class _EndpointTally:
    __slots__ = ("lock", "latency_count", "latency_sum_ms", "successes", "failures")

    def __init__(self):
        self.lock = threading.Lock()
        self.latency_count = 0
        self.latency_sum_ms = 0.0
        self.successes = 0
        self.failures = 0


class MetricsAccumulator:
    """
    동시성 안전 메트릭 누적기 (실행 1회 전용, 실행 간 공유 금지)

    Args:
        max_latency_samples: 백분위수 계산용 샘플 상한. None이면 모든 지연시간을 보관하고,
            값이 있으면 균등 저수지 샘플링으로 상한을 유지한다. 평균/최소/최대는 항상 정확값.
        rng: 저수지 샘플링용 난수 생성기
    """

    def __init__(self, max_latency_samples: Optional[int] = None, rng: Optional[random.Random] = None):
        if max_latency_samples is not None and max_latency_samples <= 0:
            raise ValueError("max_latency_samples must be positive")
        self.max_latency_samples = max_latency_samples
        self._rng = rng or random.Random()

        self._counter_lock = threading.Lock()
        self._total_requests = 0
        self._success_count = 0
        self._failure_count = 0

        self._latency_lock = threading.Lock()
        self._latencies: List[float] = []
        self._latency_count = 0
        self._latency_sum = 0.0
        self._latency_min: Optional[float] = None
        self._latency_max: Optional[float] = None

        self._error_lock = threading.Lock()
        self._error_tally: Dict[str, int] = {}

        self._endpoint_lock = threading.Lock()
        self._endpoints: Dict[str, _EndpointTally] = {}

    def record_outcome(
        self,
        endpoint_key: str,
        latency_ms: Optional[float],
        success: bool,
        error_kind: Optional[str] = None,
    ) -> None:
        """
        요청 결과 1건 기록

        Args:
            endpoint_key: "METHOD path" 형식의 엔드포인트 키
            latency_ms: 측정된 지연시간. 응답을 받지 못한 전송 오류는 None
            success: 성공 여부
            error_kind: 실패 종류 (실패 시에만 집계)
        """
        with self._counter_lock:
            self._total_requests += 1
            if success:
                self._success_count += 1
            else:
                self._failure_count += 1

        if latency_ms is not None:
            self._record_latency(latency_ms)

        if not success and error_kind:
            self.record_error(error_kind)

        tally = self._endpoint_tally(endpoint_key)
        with tally.lock:
            if latency_ms is not None:
                tally.latency_count += 1
                tally.latency_sum_ms += latency_ms
            if success:
                tally.successes += 1
            else:
                tally.failures += 1

    def record_error(self, error_kind: str, count: int = 1) -> None:
        """요청과 무관한 에러 집계 (워커 비정상 종료 등)"""
        with self._error_lock:
            self._error_tally[error_kind] = self._error_tally.get(error_kind, 0) + count

    def _record_latency(self, latency_ms: float) -> None:
        with self._latency_lock:
            self._latency_count += 1
            self._latency_sum += latency_ms
            if self._latency_min is None or latency_ms < self._latency_min:
                self._latency_min = latency_ms
            if self._latency_max is None or latency_ms > self._latency_max:
                self._latency_max = latency_ms

            if self.max_latency_samples is None or len(self._latencies) < self.max_latency_samples:
                self._latencies.append(latency_ms)
            else:
                # Algorithm R
                slot = self._rng.randrange(self._latency_count)
                if slot < self.max_latency_samples:
                    self._latencies[slot] = latency_ms

    def _endpoint_tally(self, endpoint_key: str) -> _EndpointTally:
        tally = self._endpoints.get(endpoint_key)
        if tally is not None:
            return tally
        with self._endpoint_lock:
            return self._endpoints.setdefault(endpoint_key, _EndpointTally())

    @property
    def total_requests(self) -> int:
        with self._counter_lock:
            return self._total_requests

    def snapshot(self) -> MetricsSnapshot:
        """현재까지 누적된 메트릭의 불변 복사본 반환 (복사하는 동안만 락 점유)"""
        with self._counter_lock:
            total, successes, failures = self._total_requests, self._success_count, self._failure_count

        with self._latency_lock:
            latencies = tuple(self._latencies)
            latency_count = self._latency_count
            latency_sum = self._latency_sum
            latency_min = self._latency_min or 0.0
            latency_max = self._latency_max or 0.0

        with self._error_lock:
            error_tally = dict(self._error_tally)

        with self._endpoint_lock:
            endpoints = list(self._endpoints.items())

        per_endpoint = {}
        for key, tally in endpoints:
            with tally.lock:
                per_endpoint[key] = EndpointSnapshot(
                    latency_count=tally.latency_count,
                    latency_sum_ms=tally.latency_sum_ms,
                    successes=tally.successes,
                    failures=tally.failures,
                )

        return MetricsSnapshot(
            total_requests=total,
            success_count=successes,
            failure_count=failures,
            latencies_ms=latencies,
            latency_count=latency_count,
            latency_sum_ms=latency_sum,
            latency_min_ms=latency_min,
            latency_max_ms=latency_max,
            per_endpoint=per_endpoint,
            error_tally=error_tally,
        )
