import logging
import threading
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

import pytz

from perfgate.common.exception import ConfigurationError

logger = logging.getLogger(__name__)


@dataclass
class TriggerHandle:
    """스케줄러가 발급하는 트리거 식별자"""
    handle_id: str
    cron_expression: str
    timezone: str
    created_at: datetime
    fire_count: int = 0
    last_fired_at: Optional[datetime] = None
    _stop_event: threading.Event = field(default_factory=threading.Event, repr=False)
    _thread: Optional[threading.Thread] = field(default=None, repr=False)


@dataclass
class ScheduledTestHandle:
    """반복 실행이 활성화된 테스트 정의와 트리거의 연결 (레지스트리 소유)"""
    __test__ = False

    test_id: str
    trigger: TriggerHandle
    scheduled_at: datetime


class TriggerScheduler(ABC):
    """
    반복 실행 시점을 결정하는 외부 스케줄러 인터페이스

    cron 해석은 구현체 책임이며, 엔진은 콜백이 호출되는 것에만 반응합니다.
    """

    @abstractmethod
    def schedule(self, cron_expression: str, timezone: str, callback: Callable[[], Any]) -> TriggerHandle:
        pass

    @abstractmethod
    def cancel(self, handle: TriggerHandle) -> None:
        pass

    def shutdown(self) -> None:
        """모든 트리거 정리 (기본 구현은 아무것도 하지 않음)"""


def validate_timezone(timezone: str) -> None:
    try:
        pytz.timezone(timezone)
    except pytz.UnknownTimeZoneError as e:
        raise ConfigurationError(f"Unknown timezone: {timezone}") from e


class IntervalTriggerScheduler(TriggerScheduler):
    """
    고정 주기로 콜백을 호출하는 스레드 기반 스케줄러

    cron 표현식은 기록만 하고 해석하지 않습니다. 개발/단일 프로세스 환경에서
    모든 활성 스케줄을 interval_seconds 간격으로 실행합니다.
    """

    def __init__(self, interval_seconds: float = None):
        """
        Args:
            interval_seconds: 실행 주기(초) - None이면 설정에서 가져옴
        """
        if interval_seconds is None:
            from perfgate.core.config import settings
            interval_seconds = settings.PERF_SCHEDULE_INTERVAL_SECONDS
        if interval_seconds <= 0:
            raise ConfigurationError(f"Schedule interval must be positive: {interval_seconds}")

        self.interval_seconds = interval_seconds
        self._lock = threading.Lock()
        self._handles: Dict[str, TriggerHandle] = {}
        # 취소됐지만 콜백이 아직 끝나지 않았을 수 있는 트리거 (shutdown 에서 join)
        self._cancelled: List[TriggerHandle] = []

        logger.info(f"IntervalTriggerScheduler initialized with interval={interval_seconds}s")

    def schedule(self, cron_expression: str, timezone: str, callback: Callable[[], Any]) -> TriggerHandle:
        validate_timezone(timezone)

        handle = TriggerHandle(
            handle_id=str(uuid.uuid4()),
            cron_expression=cron_expression,
            timezone=timezone,
            created_at=datetime.now(pytz.timezone(timezone)),
        )
        handle._thread = threading.Thread(
            target=self._run_trigger_loop,
            args=(handle, callback),
            name=f"perf-trigger-{handle.handle_id[:8]}",
            daemon=True,
        )

        with self._lock:
            self._handles[handle.handle_id] = handle
        handle._thread.start()

        logger.info(f"Trigger {handle.handle_id} scheduled (cron='{cron_expression}', tz={timezone}, "
                    f"interval={self.interval_seconds}s)")
        return handle

    def cancel(self, handle: TriggerHandle) -> None:
        """트리거 중지 신호만 보냄 - 진행 중인 콜백은 기다리지 않음"""
        with self._lock:
            self._handles.pop(handle.handle_id, None)
            self._cancelled = [h for h in self._cancelled if h._thread and h._thread.is_alive()]
            self._cancelled.append(handle)

        handle._stop_event.set()
        logger.info(f"Trigger {handle.handle_id} cancelled")

    def shutdown(self, timeout: float = 10) -> None:
        with self._lock:
            handles = list(self._handles.values())
        for handle in handles:
            self.cancel(handle)

        with self._lock:
            cancelled, self._cancelled = self._cancelled, []
        for handle in cancelled:
            if (handle._thread and handle._thread.is_alive()
                    and handle._thread is not threading.current_thread()):
                handle._thread.join(timeout=timeout)

    @property
    def active_count(self) -> int:
        with self._lock:
            return len(self._handles)

    def _run_trigger_loop(self, handle: TriggerHandle, callback: Callable[[], Any]) -> None:
        """트리거 메인 루프"""
        logger.debug(f"Trigger loop started: {handle.handle_id}")

        # 다음 실행까지 대기, 취소되면 즉시 종료
        while not handle._stop_event.wait(timeout=self.interval_seconds):
            handle.fire_count += 1
            handle.last_fired_at = datetime.now(pytz.timezone(handle.timezone))
            try:
                callback()
            except Exception as e:
                logger.error(f"Error in scheduled trigger {handle.handle_id}: {e}")

        logger.debug(f"Trigger loop finished: {handle.handle_id}")
