import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from perfgate.schemas.performance_test import TestDefinition, TestResult, TestStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AlertEvent:
    """알림 전달 채널로 넘기는 이벤트"""
    severity: str
    message: str
    details: Dict[str, Any] = field(default_factory=dict)
    type: str = "warning"


class AlertBridge(ABC):
    """알림 전달 인터페이스 (이메일/채팅/웹훅 등은 구현체 몫)"""

    @abstractmethod
    def notify(self, event: AlertEvent) -> None:
        pass


class LoggingAlertBridge(AlertBridge):
    """알림을 로그로만 남기는 기본 구현"""

    def notify(self, event: AlertEvent) -> None:
        log = logger.error if event.type == "error" else logger.warning
        log(f"Alert [{event.severity}]: {event.message} - {event.details}")


def build_alert_event(definition: TestDefinition, result: TestResult) -> Optional[AlertEvent]:
    """
    실행 결과로 알림 이벤트 생성

    Returns:
        AlertEvent: failed/warning 결과의 알림. passed면 None
    """
    violations = [v.model_dump(mode="json") for v in result.threshold_violations]

    if result.status == TestStatus.FAILED:
        return AlertEvent(
            type="error",
            severity="high",
            message=f"Performance test failed: {definition.name}",
            details={
                "test_id": result.test_id,
                "run_id": result.run_id,
                "violations": violations,
                "error_rate_percent": result.metrics.error_rate_percent,
                "avg_response_time_ms": result.metrics.avg_response_time_ms,
            },
        )

    if result.status == TestStatus.WARNING:
        return AlertEvent(
            type="warning",
            severity="medium",
            message=f"Performance test warning: {definition.name}",
            details={
                "test_id": result.test_id,
                "run_id": result.run_id,
                "violations": violations,
            },
        )

    return None
