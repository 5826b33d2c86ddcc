"""Shared fixtures for the perfgate test-suite."""

from __future__ import annotations

import random
import threading
import time
from datetime import datetime
from typing import Callable, Optional

import pytest

from perfgate.engine.alert_bridge import AlertBridge, AlertEvent
from perfgate.engine.executor import ExecutionResult, PreparedRequest, RequestExecutor, TransportError
from perfgate.engine.scenario_catalog import ScenarioCatalog
from perfgate.scheduler.trigger_scheduler import TriggerHandle, TriggerScheduler
from perfgate.schemas.performance_test import Scenario, TestDefinition
from perfgate.services.test_registry import TestRegistry


class FakeExecutor(RequestExecutor):
    """Deterministic executor: status chosen by a callable, optional fixed delay."""

    def __init__(
        self,
        status_for: Optional[Callable[[PreparedRequest], int]] = None,
        delay_seconds: float = 0.0,
        fail_paths: tuple[str, ...] = (),
    ) -> None:
        self.status_for = status_for or (lambda request: 200)
        self.delay_seconds = delay_seconds
        self.fail_paths = fail_paths
        self.calls: list[PreparedRequest] = []
        self.closed = False
        self._lock = threading.Lock()

    def execute(self, request: PreparedRequest) -> ExecutionResult:
        with self._lock:
            self.calls.append(request)
        if self.delay_seconds:
            time.sleep(self.delay_seconds)
        if any(request.url.endswith(path) for path in self.fail_paths):
            raise TransportError(f"connection refused: {request.url}")
        return ExecutionResult(status_code=self.status_for(request), elapsed_ms=self.delay_seconds * 1000)

    def close(self) -> None:
        self.closed = True


class BlockingExecutor(FakeExecutor):
    """Blocks every request until released, to hold a run open."""

    def __init__(self) -> None:
        super().__init__()
        self.entered = threading.Event()
        self.release = threading.Event()

    def execute(self, request: PreparedRequest) -> ExecutionResult:
        self.entered.set()
        self.release.wait(timeout=5)
        return super().execute(request)


class RecordingAlertBridge(AlertBridge):
    def __init__(self) -> None:
        self.events: list[AlertEvent] = []

    def notify(self, event: AlertEvent) -> None:
        self.events.append(event)


class ManualTriggerScheduler(TriggerScheduler):
    """Trigger scheduler whose callbacks are fired by the test."""

    def __init__(self) -> None:
        self.callbacks: dict[str, Callable[[], object]] = {}
        self.cancelled: list[str] = []
        self.shut_down = False
        self._counter = 0

    def schedule(self, cron_expression: str, timezone: str, callback: Callable[[], object]) -> TriggerHandle:
        self._counter += 1
        handle = TriggerHandle(
            handle_id=f"manual-{self._counter}",
            cron_expression=cron_expression,
            timezone=timezone,
            created_at=datetime.now(),
        )
        self.callbacks[handle.handle_id] = callback
        return handle

    def cancel(self, handle: TriggerHandle) -> None:
        self.callbacks.pop(handle.handle_id, None)
        self.cancelled.append(handle.handle_id)

    def fire_all(self) -> None:
        for callback in list(self.callbacks.values()):
            callback()

    def shutdown(self) -> None:
        self.shut_down = True


def make_scenario(name: str = "browse", weight: float = 1, paths: tuple[str, ...] = ("/api/items",),
                  method: str = "GET", expected_status: Optional[int] = 200) -> Scenario:
    return Scenario.model_validate({
        "name": name,
        "weight": weight,
        "requests": [
            {"method": method, "path": path, "expected_status": expected_status} for path in paths
        ],
    })


def make_definition(
    test_id: str = "quick-test",
    duration_seconds: float = 0.3,
    concurrency: int = 3,
    ramp_up_seconds: float = 0.0,
    targets: Optional[list[str]] = None,
    max_avg_response_ms: float = 1000,
    max_error_rate_percent: float = 5,
    min_throughput_per_sec: float = 0,
    test_type: str = "load",
    schedule: Optional[dict] = None,
) -> TestDefinition:
    return TestDefinition.model_validate({
        "id": test_id,
        "name": f"{test_id} name",
        "description": "fixture definition",
        "test_type": test_type,
        "config": {
            "duration_seconds": duration_seconds,
            "concurrency": concurrency,
            "ramp_up_seconds": ramp_up_seconds,
            "targets": targets if targets is not None else ["http://target.local"],
            "thresholds": {
                "max_avg_response_ms": max_avg_response_ms,
                "max_error_rate_percent": max_error_rate_percent,
                "min_throughput_per_sec": min_throughput_per_sec,
            },
        },
        "schedule": schedule,
    })


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture
def catalog(rng: random.Random) -> ScenarioCatalog:
    return ScenarioCatalog(
        [
            make_scenario("browse", 3, ("/api/items", "/api/items/:id")),
            make_scenario("checkout", 1, ("/api/cart", "/api/orders/:id/confirm"), method="POST"),
        ],
        rng=rng,
    )


@pytest.fixture
def executor() -> FakeExecutor:
    return FakeExecutor()


@pytest.fixture
def alerts() -> RecordingAlertBridge:
    return RecordingAlertBridge()


@pytest.fixture
def triggers() -> ManualTriggerScheduler:
    return ManualTriggerScheduler()


@pytest.fixture
def registry(catalog, executor, alerts, triggers, rng) -> TestRegistry:
    registry = TestRegistry(
        catalog=catalog,
        executor=executor,
        alert_bridge=alerts,
        trigger_scheduler=triggers,
        think_time_ms=(1.0, 2.0),
        rng=rng,
    )
    registry.register_definition(make_definition())
    yield registry
    registry.shutdown()
