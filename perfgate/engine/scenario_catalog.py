import logging
import random
import threading
from typing import Iterable, List, Optional, Tuple

from perfgate.common.exception import ConfigurationError
from perfgate.schemas.performance_test import Scenario

logger = logging.getLogger(__name__)


class ScenarioCatalog:
    """
    가중치 기반 시나리오 카탈로그

    선택 확률 = 시나리오 가중치 / 전체 가중치 합.
    실행 중에는 읽기 전용으로 사용되며, 변경은 실행 사이에만 일어난다고 가정합니다.
    변경 시 튜플을 통째로 교체하므로 선택 쪽은 락이 필요 없습니다.
    """

    def __init__(self, scenarios: Optional[Iterable[Scenario]] = None, rng: Optional[random.Random] = None):
        self._rng = rng or random.Random()
        self._lock = threading.Lock()
        self._scenarios: Tuple[Scenario, ...] = ()
        for scenario in scenarios or []:
            self.add_scenario(scenario)

    @property
    def scenarios(self) -> List[Scenario]:
        return list(self._scenarios)

    @property
    def total_weight(self) -> float:
        return sum(s.weight for s in self._scenarios)

    def __len__(self) -> int:
        return len(self._scenarios)

    def add_scenario(self, scenario: Scenario) -> None:
        """시나리오 추가 (같은 이름이 있으면 교체)"""
        if scenario.weight <= 0:
            raise ConfigurationError(f"Scenario weight must be positive: {scenario.name}={scenario.weight}")

        with self._lock:
            remaining = tuple(s for s in self._scenarios if s.name != scenario.name)
            self._scenarios = remaining + (scenario,)
        logger.debug(f"Scenario registered: {scenario.name} (weight={scenario.weight})")

    def remove_scenario(self, name: str) -> bool:
        """이름으로 시나리오 제거, 제거 여부 반환"""
        with self._lock:
            remaining = tuple(s for s in self._scenarios if s.name != name)
            removed = len(remaining) != len(self._scenarios)
            self._scenarios = remaining
        return removed

    def validate(self) -> None:
        """실행 가능한 카탈로그인지 검증 (워커 시작 전 호출)"""
        if not self._scenarios:
            raise ConfigurationError("Scenario catalog is empty")
        if self.total_weight <= 0:
            raise ConfigurationError("Scenario catalog total weight must be positive")

    def select_scenario(self, draw: Optional[float] = None) -> Scenario:
        """
        가중치 비례 시나리오 선택

        Args:
            draw: [0, total_weight) 범위의 난수 (None이면 내부 난수 생성기 사용)

        Returns:
            Scenario: 선택된 시나리오. 부동소수점 오차로 끝까지 못 찾으면 마지막 시나리오
        """
        scenarios = self._scenarios
        if not scenarios:
            raise ConfigurationError("Scenario catalog is empty")

        total = sum(s.weight for s in scenarios)
        if draw is None:
            draw = self._rng.random() * total

        cumulative = 0.0
        for scenario in scenarios:
            cumulative += scenario.weight
            if draw < cumulative:
                return scenario

        return scenarios[-1]
