import math
from typing import List, Sequence


class MetricsCalculator:
    """지연시간/비율 통계 계산 유틸리티 (모든 함수는 빈 입력에 대해 0을 반환)"""

    @staticmethod
    def percentile(sorted_values: Sequence[float], ratio: float) -> float:
        """
        오름차순 정렬된 값에서 백분위수 조회

        인덱스 = floor(n * ratio), [0, n-1] 범위로 제한 (보간 없음)

        Args:
            sorted_values: 오름차순 정렬된 값들
            ratio: 0.95, 0.99 등

        Returns:
            float: 해당 인덱스의 값 (빈 입력은 0.0)
        """
        n = len(sorted_values)
        if n == 0:
            return 0.0
        index = min(max(int(math.floor(n * ratio)), 0), n - 1)
        return float(sorted_values[index])

    @staticmethod
    def safe_ratio_percent(part: float, whole: float) -> float:
        """part / whole * 100, whole이 0이면 0.0"""
        if whole <= 0:
            return 0.0
        return part / whole * 100

    @staticmethod
    def safe_rate(count: float, duration_ms: float) -> float:
        """초당 발생 수, 기간이 0이면 0.0"""
        if duration_ms <= 0:
            return 0.0
        return count / (duration_ms / 1000)

    @staticmethod
    def mean(values: List[float]) -> float:
        if not values:
            return 0.0
        return sum(values) / len(values)
