import os
from typing import Optional
from dotenv import load_dotenv

load_dotenv()


class Settings:
    """애플리케이션 설정"""

    # 로깅 설정
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # 워커 설정
    PERF_THINK_TIME_MIN_MS: float = float(os.getenv("PERF_THINK_TIME_MIN_MS", "100"))
    PERF_THINK_TIME_MAX_MS: float = float(os.getenv("PERF_THINK_TIME_MAX_MS", "500"))
    PERF_PATH_PARAM_DEFAULT: str = os.getenv("PERF_PATH_PARAM_DEFAULT", "12345")
    PERF_REQUEST_TIMEOUT_SECONDS: float = float(os.getenv("PERF_REQUEST_TIMEOUT_SECONDS", "30"))

    # 메트릭 / 히스토리 설정
    PERF_MAX_LATENCY_SAMPLES: int = int(os.getenv("PERF_MAX_LATENCY_SAMPLES", "0"))  # 0 = 전체 보관
    PERF_HISTORY_LIMIT: int = int(os.getenv("PERF_HISTORY_LIMIT", "100"))

    # 스케줄러 설정
    PERF_SCHEDULE_INTERVAL_SECONDS: float = float(os.getenv("PERF_SCHEDULE_INTERVAL_SECONDS", "3600"))  # 1시간
    PERF_START_SCHEDULES: bool = os.getenv("PERF_START_SCHEDULES", "true").lower() == "true"

    # 테스트 정의 로딩 설정
    PERF_LOAD_DEFAULT_TESTS: bool = os.getenv("PERF_LOAD_DEFAULT_TESTS", "true").lower() == "true"
    PERF_DEFINITIONS_FILE: Optional[str] = os.getenv("PERF_DEFINITIONS_FILE") or None

    @classmethod
    def get_engine_config(cls) -> dict:
        """부하 엔진 설정을 딕셔너리로 반환"""
        return {
            "think_time_ms": (cls.PERF_THINK_TIME_MIN_MS, cls.PERF_THINK_TIME_MAX_MS),
            "path_param_default": cls.PERF_PATH_PARAM_DEFAULT,
            "max_latency_samples": cls.PERF_MAX_LATENCY_SAMPLES or None,
        }

    @classmethod
    def validate_engine_config(cls) -> bool:
        """엔진 설정 유효성 검증"""
        try:
            if cls.PERF_THINK_TIME_MIN_MS < 0 or cls.PERF_THINK_TIME_MAX_MS < cls.PERF_THINK_TIME_MIN_MS:
                return False

            if cls.PERF_HISTORY_LIMIT < 1:
                return False

            if cls.PERF_MAX_LATENCY_SAMPLES < 0:
                return False

            if cls.PERF_SCHEDULE_INTERVAL_SECONDS <= 0:
                return False

            return True
        except (ValueError, TypeError):
            return False


settings = Settings()
