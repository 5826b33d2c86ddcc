"""
요청 실행기 모듈

부하 엔진이 논리 요청 1건을 실제로 전송하는 경계입니다.
엔진은 RequestExecutor 인터페이스에만 의존하며, 기본 구현으로 httpx 기반 실행기를 제공합니다.
"""

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import httpx

logger = logging.getLogger(__name__)


class TransportError(Exception):
    """전송 계층 오류 (HTTP 에러 상태와는 구분되는 실패)"""

    def __init__(self, message: str, kind: str = "network_error"):
        self.kind = kind
        super().__init__(message)


@dataclass(frozen=True)
class PreparedRequest:
    """플레이스홀더 치환이 끝난 전송 직전 요청"""
    method: str
    url: str
    headers: Dict[str, str] = field(default_factory=dict)
    body: Optional[Any] = None


@dataclass(frozen=True)
class ExecutionResult:
    status_code: int
    elapsed_ms: float


class RequestExecutor(ABC):
    """요청 실행기 인터페이스

    여러 워커 스레드에서 동시에 호출되므로 구현체는 스레드 안전해야 합니다.
    """

    @abstractmethod
    def execute(self, request: PreparedRequest) -> ExecutionResult:
        """
        요청 1건 실행

        Args:
            request: 전송할 요청

        Returns:
            ExecutionResult: 응답 상태 코드와 소요 시간

        Raises:
            TransportError: 연결 실패, 타임아웃 등 전송 오류
        """

    def close(self) -> None:
        """보유 자원 정리 (기본 구현은 아무것도 하지 않음)"""


@dataclass
class HttpExecutorConfig:
    """httpx 실행기 설정"""
    timeout_seconds: float = 30.0
    follow_redirects: bool = True

    @classmethod
    def from_settings(cls):
        """settings에서 설정값을 가져와서 HttpExecutorConfig 생성"""
        from perfgate.core.config import settings
        return cls(timeout_seconds=settings.PERF_REQUEST_TIMEOUT_SECONDS)


class HttpxRequestExecutor(RequestExecutor):
    """httpx.Client 기반 실행기 (커넥션 풀을 워커 간 공유)"""

    def __init__(self, config: Optional[HttpExecutorConfig] = None, client: Optional[httpx.Client] = None):
        self.config = config or HttpExecutorConfig()
        self.client = client or httpx.Client(
            timeout=httpx.Timeout(self.config.timeout_seconds),
            follow_redirects=self.config.follow_redirects,
        )

    def execute(self, request: PreparedRequest) -> ExecutionResult:
        kwargs: Dict[str, Any] = {"headers": request.headers or None}
        if request.body is not None:
            if isinstance(request.body, (str, bytes)):
                kwargs["content"] = request.body
            else:
                kwargs["json"] = request.body

        started = time.perf_counter()
        try:
            response = self.client.request(request.method, request.url, **kwargs)
        except httpx.TimeoutException as e:
            raise TransportError(f"{request.method} {request.url} timed out: {e}", kind="timeout") from e
        except httpx.RequestError as e:
            raise TransportError(f"{request.method} {request.url} failed: {e}") from e

        elapsed_ms = (time.perf_counter() - started) * 1000
        return ExecutionResult(status_code=response.status_code, elapsed_ms=elapsed_ms)

    def close(self) -> None:
        if not self.client.is_closed:
            self.client.close()
