from fastapi import FastAPI, Request
import logging
import traceback

from perfgate.common.exception import ApiException, PerfTestException
from perfgate.common.response.code import FailureCode
from perfgate.common.response.response_template import ResponseTemplate

logger = logging.getLogger(__name__)

def register_exception_handler(app: FastAPI):
    # 특정 사용자 정의 예외(ApiException) 처리
    @app.exception_handler(ApiException)
    async def api_exception_handler(request: Request, exc: ApiException):
        logger.error(f"ApiException occurred: {exc.code}")
        return ResponseTemplate.fail(
            code=exc.code,
            custom_message=exc.message,
        )

    # 엔진 예외 (설정 오류, 중복 실행 등)
    @app.exception_handler(PerfTestException)
    async def perf_test_exception_handler(request: Request, exc: PerfTestException):
        logger.warning(f"{type(exc).__name__} on {request.url.path}: {exc.message}")
        return ResponseTemplate.fail(
            code=exc.code,
            custom_message=exc.message,
        )

    # 예상치 못한 모든 예외 처리
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        tb_str = ''.join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        logger.error(f"Unhandled exception occurred: {exc}\nStack trace:\n{tb_str}")
        return ResponseTemplate.fail(
            FailureCode.INTERNAL_SERVER_ERROR,
        )
