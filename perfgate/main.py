import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from perfgate.api import api_router
from perfgate.core.config import settings
from perfgate.common.exceptionhandler import register_exception_handler
from perfgate.dependencies import build_test_registry
from perfgate.services.test_registry import TestRegistry

# 로깅 설정
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper()),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def create_app(registry: Optional[TestRegistry] = None, start_schedules: Optional[bool] = None) -> FastAPI:
    """
    FastAPI 앱 생성

    Args:
        registry: 주입할 레지스트리 (None이면 settings 기반으로 생성)
        start_schedules: 기동 시 활성 스케줄 등록 여부 (None이면 settings 값)
    """
    if start_schedules is None:
        start_schedules = settings.PERF_START_SCHEDULES

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """애플리케이션 라이프사이클 관리"""
        # 시작 시 실행
        logger.info("Starting perfgate API...")

        if not settings.validate_engine_config():
            logger.warning("Engine settings look invalid - check PERF_* environment variables")

        app.state.registry = registry or build_test_registry()

        # 반복 실행 스케줄 등록
        if start_schedules:
            try:
                scheduled = app.state.registry.schedule_enabled_definitions()
                logger.info(f"Scheduled {len(scheduled)} recurring performance tests: {scheduled}")
            except Exception as e:
                logger.error(f"Failed to schedule recurring performance tests: {e}")

        yield

        # 종료 시 실행
        logger.info("Shutting down perfgate API...")
        try:
            app.state.registry.shutdown()
            logger.info("TestRegistry stopped successfully")
        except Exception as e:
            logger.error(f"Failed to stop TestRegistry: {e}")

    app = FastAPI(
        title="perfgate API",
        description="합성 트래픽으로 대상 서비스의 응답시간/에러율/처리량 목표를 검증하는 성능 테스트 API입니다.",
        version="1.0.0",
        docs_url="/api/swagger",
        lifespan=lifespan
    )

    app.include_router(api_router)
    register_exception_handler(app)
    return app


app = create_app()
