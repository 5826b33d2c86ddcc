import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from perfgate.common.exception import ApiException
from perfgate.common.response.code import FailureCode, SuccessCode
from perfgate.common.response.response_template import ResponseTemplate
from perfgate.dependencies import get_test_registry
from perfgate.schemas.performance_test import TestDefinitionCreateRequest
from perfgate.services.statistics_service import get_health, get_statistics, run_regression
from perfgate.services.test_registry import TestRegistry

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get(
    path="/tests",
    summary="성능 테스트 정의 목록 조회 API",
    description="등록된 모든 성능 테스트 정의(기본 + 커스텀)를 반환합니다.",
)
async def list_tests(registry: TestRegistry = Depends(get_test_registry)):
    definitions = registry.list_definitions()
    return ResponseTemplate.success(SuccessCode.SUCCESS_CODE, {
        "tests": [d.model_dump(mode="json") for d in definitions],
        "scheduled": registry.scheduled_test_ids,
    })


@router.post(
    path="/tests",
    summary="커스텀 성능 테스트 생성 API",
    description="""
    새 성능 테스트 정의를 등록합니다. ID는 `custom-<epoch ms>` 형식으로 발급됩니다.

    - **config.concurrency**: 동시 가상 사용자 수 (1 이상)
    - **config.ramp_up_seconds**: 워커를 선형으로 기동하는 시간
    - **config.thresholds**: 평균 응답시간 / 에러율 / 처리량 기준
    - **schedule.enabled** 가 true 면 즉시 반복 실행으로 등록됩니다.
    """,
)
async def create_test(
        request: TestDefinitionCreateRequest,
        registry: TestRegistry = Depends(get_test_registry),
):
    definition = registry.create_definition(request)
    return ResponseTemplate.success(SuccessCode.CREATED, definition.model_dump(mode="json"))


@router.post(
    path="/tests/stop-all",
    summary="모든 반복 실행 중지 API",
)
def stop_all_scheduled_tests(registry: TestRegistry = Depends(get_test_registry)):
    stopped = registry.stop_all_schedules()
    return ResponseTemplate.success(SuccessCode.SUCCESS_CODE, {"stopped": stopped})


@router.post(
    path="/tests/{test_id}/run",
    summary="성능 테스트 즉시 실행 API",
    description="""
    테스트를 즉시 실행하고 완료될 때까지 대기한 뒤 결과를 반환합니다.

    - 같은 테스트가 이미 실행 중이면 409를 반환합니다.
    - 워커 시작 전 설정 오류는 400을 반환합니다.
    """,
)
def run_test(test_id: str, registry: TestRegistry = Depends(get_test_registry)):
    result = registry.run_now(test_id)
    return ResponseTemplate.success(SuccessCode.SUCCESS_CODE, result.model_dump(mode="json"))


@router.post(
    path="/tests/{test_id}/stop",
    summary="반복 실행 중지 API",
    description="테스트의 반복 실행 트리거를 해제합니다. 스케줄이 없는 ID는 무시합니다.",
)
def stop_scheduled_test(test_id: str, registry: TestRegistry = Depends(get_test_registry)):
    stopped = registry.stop_schedule(test_id)
    return ResponseTemplate.success(SuccessCode.SUCCESS_CODE, {"test_id": test_id, "stopped": stopped})


@router.post(
    path="/tests/{test_id}/stop-run",
    summary="실행 중인 테스트 중단 API",
    description="실행 중인 테스트의 마감 시각을 현재로 당깁니다. 워커는 다음 확인 시점에 종료됩니다.",
)
async def stop_running_test(test_id: str, registry: TestRegistry = Depends(get_test_registry)):
    stopped = registry.stop_run(test_id)
    return ResponseTemplate.success(SuccessCode.SUCCESS_CODE, {"test_id": test_id, "stopped": stopped})


@router.get(
    path="/results",
    summary="성능 테스트 결과 조회 API",
    description="test_id 가 있으면 해당 테스트의 최근 limit건, 없으면 전체 결과를 최신순으로 반환합니다.",
)
async def get_results(
        test_id: Optional[str] = None,
        limit: int = Query(10, ge=1),
        registry: TestRegistry = Depends(get_test_registry),
):
    if test_id:
        results = registry.get_history(test_id, limit)
    else:
        results = registry.get_all_results()

    return ResponseTemplate.success(SuccessCode.SUCCESS_CODE, {
        "results": [r.model_dump(mode="json") for r in results],
        "count": len(results),
    })


@router.get(
    path="/results/{run_id}",
    summary="성능 테스트 결과 단건 조회 API",
)
async def get_result(run_id: str, registry: TestRegistry = Depends(get_test_registry)):
    result = registry.get_result(run_id)
    if result is None:
        raise ApiException(FailureCode.RESULT_NOT_FOUND)
    return ResponseTemplate.success(SuccessCode.SUCCESS_CODE, result.model_dump(mode="json"))


@router.get(
    path="/statistics",
    summary="성능 테스트 통계 API",
    description="최근 days일 동안의 결과 건수, 상태별 분포, 평균 지표, 추세(stable/increasing/decreasing)를 반환합니다.",
)
async def get_performance_statistics(
        days: int = Query(30, ge=1),
        registry: TestRegistry = Depends(get_test_registry),
):
    statistics = get_statistics(registry, days)
    return ResponseTemplate.success(SuccessCode.SUCCESS_CODE, statistics.model_dump(mode="json"))


@router.get(
    path="/health",
    summary="성능 테스트 엔진 상태 API",
)
async def get_performance_health(registry: TestRegistry = Depends(get_test_registry)):
    health = get_health(registry)
    return ResponseTemplate.success(SuccessCode.SUCCESS_CODE, health.model_dump(mode="json"))


@router.post(
    path="/regression",
    summary="배포 전 회귀 성능 테스트 API",
    description="regression-test 를 실행하고 배포 가능 여부 권고를 함께 반환합니다.",
)
def run_regression_test(registry: TestRegistry = Depends(get_test_registry)):
    report = run_regression(registry)
    logger.info(f"Regression recommendation: {report.recommendation}")
    return ResponseTemplate.success(SuccessCode.SUCCESS_CODE, report.model_dump(mode="json"))
