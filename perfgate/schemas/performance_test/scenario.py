from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

HttpMethod = Literal["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"]


class ScenarioRequest(BaseModel):
    """시나리오 내 단일 논리 요청

    path 에는 `:id` 형태의 플레이스홀더를 사용할 수 있다.
    """
    model_config = ConfigDict(frozen=True)

    method: HttpMethod
    path: str
    headers: Optional[Dict[str, str]] = None
    body: Optional[Any] = None
    expected_status: Optional[int] = None


class Scenario(BaseModel):
    """가중치를 가진 사용자 여정 (요청은 선언 순서대로 실행)"""
    model_config = ConfigDict(frozen=True)

    name: str
    weight: float
    requests: List[ScenarioRequest] = Field(..., min_length=1)

    @field_validator("weight")
    @classmethod
    def validate_weight(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("scenario weight must be greater than 0")
        return value
