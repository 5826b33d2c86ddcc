from fastapi import APIRouter

router = APIRouter()

@router.get(
    path="/",
    summary = "health check",
    description = "서비스 기동 여부 확인용 엔드포인트"
)
async def home():
    return {"service": "perfgate", "status": "ok"}
