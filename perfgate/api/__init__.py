from fastapi import APIRouter

from perfgate.api.home_routes import router as home_router
from perfgate.api.performance_testing_router import router as performance_testing_router

api_router = APIRouter()
api_router.include_router(
    home_router,
    tags=["home"],
)

api_router.include_router(
    performance_testing_router,
    prefix="/performance-testing",
    tags=["Performance Testing"]
)
