from fastapi import APIRouter

from accesscheck.features.accessibility.routes.check import router as check_router
from accesscheck.features.health.routes.health import router as health_router

api_router = APIRouter()

api_router.include_router(check_router)
api_router.include_router(health_router)
