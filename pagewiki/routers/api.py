from fastapi import APIRouter

from pagewiki.routers.admin import router as admin_router
from pagewiki.routers.health import router as health_router
from pagewiki.routers.public import router as public_router

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(health_router)
api_router.include_router(public_router)
api_router.include_router(admin_router)
