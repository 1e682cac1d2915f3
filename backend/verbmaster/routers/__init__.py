from fastapi import APIRouter

from .config import router as config_router
from .health import router as health_router
from .verbs import router as verbs_router

api_router = APIRouter()
api_router.include_router(health_router)
api_router.include_router(config_router)
api_router.include_router(verbs_router)
