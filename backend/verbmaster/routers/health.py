from fastapi import APIRouter, Depends

from ..deps import get_settings
from ..settings import Settings

router = APIRouter(tags=["health"])


@router.get("/health")
def health(app_settings: Settings = Depends(get_settings)) -> dict[str, object]:
	gemini_configured = bool(app_settings.gemini_api_key)
	return {
		"status": "ok" if gemini_configured else "degraded",
		"service": "backend",
		"gemini_configured": gemini_configured,
		"cache_configured": bool(app_settings.gemini_cache_name),
	}
