from fastapi import APIRouter, Depends

from ..deps import get_settings
from ..schemas import ConfigResponse
from ..settings import Settings

router = APIRouter(tags=["config"])


@router.get("/config", response_model=ConfigResponse)
def get_config(app_settings: Settings = Depends(get_settings)):
	return ConfigResponse(model=app_settings.gemini_model)
