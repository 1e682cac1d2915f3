from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .errors import install_exception_handlers
from .log import configure_logging
from .routers import api_router
from .settings import Settings, settings as default_settings

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None) -> FastAPI:
	app_settings = settings or default_settings
	configure_logging(app_settings.log_level)

	@asynccontextmanager
	async def lifespan(app: FastAPI):
		logger.info(
			"backend_startup",
			extra={
				"model": app_settings.gemini_model,
				"gemini_configured": bool(app_settings.gemini_api_key),
				"cache_configured": bool(app_settings.gemini_cache_name),
				"cors_origins": app_settings.cors_origin_list,
			},
		)
		yield

	app = FastAPI(title="Verb Master API", version="0.1.0", lifespan=lifespan)
	app.state.settings = app_settings
	app.add_middleware(
		CORSMiddleware,
		allow_origins=app_settings.cors_origin_list,
		allow_credentials=True,
		allow_methods=["*"],
		allow_headers=["*"],
	)
	install_exception_handlers(app)
	app.include_router(api_router, prefix="/api")
	return app


app = create_app()
