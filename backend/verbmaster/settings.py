from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field

DEFAULT_MODEL = "gemini-2.5-flash"


class Settings(BaseSettings):
	gemini_api_key: str | None = Field(default=None, validation_alias="GEMINI_API_KEY")
	# Pre-created context cache (see verbmaster.setup_cache); sent instead of the system prompt
	gemini_cache_name: str | None = Field(default=None, validation_alias="GEMINI_CACHE_NAME")
	gemini_model: str = Field(default=DEFAULT_MODEL, validation_alias="GEMINI_MODEL")
	gemini_base_url: str = Field(
		default="https://generativelanguage.googleapis.com/v1beta",
		validation_alias="GEMINI_BASE_URL",
	)

	# Comma-separated list, e.g. "http://localhost:5173,http://127.0.0.1:5173"
	cors_origins: str = Field(
		default="http://localhost:5173,http://127.0.0.1:5173",
		validation_alias="VERB_MASTER_CORS_ORIGINS",
	)
	log_level: str = Field(default="INFO", validation_alias="VERB_MASTER_LOG_LEVEL")

	# pydantic-settings v2 style config
	model_config = SettingsConfigDict(env_file=".env", extra="ignore")

	@property
	def cors_origin_list(self) -> list[str]:
		return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


settings = Settings()
