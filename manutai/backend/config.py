"""Centralized backend configuration and environment-driven settings definitions."""

from __future__ import annotations

from functools import lru_cache
from typing import List, Literal

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
	"""Application settings loaded from environment variables."""

	model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

	DATABASE_URL: str = Field(default="sqlite:///./manutai.db")
	OPENAI_API_KEY: SecretStr = Field(default=SecretStr("sk-replace-with-valid-openai-key"))
	OPENAI_MODEL: str = Field(default="gpt-4o-mini")
	OPENAI_TIMEOUT_SECONDS: float = Field(default=60.0)
	ENVIRONMENT: Literal["development", "staging", "production", "test"] = Field(default="production")
	SESSION_PACING_SECONDS: float = Field(default=0.0)

	app_name: str = Field(default="ManutAI")
	app_version: str = Field(default="1.0.0")
	app_description: str = Field(
		default=(
			"Maintenance inspection API: checklist authoring, AI-guided inspection sessions, "
			"and report export to PDF and WhatsApp."
		)
	)
	debug: bool = Field(default=False)

	api_prefix: str = Field(default="/api/v1")
	frontend_origin: str = Field(default="http://localhost:5173")
	cors_origins: str = Field(default="http://localhost:5173,http://127.0.0.1:5173")

	log_level: str = Field(default="INFO")

	@field_validator("OPENAI_API_KEY")
	@classmethod
	def validate_openai_key(cls, value: SecretStr) -> SecretStr:
		"""Validate OpenAI API key shape for safe startup checks."""
		secret = value.get_secret_value()
		if not secret.startswith("sk-") or len(secret) < 10:
			raise ValueError("OPENAI_API_KEY must start with 'sk-' and be a valid key format.")
		return value

	@field_validator("SESSION_PACING_SECONDS")
	@classmethod
	def validate_session_pacing(cls, value: float) -> float:
		"""Keep the answer-to-question pacing delay within a UX-friendly range."""
		if value < 0 or value > 5:
			raise ValueError("SESSION_PACING_SECONDS must be between 0 and 5.")
		return value

	@property
	def database_url(self) -> str:
		"""Lowercase accessor for database URL."""
		return self.DATABASE_URL

	@property
	def openai_api_key(self) -> str:
		"""Lowercase accessor for OpenAI API key."""
		return self.OPENAI_API_KEY.get_secret_value()

	@property
	def environment(self) -> str:
		"""Lowercase accessor for deployment environment."""
		return self.ENVIRONMENT

	@property
	def allowed_cors_origins(self) -> List[str]:
		"""Return normalized CORS origins list."""
		raw_origins = [item.strip() for item in self.cors_origins.split(",")]
		merged = [origin for origin in raw_origins if origin]
		if self.frontend_origin and self.frontend_origin not in merged:
			merged.append(self.frontend_origin)
		return merged


@lru_cache(maxsize=1)
def get_settings() -> Settings:
	"""Return cached settings instance for dependency injection."""
	return Settings()
