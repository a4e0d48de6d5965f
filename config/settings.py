"""Application settings and configuration management."""
from __future__ import annotations

from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

SessionBackend = Literal["auto", "redis", "memory", "none"]


class Settings(BaseSettings):
    """Settings loaded from environment variables or defaults."""

    DB_PATH: str = Field(default="data/advisor_desk.db")

    REDIS_URL: Optional[str] = None
    SESSION_BACKEND: SessionBackend = "auto"
    SESSION_TTL_SECONDS: int = 86400

    MAX_MESSAGE_CHARS: int = 2000
    ROUTER_CONFIDENCE_HITS: int = 2
    SANITIZER_CONFIG: str = "config/sanitizer.yaml"

    LLM_ROUTES_PATH: Optional[str] = None
    LLM_BASE_URL: str = "https://api.anthropic.com"
    LLM_MODEL: str = "claude-3-haiku-20240307"
    LLM_API_KEY_ENV: str = "ANTHROPIC_API_KEY"
    LLM_TIMEOUT_S: float = 30.0

    ALLOWED_ORIGINS: str = "http://localhost:3000"

    model_config = SettingsConfigDict(env_file=".env", validate_assignment=True, extra="ignore")

    def allowed_origins(self) -> list[str]:
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",") if origin.strip()]


settings = Settings()
