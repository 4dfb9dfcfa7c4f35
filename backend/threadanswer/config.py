from __future__ import annotations

from pathlib import Path

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

# Resolve .env from project root (parent of backend/)
_ENV_FILE = Path(__file__).resolve().parents[2] / ".env"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=str(_ENV_FILE), env_file_encoding="utf-8", extra="ignore")

    # App
    ENVIRONMENT: str = "dev"
    LOG_LEVEL: str = "DEBUG"

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000"

    # Canonical thread URLs are built from this when set, else from request headers
    PUBLIC_BASE_URL: str = ""

    # Thread store seed file (JSON list of threads)
    THREADS_FILE: str = ""

    # Comma-separated raw API keys accepted by the in-memory key store
    API_KEYS: SecretStr = SecretStr("")

    # Redis
    REDIS_URL: str = "redis://localhost:6379/0"

    # Quota
    QUOTA_BACKEND: str = "memory"  # memory | redis
    QUOTA_KEY_PREFIX: str = "threadanswer:llm-quota:"

    # LLM (any OpenAI-compatible chat completions endpoint)
    LLM_ENABLED: bool = False
    LLM_API_KEY: SecretStr = SecretStr("")
    LLM_MODEL: str = ""
    LLM_BASE_URL: str = "https://api.openai.com/v1"
    LLM_TEMPERATURE: float = 0.2
    LLM_MAX_TOKENS: int = 700
    LLM_TIMEOUT_SECONDS: float = 30.0

    # LLM policy
    LLM_REQUIRE_API_KEY: bool = True
    LLM_AGENT_ALLOWLIST: str = ""
    LLM_DAILY_LIMIT: int = 50

    @property
    def agent_allowlist(self) -> frozenset[str]:
        """Lowercased agent names allowed to use the model path (empty means unrestricted)."""
        return frozenset(
            name.strip().lower() for name in self.LLM_AGENT_ALLOWLIST.split(",") if name.strip()
        )

    @property
    def api_keys(self) -> list[str]:
        return [key.strip() for key in self.API_KEYS.get_secret_value().split(",") if key.strip()]


settings = Settings()
