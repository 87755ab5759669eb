from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache
from typing import Literal

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    LOG_JSON: bool = True  # JSON logs; console renderer when False
    # Token codec
    CSRF_TOKEN_NAME: str = "csrf_token"
    CSRF_ALLOWED_EXPIRY_MS: int = Field(default=60 * 60 * 1000, ge=0)
    # Diagnostics sink selection: "stderr", "structlog" or "null"
    CSRF_DIAGNOSTICS: Literal["stderr", "structlog", "null"] = "stderr"
    CSRF_METRICS_ENABLED: bool = False  # Count diagnostics in Prometheus

@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
