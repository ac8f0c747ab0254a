"""Application configuration via environment variables."""

from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Rule source (defaults to the bundled rules.json)
    RULES_PATH: Optional[str] = None

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 4000
    DEBUG: bool = False
    LOG_LEVEL: str = "info"
    CORS_ORIGINS: list[str] = ["*"]

    # Client side of the validation boundary
    VALIDATION_SERVICE_URL: str = "http://localhost:4000"
    VALIDATION_TIMEOUT_SECONDS: float = 10.0

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


@lru_cache
def get_settings() -> Settings:
    return Settings()
