from pydantic_settings import BaseSettings
from functools import lru_cache
from pathlib import Path
from typing import Optional


class ClientSettings(BaseSettings):
    """Client settings loaded from FARMLOG_* environment variables"""

    # Remote API
    API_URL: str = "http://localhost:8000"
    REQUEST_TIMEOUT: float = 10.0

    # Local storage: "file" or "redis"
    STORAGE_BACKEND: str = "file"
    STORAGE_DIR: Path = Path.home() / ".farmlog"
    REDIS_URL: str = "redis://localhost:6379/0"
    REDIS_TIMEOUT: float = 5.0

    # Max seconds to wait for pending writes at shutdown
    WRITE_TIMEOUT: float = 5.0

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_DIR: Optional[Path] = None

    class Config:
        env_prefix = "FARMLOG_"
        env_file = ".env"
        extra = "ignore"


@lru_cache()
def get_client_settings() -> ClientSettings:
    """Cached settings instance"""
    return ClientSettings()
