from pydantic_settings import BaseSettings
from typing import List
from functools import lru_cache
from pydantic import field_validator


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Application
    APP_NAME: str = "FarmLog API"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False

    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///./farmlog.db"
    DB_TIMEOUT_SECONDS: float = 10.0

    # Security
    SECRET_KEY: str = "your-secret-key-change-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_DAYS: int = 7

    # CORS - comma-separated string from env vars
    CORS_ORIGINS: str = "http://localhost:8081,http://localhost:19006,http://localhost:8000"

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins from comma-separated string"""
        return [origin.strip() for origin in self.CORS_ORIGINS.split(',') if origin.strip()]

    @field_validator('ACCESS_TOKEN_EXPIRE_DAYS')
    @classmethod
    def validate_expiry(cls, v: int) -> int:
        """Token lifetime must be positive"""
        if v <= 0:
            raise ValueError("ACCESS_TOKEN_EXPIRE_DAYS must be positive")
        return v

    class Config:
        env_file = ".env"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    """Cached settings instance"""
    return Settings()


settings = get_settings()
