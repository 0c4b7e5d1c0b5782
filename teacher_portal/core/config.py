"""
Application Configuration

Uses Pydantic Settings for environment variable management with validation.
"""

from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Security
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    SESSION_EXPIRE_MINUTES: int = 480  # one working day
    SESSION_COOKIE_NAME: str = "teacher_session"
    MAX_SESSIONS: int = 1000
    SESSION_SWEEP_SECONDS: int = 60

    # Environment
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:3001,http://localhost:5173"

    # Upstream services
    BACKEND_API_URL: str = "http://localhost:3000/api/proxy/backend"
    STUDENT_API_URL: str = "http://localhost:3000/api/proxy/student"
    HTTP_TIMEOUT: float = 30.0

    # Optional admin login performed after a teacher signs in
    ADMIN_EMAIL: str = ""
    ADMIN_PASSWORD: str = ""

    # Login throttling
    LOGIN_RATE_PER_MINUTE: int = 10
    LOGIN_BURST: int = 5
    TRUST_FORWARDED_FOR: bool = False  # only behind a proxy that sets X-Forwarded-For

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
    )

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins from comma-separated string."""
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",")]

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.ENVIRONMENT == "development"

    @property
    def admin_login_enabled(self) -> bool:
        return bool(self.ADMIN_EMAIL and self.ADMIN_PASSWORD)


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.
    
    Using lru_cache ensures settings are only loaded once.
    """
    return Settings()


# Global settings instance
settings = get_settings()
