"""Application configuration."""
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    DATABASE_URL: str

    # Application
    APP_ENV: str = "development"
    SECRET_KEY: str
    API_V1_PREFIX: str = "/api"
    LOG_LEVEL: str = "INFO"

    # Frontend
    FRONTEND_URL: str = "http://localhost:3975"

    # Rate limiting
    RATE_LIMIT_DEFAULT: str = "200/minute"
    RATE_LIMIT_ENABLED: bool = True

    # Obligations
    RENT_DUE_DAY: int = 10  # Day of month rent obligations fall due

    # Dashboard alerts
    CONTRACT_EXPIRY_ALERT_DAYS: int = 30
    DUE_SOON_ALERT_DAYS: int = 5

    # Rent indices (ICL / IPC)
    RENT_INDEX_API_URL: str = "https://api.argly.com.ar/api"
    RENT_INDEX_CACHE_TTL_SECONDS: int = 3600
    RENT_INDEX_TIMEOUT_SECONDS: float = 30.0

    # Background jobs
    SCHEDULER_ENABLED: bool = True
    GENERATION_DAY_OF_MONTH: int = 1
    OVERDUE_CHECK_HOUR: int = 6

    # CORS
    @property
    def ALLOWED_ORIGINS(self) -> List[str]:
        if self.APP_ENV == "development":
            return ["*"]  # Allow all origins in development
        return [origin.strip() for origin in self.FRONTEND_URL.split(",") if origin.strip()]

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True
    )


settings = Settings()
