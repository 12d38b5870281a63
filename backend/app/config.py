"""
Application configuration
Read from environment variables / .env
"""
import logging
from typing import Optional
from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings"""

    APP_NAME: str = "Baithaka Pricing"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Database
    DATABASE_URL: str = "sqlite:///./pricing.db"

    # Pricing engine
    DEFAULT_CURRENCY: str = "INR"
    MAX_ADVANCE_DAYS: Optional[int] = 365
    STORE_TIMEOUT_SECONDS: Optional[float] = 2.0
    STAY_MAX_WORKERS: int = 8
    CALENDAR_MAX_DAYS: int = 366

    model_config = ConfigDict(env_file=".env", case_sensitive=True)


def configure_logging(level: Optional[str] = None) -> None:
    """Configure root logging for the service process."""
    logging.basicConfig(
        level=(level or settings.LOG_LEVEL).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# Global settings instance
settings = Settings()
