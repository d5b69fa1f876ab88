# roleplay/core/config.py
from typing import List, Optional
from pydantic import Field
from pydantic_settings import BaseSettings
import logging


class Settings(BaseSettings):
    """Basic application settings"""
    APP_NAME: str = "Support Roleplay Trainer"

    # Speech settings
    SPEECH_LOCALE: str = "en-GB"
    SPEECH_PAUSE_TOKEN: str = " "

    # API settings
    API_KEY: Optional[str] = Field(default=None, alias="ROLEPLAY_API_KEY")
    ALLOWED_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:5173",
    ]
    RATE_LIMIT_TIER: str = "default"
    PORT: int = 8000

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
        "populate_by_name": True
    }


# Module-level settings instance
settings = Settings()


def validate_required_settings() -> bool:
    """Checks optional settings and warns about insecure defaults"""
    logger = logging.getLogger(__name__)
    valid = True

    if not settings.API_KEY:
        logger.warning("No ROLEPLAY_API_KEY set - API is open to any local client")
        valid = False

    if not settings.SPEECH_LOCALE.lower().startswith("en"):
        logger.warning(f"Speech locale {settings.SPEECH_LOCALE} is not English - scripted lines are English only")
        valid = False

    return valid
