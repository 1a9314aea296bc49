"""
Configuration management for AfterHeal
"""

from typing import Optional
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Application
    APP_NAME: str = "AfterHeal"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ENV: str = "development"

    # API
    API_PREFIX: str = "/api/v1"
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # Database
    DATABASE_URL: str = "sqlite:///./afterheal.db"
    DATABASE_ECHO: bool = False

    # Missed-dose engine
    MISSED_DOSE_THRESHOLD_MINUTES: int = 30
    SCAN_INTERVAL_SECONDS: float = 60.0
    DOSE_GENERATION_DAYS: int = 30
    DOSE_HISTORY_DAYS: int = 0

    # SMS delivery: "simulation", "twilio" or "vonage"
    SMS_PROVIDER: str = "simulation"
    SMS_REQUEST_TIMEOUT_SECONDS: Optional[float] = None

    TWILIO_ACCOUNT_SID: Optional[str] = None
    TWILIO_AUTH_TOKEN: Optional[str] = None
    TWILIO_PHONE_NUMBER: Optional[str] = None
    TWILIO_BASE_URL: str = "https://api.twilio.com/2010-04-01"

    VONAGE_API_KEY: Optional[str] = None
    VONAGE_API_SECRET: Optional[str] = None
    VONAGE_FROM: str = "AfterHeal"
    VONAGE_BASE_URL: str = "https://rest.nexmo.com"

    # CORS
    CORS_ORIGINS: list[str] = ["http://localhost:3000", "http://localhost:5173"]

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


class EngineConfig:
    """Fixed constants for dose generation and alert rendering"""

    # Dose slots (hour of day) keyed by doses per day
    DOSE_SLOTS: dict[int, list[int]] = {
        1: [8],
        2: [8, 20],
        3: [8, 14, 20],
    }

    # Adherence bands (percent)
    ADHERENCE_GOOD: int = 80
    ADHERENCE_MODERATE: int = 60

    # Unread badge shows "9+" above this
    BADGE_CAP: int = 9

    DUE_TIME_FORMAT: str = "%b %d, %I:%M %p"
    DEFAULT_RELATION: str = "Emergency Contact"


# Database table names
class TableNames:
    USERS = "users"
    MEDICATIONS = "medications"
    DOSES = "doses"
    EMERGENCY_CONTACTS = "emergency_contacts"
    CAREGIVER_ASSIGNMENTS = "caregiver_assignments"
    NOTIFICATIONS = "notifications"
    ALERT_LOGS = "alert_logs"


settings = get_settings()
engine_config = EngineConfig()
