"""
Application Configuration
Loads settings from environment variables
"""

from datetime import datetime
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from .env file"""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

    # Application
    APP_ENV: str = "development"
    APP_NAME: str = "RSVP Desk"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: str = "*"

    # Database (sqlite:// selects the embedded engine, postgresql:// the server engine)
    DATABASE_URL: str = "sqlite:///./rsvp.db"

    # Admin shared secret, required at startup
    ADMIN_PASSWORD: Optional[str] = None

    # Email (primary transport)
    SEND_CONFIRMATION_EMAILS: bool = True
    SMTP_HOST: Optional[str] = "smtp.gmail.com"
    SMTP_PORT: int = 587
    SMTP_USER: Optional[str] = None
    SMTP_PASSWORD: Optional[str] = None
    EMAIL_FROM: str = "events@kdsp.com"
    EMAIL_FROM_NAME: str = "KDSP Events"
    EMAIL_TIMEOUT_SECONDS: float = 10.0

    # Email (secondary relay, optional)
    FALLBACK_SMTP_HOST: Optional[str] = None
    FALLBACK_SMTP_PORT: int = 587
    FALLBACK_SMTP_USER: Optional[str] = None
    FALLBACK_SMTP_PASSWORD: Optional[str] = None

    # Event details used by confirmation emails and the calendar invite
    EVENT_TITLE: str = "KDSP Annual Gala Celebration"
    EVENT_DESCRIPTION: str = (
        "Join us for an unforgettable evening of celebration, networking, and entertainment. "
        "Dress code: Formal attire. Complimentary valet parking available. "
        "Dinner and drinks will be provided."
    )
    EVENT_START: datetime = datetime(2025, 12, 14, 18, 0)
    EVENT_END: datetime = datetime(2025, 12, 14, 23, 0)
    EVENT_LOCATION: str = "Grand Ballroom, Convention Center"
    EVENT_URL: str = "https://kdsp.com/events"
    EVENT_CONTACT_EMAIL: str = "events@kdsp.com"
    ORGANIZER_NAME: str = "KDSP Events"

    @property
    def cors_origins(self) -> List[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    @property
    def primary_smtp_configured(self) -> bool:
        return bool(self.SMTP_HOST and self.SMTP_USER and self.SMTP_PASSWORD)

    @property
    def fallback_smtp_configured(self) -> bool:
        return bool(self.FALLBACK_SMTP_HOST)


def get_settings() -> Settings:
    """Build settings from the current environment"""
    return Settings()


def validate_settings(settings: Settings) -> None:
    """
    Refuse to start with settings that would leave the service unsafe or unusable

    Raises:
        ConfigurationError: If ADMIN_PASSWORD is unset/blank or DATABASE_URL is unsupported
    """
    from rsvpdesk.database import engine_name
    from rsvpdesk.exceptions import ConfigurationError

    if not (settings.ADMIN_PASSWORD or "").strip():
        raise ConfigurationError("ADMIN_PASSWORD must be set; refusing to start without an admin secret")
    engine_name(settings.DATABASE_URL)
