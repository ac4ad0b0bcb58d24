"""
WasteCollect Server - Configuration
"""
from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import Optional
import secrets
from pathlib import Path
from dotenv import load_dotenv

# .env at the project root wins over variables already set in the shell
env_file = Path(__file__).parent.parent.parent / ".env"
if env_file.exists():
    load_dotenv(env_file, override=True)


class Settings(BaseSettings):
    # App
    APP_NAME: str = "WasteCollect Server"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8080

    # Database (accepts DATABASE_URL or WASTECOLLECT_DATABASE_URL)
    DATABASE_URL: Optional[str] = None
    WASTECOLLECT_DATABASE_URL: str = "sqlite+aiosqlite:///./wastecollect.db"

    @property
    def db_url(self) -> str:
        """Returns DATABASE_URL if set, otherwise WASTECOLLECT_DATABASE_URL"""
        return self.DATABASE_URL or self.WASTECOLLECT_DATABASE_URL

    # Security
    SECRET_KEY: str = secrets.token_urlsafe(32)
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24
    LOGIN_RATE_LIMIT: str = "10/minute"

    # Bootstrap admin (created on first startup)
    ADMIN_EMAIL: str = "admin@wastecollect.local"
    ADMIN_PASSWORD: str = "change-me-in-production"

    # CORS
    CORS_ORIGINS: list = ["*"]

    # Email Settings (SMTP)
    SMTP_HOST: str = "smtp.gmail.com"
    SMTP_PORT: int = 587
    SMTP_USER: Optional[str] = None
    SMTP_PASSWORD: Optional[str] = None
    SMTP_FROM_EMAIL: str = "noreply@wastecollect.local"
    SMTP_FROM_NAME: str = "WasteCollect"
    SMTP_TLS: bool = True

    # Internal error e-mails
    ERROR_NOTIFICATION_ENABLED: bool = False
    ERROR_NOTIFICATION_EMAIL: str = "ops@wastecollect.local"

    # Reports
    REPORTS_DIR: str = "./reports"

    # Underserved-area defaults
    UNDERSERVED_DAYS_THRESHOLD: int = 30
    UNDERSERVED_MIN_PENDING_REQUESTS: int = 3

    # Collector objectives
    COLLECTOR_MONTHLY_TARGET_COLLECTIONS: int = 100
    COLLECTOR_MONTHLY_TARGET_REVENUE: float = 500000.0
    COLLECTOR_TARGET_RATING: float = 4.5

    class Config:
        extra = "ignore"
        env_file = ".env"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
