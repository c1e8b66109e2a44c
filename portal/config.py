"""Phyto Portal: Configuration via pydantic-settings."""

from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    # Database
    DATABASE_URL: str = "sqlite:///./portal.db"

    # Security
    SECRET_KEY: str = "change-me"
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRATION_MINUTES: int = 60 * 12

    # Default admin seeded at startup
    DEFAULT_ADMIN_NAME: str = "Admin"
    DEFAULT_ADMIN_EMAIL: str = "admin@phyto.ma"
    DEFAULT_ADMIN_PASSWORD: str = "admin123"

    # Locale
    TIMEZONE: str = "Africa/Casablanca"
    CURRENCY: str = "MAD"

    # Object storage (local buckets served under /storage)
    STORAGE_DIR: str = "./data/storage"
    PUBLIC_BASE_URL: str = "/storage"
    FORUM_IMAGE_MAX_BYTES: int = 5 * 1024 * 1024
    CATALOGUE_MAX_BYTES: int = 10 * 1024 * 1024

    # Upload dirs
    UPLOAD_DIR: str = "./data/uploads"

    # Zoho Books (EU data center)
    ZOHO_API_BASE: str = "https://www.zohoapis.eu/books/v3"
    ZOHO_ACCOUNTS_URL: str = "https://accounts.zoho.eu/oauth/v2/token"
    ZOHO_ORG_ID: str = ""
    ZOHO_ACCESS_TOKEN: str = ""
    ZOHO_REFRESH_TOKEN: str = ""
    ZOHO_CLIENT_ID: str = ""
    ZOHO_CLIENT_SECRET: str = ""
    ZOHO_PAGE_LIMIT: int = 20
    ZOHO_REQUEST_DELAY: float = 0.2

    # Scheduler
    SCHEDULER_ENABLED: bool = True
    SYNC_INTERVAL_MINUTES: int = 60

    # Environment
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


@lru_cache
def get_settings() -> Settings:
    return Settings()
