"""
API Configuration

All secrets loaded from environment variables.
NEVER hardcode API keys, passwords, or secrets.
"""

from functools import lru_cache
from typing import List, Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # App info
    app_name: str = "kitchenCOGS API"
    app_version: str = "0.1.0"
    debug: bool = False

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    # CORS
    cors_origins: str = "http://localhost:5173,http://localhost:3000"

    # Storage
    database_path: str = "./data/db/kitchencogs.db"

    # Day boundary (IANA name); all "today" filtering uses shop-local midnight
    shop_timezone: str = "Africa/Lagos"

    # Usage: comma-separated order channels to count (online,instore,chowdeck); empty = all
    usage_channels: str = ""

    # Low-stock alerts
    alerts_enabled: bool = True
    alerts_require_catalog_identity: bool = True
    rice_threshold_grams: float = 900
    piece_threshold: float = 3

    # Email (SMTP); alerts are logged only if user/password are missing
    email_host: str = "smtp.gmail.com"
    email_port: int = 587
    email_fallback_port: Optional[int] = 465
    email_user: Optional[str] = None  # Loaded from EMAIL_USER env var
    email_password: Optional[str] = None  # Loaded from EMAIL_PASSWORD env var
    email_to: Optional[str] = None
    email_from: Optional[str] = None

    # Logging
    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False

    @property
    def cors_origin_list(self) -> List[str]:
        """Parse comma-separated CORS origins."""
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def email_enabled(self) -> bool:
        return bool(self.email_user and self.email_password)


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
