"""
LetsRace digest configuration (environment / .env)
"""

from pathlib import Path
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Project paths
    BASE_DIR: Path = Path(__file__).parent.parent

    # Event content host
    events_base_url: str = "https://www.letsrace.cc"
    manifest_path: str = "/data/manifest.json"
    event_cache_ttl_seconds: int = 23 * 60 * 60
    http_timeout_seconds: float = 30.0

    # Public website (links inside the digest)
    base_website_url: str = "https://www.letsrace.cc"
    unsubscribe_page_path: str = "/pages/email-unsubscribed.html"
    privacy_page_path: str = "/pages/privacy.html"

    # Subscriber store
    database_url: str = "sqlite:///./data/letsrace.db"
    subscribers_document_key: str = "subscribers.json"
    store_optimistic_locking: bool = True

    # SMTP
    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 587
    smtp_username: str = ""
    smtp_password: str = ""
    mail_from_address: str = "noreply@letsrace.cc"
    mail_from_name: str = "LetsRace.cc"

    # Auth
    admin_token: str = ""
    token_secret: str = ""

    # Digest
    timezone: str = "Europe/London"
    default_send_day: str = "Friday"

    # Scheduler
    schedule_hour: int = 7
    schedule_minute: int = 0

    # Web
    cors_allowed_origins: list[str] = Field(
        default=["https://www.letsrace.cc", "http://localhost:8000"]
    )

    # Logging
    log_level: str = "INFO"

    @property
    def signing_secret(self) -> str:
        """Unsubscribe token HMAC key"""
        return self.token_secret or self.admin_token or "change-me-in-production"

    @property
    def unsubscribe_page_url(self) -> str:
        return f"{self.base_website_url}{self.unsubscribe_page_path}"

    @property
    def privacy_page_url(self) -> str:
        return f"{self.base_website_url}{self.privacy_page_path}"


@lru_cache()
def get_settings() -> Settings:
    """Return the settings singleton"""
    return Settings()


settings = get_settings()
