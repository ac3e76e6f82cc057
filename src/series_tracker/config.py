"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    telegram_bot_token: str
    supabase_url: str
    supabase_service_key: str
    admin_token: str
    poiskkino_api_key: str
    poiskkino_base_url: str = "https://api.poiskkino.dev"
    session_ttl_days: int = 30
    session_cookie_name: str = "session"
    session_cookie_secure: bool = True
    allow_dev_user: bool = False
    dev_telegram_user_id: int = 1
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )

    @property
    def is_local(self) -> bool:
        """Return true when running outside a deployed environment."""
        return self.environment == "local"
