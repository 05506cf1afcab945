"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str | None = None
    supabase_service_key: str | None = None
    storage_bucket: str = "customizer-uploads"
    storage_root: str = "customizer"
    shopify_shop_domain: str | None = None
    shopify_access_token: str | None = None
    shopify_api_version: str = "2024-10"
    cleanup_secret: str | None = None
    canvas_size: int = 500
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )

    @property
    def storage_configured(self) -> bool:
        """Whether Supabase credentials are present."""
        return bool(self.supabase_url and self.supabase_service_key)
