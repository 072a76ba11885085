"""
Configuration and settings for the site service.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    api_prefix: str = Field(default="/api")
    site_name: str = Field(default="EcoVibe Design")
    admin_path: str = Field(default="/admin")
    log_level: str = Field(default="INFO")

    # Database (Postgres expected)
    database_url: Optional[str] = Field(default=None)

    # S3-compatible object storage
    s3_endpoint: Optional[str] = Field(default=None)
    s3_region: Optional[str] = Field(default=None)
    s3_bucket: str = Field(default="project-images")
    aws_access_key_id: Optional[str] = Field(default=None)
    aws_secret_access_key: Optional[str] = Field(default=None)
    storage_public_base_url: Optional[str] = Field(default=None)

    # Development toggles
    use_in_memory_backends: bool = Field(
        default=False, validation_alias="ECOVIBE_USE_IN_MEMORY_BACKENDS"
    )

    # Sessions (Redis)
    redis_url: Optional[str] = Field(default=None)
    session_ttl_seconds: int = Field(default=60 * 60 * 12)
    session_cookie_name: str = Field(default="ecovibe_admin_session")

    # Admin credentials
    admin_email: str = Field(default="admin@example.com")
    admin_password: str = Field(default="defaultpass")
    admin_password_hash: Optional[str] = Field(default=None)
    admin_passcode: Optional[str] = Field(default=None)

    # Contact details shown on the site
    contact_email: str = Field(default="Shabnam.Rumpf@ecovibe.com")
    contact_phone: str = Field(default="+13522142078")
    contact_phone_display: str = Field(default="(352) 214-2078")
    service_area: str = Field(default="Florida & Surrounding Areas")
    instagram_handle: str = Field(default="@ecovibe.design")
    instagram_url: str = Field(default="https://www.instagram.com/ecovibe.design/")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
