"""
Configuration and settings for the NWU Connect backend.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from nwu_connect.constants import CANDIDATE_POOL_SIZE


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    api_prefix: str = Field(default="")
    log_level: str = Field(default="INFO")
    cors_origins: list[str] = Field(
        default=[
            "http://localhost:3001",
            "http://localhost:3000",
            "http://10.0.2.2:3000",
        ]
    )

    # Database (Postgres expected; any SQLAlchemy URL works)
    database_url: Optional[str] = Field(default=None)

    # Firebase: identity provider, realtime database, push gateway
    firebase_service_account_path: Optional[str] = Field(default=None)
    firebase_database_url: Optional[str] = Field(default=None)

    # Cloudflare R2 (S3-compatible) object storage
    r2_account_id: Optional[str] = Field(default=None)
    r2_access_key_id: Optional[str] = Field(default=None)
    r2_secret_access_key: Optional[str] = Field(default=None)
    r2_bucket_name: Optional[str] = Field(default=None)
    r2_public_domain: str = Field(default="")

    # Queue (Redis) for broadcast fan-out
    redis_url: Optional[str] = Field(default=None)
    redis_queue_key: str = Field(default="nwu:broadcasts")

    # Development toggles
    use_in_memory_backends: bool = Field(default=False)

    # Discovery / feed tuning
    candidate_pool_size: int = Field(default=CANDIDATE_POOL_SIZE, ge=1, le=100)
    feed_page_size: int = Field(default=20, ge=1, le=100)

    @property
    def firebase_configured(self) -> bool:
        return bool(self.firebase_service_account_path or self.firebase_database_url)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
