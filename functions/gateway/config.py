"""
Configuration and settings for the gateway service.
"""

from __future__ import annotations

from functools import lru_cache
from typing import List, Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    host: str = Field(default="0.0.0.0")
    port: int = Field(default=3000)
    log_level: str = Field(default="INFO")

    # Token signing. There is deliberately no default secret.
    jwt_secret: str = Field(..., min_length=1)
    jwt_algorithm: str = Field(default="HS256")
    token_expire_minutes: Optional[int] = Field(default=None, gt=0)

    bcrypt_rounds: int = Field(default=10, ge=4, le=31)

    # Firebase (identity, Firestore, Cloud Storage)
    firebase_credentials: Optional[str] = Field(default=None)
    storage_bucket: Optional[str] = Field(default=None)

    users_collection: str = Field(default="users")
    items_collection: str = Field(default="items")
    upload_prefix: str = Field(default="uploads")

    # Object storage
    blob_backend: Literal["firebase", "s3"] = Field(default="firebase")
    s3_bucket: Optional[str] = Field(default=None)
    s3_region: Optional[str] = Field(default=None)
    s3_endpoint: Optional[str] = Field(default=None)
    aws_access_key_id: Optional[str] = Field(default=None)
    aws_secret_access_key: Optional[str] = Field(default=None)
    public_base_url: Optional[str] = Field(default=None)

    max_upload_bytes: int = Field(default=5 * 1024 * 1024, gt=0)
    dependency_timeout_seconds: float = Field(default=30.0, gt=0)
    expose_dependency_errors: bool = Field(default=False)

    # Comma-separated list of allowed origins.
    cors_origins: str = Field(default="*")

    # Development toggles
    use_in_memory_backends: bool = Field(default=False)

    @property
    def cors_origin_list(self) -> List[str]:
        return [i.strip() for i in self.cors_origins.split(",") if i.strip()]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
