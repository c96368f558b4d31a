"""
Application Configuration

Uses Pydantic Settings for type-safe configuration.
"""

from pathlib import Path
from typing import List, Optional
from pydantic_settings import BaseSettings
from pydantic import Field, field_validator, ConfigDict

# Project root: routebase/ (repository checkout)
PROJECT_ROOT = Path(__file__).parent.parent.parent


class Settings(BaseSettings):
    """Application settings with validation."""

    # === Core ===
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Logging level")

    # === Database ===
    database_url: str = Field(
        default="sqlite:///./routebase.db",
        description="Database connection URL"
    )

    # === CORS ===
    cors_origins: List[str] = Field(
        default_factory=lambda: ["http://localhost:5173", "http://localhost:3000"],
        description="Allowed CORS origins"
    )

    # === Blob storage ===
    blob_backend: str = Field(
        default="local",
        description="Where raw GPX files live: 'local' or 's3'"
    )
    blob_local_dir: str = Field(
        default="./blobs",
        description="Directory for the local blob backend"
    )
    s3_bucket_name: Optional[str] = Field(default=None)
    s3_endpoint_url: Optional[str] = Field(
        default=None,
        description="Custom endpoint for S3-compatible storage (e.g. Cloudflare R2)"
    )
    s3_access_key_id: Optional[str] = Field(default=None)
    s3_secret_access_key: Optional[str] = Field(default=None)
    s3_region: str = Field(default="auto")

    # === Routes ===
    download_url_ttl_minutes: int = Field(default=15, ge=1)
    public_download_url_ttl_minutes: int = Field(
        default=1,
        ge=1,
        description="Lifetime of download links handed out without authentication"
    )
    max_upload_mb: int = Field(default=20, ge=1)

    @field_validator('database_url')
    @classmethod
    def fix_postgres_url(cls, v: str) -> str:
        """Fix Render/Railway postgres:// URL to postgresql://"""
        if v.startswith("postgres://"):
            return v.replace("postgres://", "postgresql://", 1)
        return v

    @field_validator('cors_origins', mode='before')
    @classmethod
    def parse_cors_origins(cls, v):
        """Parse CORS origins from comma-separated string."""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(',')]
        return v

    @field_validator('blob_backend')
    @classmethod
    def check_blob_backend(cls, v: str) -> str:
        v = v.lower()
        if v not in ("local", "s3"):
            raise ValueError("blob_backend must be 'local' or 's3'")
        return v

    @property
    def max_upload_bytes(self) -> int:
        return self.max_upload_mb * 1024 * 1024

    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )


# Global settings instance
settings = Settings()
