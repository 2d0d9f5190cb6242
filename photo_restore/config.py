"""Application configuration using Pydantic Settings"""

from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Application
    environment: str = "development"
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    # Database
    database_url: str
    database_pool_size: int = 5
    database_max_overflow: int = 10

    # Redis (rate limiting)
    redis_url: str = "redis://localhost:6379/0"

    # AWS / S3
    aws_region: str = "us-east-1"
    aws_access_key_id: Optional[str] = None
    aws_secret_access_key: Optional[str] = None
    aws_endpoint_url: Optional[str] = None
    s3_bucket: str = "photos"
    signed_url_ttl_seconds: int = 3600
    max_upload_bytes: int = 10 * 1024 * 1024

    # Identity provider tokens
    jwt_secret: str
    jwt_algorithm: str = "HS256"
    jwt_audience: Optional[str] = None

    # Restoration model
    gemini_api_key: Optional[str] = None
    gemini_api_base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    gemini_model: str = "gemini-2.5-flash-image"
    gemini_timeout_seconds: float = 120.0

    # CORS
    cors_origins: str = "http://localhost:5173,http://localhost:3000"

    # Logging
    log_level: str = "INFO"

    # Rate Limiting
    enhance_rate_limit_per_minute: int = 20

    # Jobs left in "running" longer than this are failed by scripts/reconcile_jobs.py
    stale_job_minutes: int = 30

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins into a list"""
        return [origin.strip() for origin in self.cors_origins.split(",")]

    @property
    def async_database_url(self) -> str:
        """Database URL with an async driver"""
        return self.database_url.replace("postgresql://", "postgresql+asyncpg://")


# Global settings instance
settings = Settings()
