"""Application configuration using Pydantic Settings."""

from functools import lru_cache
from typing import Literal

from pydantic import computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Application
    app_name: str = "StudyDesk"
    environment: Literal["development", "staging", "production"] = "development"
    debug: bool = False
    log_level: str = "INFO"
    log_format: Literal["text", "json"] = "text"

    # CORS
    cors_origins: list[str] = ["http://localhost:5173"]

    # Firebase (authentication + profile/subject/assignment/exam documents)
    firebase_api_key: str | None = None
    firebase_project_id: str | None = None
    firebase_credentials_file: str | None = None  # Service account JSON; ADC when unset
    firebase_database: str | None = None  # Firestore database id; "(default)" when unset
    firebase_verify_id_tokens: bool = True
    firebase_refresh_token: str | None = None  # Restores a signed-in session at startup
    firebase_auth_url: str = "https://identitytoolkit.googleapis.com/v1"
    firebase_token_url: str = "https://securetoken.googleapis.com/v1/token"

    # Note metadata database (optional integration)
    notes_database_url: str | None = None

    @computed_field
    @property
    def notes_database_url_async(self) -> str | None:
        """Async driver URL for the note metadata database, or None when not configured."""
        if not self.notes_database_url:
            return None
        url = self.notes_database_url
        # Replace scheme for async driver
        if url.startswith("postgresql://"):
            url = url.replace("postgresql://", "postgresql+asyncpg://", 1)
        elif url.startswith("postgres://"):
            url = url.replace("postgres://", "postgresql+asyncpg://", 1)
        # asyncpg doesn't accept query params via URL; SSL goes through connect_args
        if "?" in url:
            url = url.split("?")[0]
        return url

    @computed_field
    @property
    def notes_database_requires_ssl(self) -> bool:
        """Check if the note metadata database requires SSL (Supabase, Neon, etc.)."""
        if self.notes_database_url:
            return "sslmode=require" in self.notes_database_url or "ssl=require" in self.notes_database_url
        return False

    @computed_field
    @property
    def notes_database_url_sync(self) -> str | None:
        """Sync database URL for Alembic."""
        if not self.notes_database_url:
            return None
        url = self.notes_database_url
        if url.startswith("postgres://"):
            url = url.replace("postgres://", "postgresql://", 1)
        elif url.startswith("postgresql+asyncpg://"):
            url = url.replace("postgresql+asyncpg://", "postgresql://", 1)
        return url

    # S3-compatible object storage for note files (optional integration)
    aws_access_key_id: str | None = None
    aws_secret_access_key: str | None = None
    aws_s3_bucket: str | None = None
    aws_s3_region: str = "us-east-2"
    aws_s3_endpoint_url: str | None = None  # Set for MinIO/LocalStack/Supabase (e.g. http://localhost:9000)
    aws_s3_public_base_url: str | None = None  # Public URL prefix for stored objects, if not the bucket URL
    notes_cache_control: str = "max-age=3600"

    # Note upload
    max_note_size_bytes: int = 10 * 1024 * 1024  # 10MB


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def sanitize_error(error: Exception, *, generic_message: str = "An internal error occurred.") -> str:
    """
    Return a user-safe error message.

    In development, returns the full exception string for debugging.
    In staging/production, returns a generic message to avoid leaking internals.
    """
    settings = get_settings()
    if settings.environment == "development":
        return str(error)
    return generic_message
