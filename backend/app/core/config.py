"""Application configuration."""
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache
from typing import Union, List
from pydantic import field_validator


class Settings(BaseSettings):
    """Application settings."""

    # Application
    app_name: str = "Grant Proposal Review"
    app_version: str = "1.0.0"
    debug: bool = False
    log_level: str = "INFO"

    # API
    api_prefix: str = "/api/v1"
    cors_origins: Union[List[str], str] = ["http://localhost:3000", "http://localhost:5173"]

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, v: Union[List[str], str]) -> List[str]:
        """Parse CORS origins from string or list."""
        if isinstance(v, str):
            # Split by comma and strip whitespace
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    # Authentication gateway headers
    actor_id_header: str = "X-Actor-Id"
    actor_role_header: str = "X-Actor-Role"

    # Database
    database_url: str = "sqlite+aiosqlite:///./data/proposals.db"

    # Document storage
    upload_dir: str = "./data/uploads"
    max_upload_bytes: int = 10 * 1024 * 1024  # 10MB
    allowed_document_extensions: Union[List[str], str] = [".pdf", ".doc", ".docx"]

    @field_validator("allowed_document_extensions", mode="before")
    @classmethod
    def parse_extensions(cls, v: Union[List[str], str]) -> List[str]:
        """Parse allowed extensions from string or list."""
        if isinstance(v, str):
            return [ext.strip().lower() for ext in v.split(",") if ext.strip()]
        return [ext.lower() for ext in v]

    # Notifications
    notification_backend: str = "log"  # log or celery
    notification_task_name: str = "notifications.proposal_status_changed"
    notification_publish_attempts: int = 3

    # Celery
    celery_broker_url: str = "redis://localhost:6379/0"
    celery_result_backend: str = "redis://localhost:6379/1"

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
