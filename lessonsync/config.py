# config.py
from pathlib import Path
from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, ValidationError, field_validator, model_validator
from dotenv import load_dotenv
import logging

from lessonsync.repos.snapshot_storage import DEFAULT_PROGRESS_FILE

load_dotenv()
logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Remote progress API
    API_BASE_URL: str = Field(default="http://localhost:8000/api", description="Base URL of the progress API")
    REQUEST_TIMEOUT_SECONDS: float = Field(default=15.0, ge=1, le=120)
    AUTH_TOKEN: Optional[str] = Field(default=None, description="Bearer token to seed the token store with")

    # Local persistence
    STORAGE_BACKEND: Literal["file", "redis", "memory"] = Field(default="file")
    PROGRESS_FILE: Path = Field(default=DEFAULT_PROGRESS_FILE)
    REDIS_URL: Optional[str] = Field(default=None, description="Redis connection URL")
    PROGRESS_STORAGE_KEY: str = Field(default="user_progress", min_length=1)
    PROGRESS_USER_ID: Optional[str] = Field(default=None, description="Scopes the Redis progress key to one user")

    # Environment
    ENVIRONMENT: str = Field(default="development")
    DEBUG: bool = Field(default=False)
    LOG_FILE: Optional[str] = Field(default=None)

    @field_validator('API_BASE_URL')
    @classmethod
    def validate_api_base_url(cls, v):
        if not v.startswith(('http://', 'https://')):
            raise ValueError('API_BASE_URL must be an http(s) URL')
        return v.rstrip('/')

    @field_validator('REDIS_URL')
    @classmethod
    def validate_redis_url(cls, v):
        if v is not None and not v.startswith(('redis://', 'rediss://')):
            raise ValueError('REDIS_URL must be a valid Redis connection string')
        return v

    @model_validator(mode='after')
    def validate_storage_backend(self):
        if self.STORAGE_BACKEND == "redis" and not self.REDIS_URL:
            raise ValueError('REDIS_URL is required when STORAGE_BACKEND is "redis"')
        return self

    @property
    def log_level(self) -> str:
        return "DEBUG" if self.DEBUG else "INFO"


def load_settings(**overrides) -> Settings:
    try:
        settings = Settings(**overrides)
    except ValidationError as e:
        logger.critical(f"Failed to load configuration: {str(e)}")
        raise
    logger.info("Configuration loaded successfully")
    return settings
