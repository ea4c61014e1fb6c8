"""
Configuration and settings for the CatChat client core.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-backed settings for the app shell."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    api_prefix: str = Field(default="/api")

    # Firebase project (Firestore + Authentication)
    firebase_project_id: Optional[str] = Field(default=None)
    firebase_api_key: Optional[str] = Field(default=None)
    google_application_credentials: Optional[str] = Field(default=None)
    firebase_auth_emulator_host: Optional[str] = Field(default=None)
    identity_request_timeout: int = Field(default=30)

    # Development toggles
    use_in_memory_backends: bool = Field(
        default=False, validation_alias="CATCHAT_USE_IN_MEMORY_BACKENDS"
    )

    log_level: str = Field(default="INFO", validation_alias="CATCHAT_LOG_LEVEL")

    @property
    def firebase_configured(self) -> bool:
        return bool(self.firebase_project_id and self.firebase_api_key)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
