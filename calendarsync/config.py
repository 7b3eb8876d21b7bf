from __future__ import annotations

from functools import lru_cache

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    app_name: str = Field(
        default="calendarsync",
        validation_alias=AliasChoices("CALENDARSYNC_APP_NAME", "APP_NAME"),
    )
    app_host: str = Field(
        default="0.0.0.0",
        validation_alias=AliasChoices("CALENDARSYNC_APP_HOST", "APP_HOST"),
    )
    app_port: int = Field(
        default=5000,
        validation_alias=AliasChoices("CALENDARSYNC_APP_PORT", "APP_PORT"),
    )
    database_url: str = Field(
        default="sqlite+aiosqlite:///./calendarsync.db",
        validation_alias=AliasChoices("CALENDARSYNC_DATABASE_URL", "DATABASE_URL"),
    )
    log_level: str = Field(
        default="INFO",
        validation_alias=AliasChoices("CALENDARSYNC_LOG_LEVEL", "LOG_LEVEL"),
    )
    ics_uid_domain: str = Field(
        default="calendarsync.com",
        validation_alias=AliasChoices("CALENDARSYNC_ICS_UID_DOMAIN", "ICS_UID_DOMAIN"),
    )
    ics_product_id: str = Field(
        default="-//CalendarSync//Calendar Event Creator//EN",
        validation_alias=AliasChoices("CALENDARSYNC_ICS_PRODUCT_ID", "ICS_PRODUCT_ID"),
    )
    import_max_bytes: int = Field(
        default=5 * 1024 * 1024,
        validation_alias=AliasChoices("CALENDARSYNC_IMPORT_MAX_BYTES", "IMPORT_MAX_BYTES"),
    )

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore", populate_by_name=True
    )

    def build_event_uid(self, event_id: object) -> str:
        return f"{event_id}@{self.ics_uid_domain}"


@lru_cache
def get_settings() -> Settings:
    return Settings()
