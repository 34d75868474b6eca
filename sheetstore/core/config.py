"""
Application configuration models and helpers.

Centralizes settings management so the HTTP app, the operations scripts and
the spreadsheet client share one configuration surface. Every value can be
supplied through ``SHEETSTORE_*`` environment variables or a ``.env`` file.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional, Union

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

SPREADSHEETS_SCOPE = "https://www.googleapis.com/auth/spreadsheets"


class ServiceAccountSettings(BaseSettings):
    """Service-account identity used to sign token assertions."""

    model_config = SettingsConfigDict(
        env_prefix="SHEETSTORE_GOOGLE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    key_file: Optional[str] = Field(
        None,
        description="Path to a service-account JSON key. Overrides inline fields.",
    )
    client_email: str = ""
    private_key: str = ""
    private_key_id: Optional[str] = None
    token_uri: str = "https://oauth2.googleapis.com/token"
    scope: str = SPREADSHEETS_SCOPE

    @model_validator(mode="after")
    def _require_key_source(self) -> "ServiceAccountSettings":
        if not self.key_file and not (self.client_email and self.private_key):
            raise ValueError(
                "Provide SHEETSTORE_GOOGLE_KEY_FILE or both "
                "SHEETSTORE_GOOGLE_CLIENT_EMAIL and SHEETSTORE_GOOGLE_PRIVATE_KEY."
            )
        return self


class SheetsSettings(BaseSettings):
    """Spreadsheet identity and the address range of each logical table."""

    model_config = SettingsConfigDict(
        env_prefix="SHEETSTORE_SHEET_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    spreadsheet_id: str = Field(..., min_length=1)
    api_base_url: str = "https://sheets.googleapis.com/v4/spreadsheets"
    range_tasks: str = "Demandas!A2:AB"
    range_collaborators: str = "Colaboradores!A2:E"
    range_log: str = "LOG!A:E"
    range_comments: str = "Comentarios!A:E"
    range_detail: str = "Detalhes!A:D"
    range_settings: str = "Configurações!A:C"
    range_notifications: str = "Notificacao!A:G"

    def table_ranges(self) -> dict[str, str]:
        """Return the configured A1 range keyed by logical table name."""
        return {
            "tasks": self.range_tasks,
            "collaborators": self.range_collaborators,
            "log": self.range_log,
            "comments": self.range_comments,
            "detail": self.range_detail,
            "settings": self.range_settings,
            "notifications": self.range_notifications,
        }


class RetrySettings(BaseSettings):
    """Retry and timeout budget applied to every outbound call."""

    model_config = SettingsConfigDict(
        env_prefix="SHEETSTORE_RETRY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    attempts: int = Field(3, ge=1)
    backoff_seconds: float = Field(2.0, ge=0)
    timeout_seconds: float = Field(30.0, gt=0)


class TokenSettings(BaseSettings):
    """Access token caching policy."""

    model_config = SettingsConfigDict(
        env_prefix="SHEETSTORE_TOKEN_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    safety_margin_seconds: float = Field(60.0, ge=0)
    assertion_lifetime_seconds: int = Field(3600, gt=0, le=3600)


class AppSettings(BaseSettings):
    """Root settings object for the FastAPI application."""

    model_config = SettingsConfigDict(
        env_prefix="SHEETSTORE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    environment: str = "development"
    log_level: str = "INFO"
    service_account: ServiceAccountSettings = Field(
        default_factory=ServiceAccountSettings
    )
    sheets: SheetsSettings = Field(default_factory=SheetsSettings)
    retry: RetrySettings = Field(default_factory=RetrySettings)
    token: TokenSettings = Field(default_factory=TokenSettings)

    @field_validator("log_level")
    @classmethod
    def _normalise_level(cls, value: str) -> str:
        return value.strip().upper()


def load_settings(env_file: Union[str, Path, None] = ".env") -> AppSettings:
    """Build settings, reading every group from the same ``env_file``."""
    return AppSettings(
        _env_file=env_file,
        service_account=ServiceAccountSettings(_env_file=env_file),
        sheets=SheetsSettings(_env_file=env_file),
        retry=RetrySettings(_env_file=env_file),
        token=TokenSettings(_env_file=env_file),
    )


@lru_cache()
def get_settings() -> AppSettings:
    """Return a cached settings object."""
    return load_settings()


__all__ = [
    "AppSettings",
    "RetrySettings",
    "SPREADSHEETS_SCOPE",
    "ServiceAccountSettings",
    "SheetsSettings",
    "TokenSettings",
    "get_settings",
    "load_settings",
]
