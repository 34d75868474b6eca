"""
Factory functions to provide shared clients and services as FastAPI dependencies.
"""

from functools import lru_cache

import httpx

from sheetstore.clients import (
    AssertionSigner,
    GoogleSheetsClient,
    GoogleTokenClient,
    ServiceAccountKey,
)
from sheetstore.core.config import get_settings
from sheetstore.schemas.tables import TableRegistry
from sheetstore.services import (
    AccessTokenManager,
    BatchReader,
    MutationWriter,
    RowLocator,
    SchemaMapper,
    WorkbookService,
)
from sheetstore.utils.http import RetryConfig


@lru_cache()
def _settings():
    """Internal helper to cache settings for client factories."""
    return get_settings()


@lru_cache()
def get_http_client() -> httpx.AsyncClient:
    """Shared connection pool; closed by the application lifespan."""
    settings = _settings()
    return httpx.AsyncClient(timeout=settings.retry.timeout_seconds)


@lru_cache()
def get_retry_config() -> RetryConfig:
    settings = _settings()
    return RetryConfig(
        attempts=settings.retry.attempts,
        backoff_seconds=settings.retry.backoff_seconds,
        timeout_seconds=settings.retry.timeout_seconds,
    )


@lru_cache()
def get_service_account_key() -> ServiceAccountKey:
    """Load the service-account key once per process."""
    return ServiceAccountKey.from_settings(_settings().service_account)


@lru_cache()
def get_assertion_signer() -> AssertionSigner:
    """Build the signer; malformed key material fails here, at startup."""
    settings = _settings()
    return AssertionSigner(
        get_service_account_key(),
        lifetime_seconds=settings.token.assertion_lifetime_seconds,
    )


@lru_cache()
def get_token_client() -> GoogleTokenClient:
    return GoogleTokenClient(
        get_http_client(),
        token_uri=get_service_account_key().token_uri,
        retry_config=get_retry_config(),
    )


@lru_cache()
def get_token_manager() -> AccessTokenManager:
    """Provide the process-wide access token cache."""
    settings = _settings()
    return AccessTokenManager(
        get_assertion_signer(),
        get_token_client(),
        safety_margin_seconds=settings.token.safety_margin_seconds,
    )


@lru_cache()
def get_table_registry() -> TableRegistry:
    return TableRegistry.from_ranges(_settings().sheets.table_ranges())


@lru_cache()
def get_sheets_client() -> GoogleSheetsClient:
    """Provide Google Sheets values client instance."""
    settings = _settings()
    return GoogleSheetsClient(
        get_http_client(),
        get_token_manager(),
        spreadsheet_id=settings.sheets.spreadsheet_id,
        base_url=settings.sheets.api_base_url,
        retry_config=get_retry_config(),
    )


@lru_cache()
def get_workbook_service() -> WorkbookService:
    """Wire the reader, locator and writer around the shared sheets client."""
    sheets = get_sheets_client()
    tables = get_table_registry()
    mapper = SchemaMapper()
    locator = RowLocator(sheets, tables)
    return WorkbookService(
        reader=BatchReader(sheets, tables, mapper),
        writer=MutationWriter(sheets, tables, locator, mapper),
    )


__all__ = [
    "get_assertion_signer",
    "get_http_client",
    "get_retry_config",
    "get_service_account_key",
    "get_sheets_client",
    "get_table_registry",
    "get_token_client",
    "get_token_manager",
    "get_workbook_service",
]
