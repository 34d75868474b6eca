"""Expose dependency helpers for FastAPI routers."""

from .clients import (
    get_assertion_signer,
    get_http_client,
    get_retry_config,
    get_service_account_key,
    get_sheets_client,
    get_table_registry,
    get_token_client,
    get_token_manager,
    get_workbook_service,
)
from .config import SettingsDependency, get_app_settings

__all__ = [
    "SettingsDependency",
    "get_app_settings",
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
