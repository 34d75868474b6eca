"""
Exception taxonomy shared by the spreadsheet client layers.

Callers are expected to tell these apart: a transient failure can simply be
retried, while a missing record means the caller's view of the sheet is stale.
"""

from __future__ import annotations


class SheetStoreError(Exception):
    """Base class for every error raised by the spreadsheet client."""


class AuthenticationError(SheetStoreError):
    """Raised when an assertion cannot be signed or exchanged for a token."""


class CredentialError(AuthenticationError):
    """Raised when service-account key material is missing or malformed."""


class TransientTransportError(SheetStoreError):
    """Raised when rate limiting or server errors outlast the retry budget."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class SheetsRequestError(SheetStoreError):
    """Raised when the Sheets API rejects a request with a non-retryable status."""

    def __init__(self, message: str, *, status_code: int) -> None:
        super().__init__(message)
        self.status_code = status_code


class RecordNotFoundError(SheetStoreError):
    """Raised when a primary key is no longer present in its table."""

    def __init__(self, table: str, primary_key: str) -> None:
        super().__init__(
            f"Record {primary_key!r} was not found in table {table!r}; "
            "the loaded data is stale, refresh before editing again."
        )
        self.table = table
        self.primary_key = primary_key


class MappingError(SheetStoreError):
    """Raised when a table or field has no configured column mapping."""


__all__ = [
    "AuthenticationError",
    "CredentialError",
    "MappingError",
    "RecordNotFoundError",
    "SheetStoreError",
    "SheetsRequestError",
    "TransientTransportError",
]
