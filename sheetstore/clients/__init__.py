"""Expose constructed client wrappers."""

from .google_auth import GoogleTokenClient
from .google_sheets import GoogleSheetsClient
from .service_account import AssertionSigner, ServiceAccountKey

__all__ = [
    "AssertionSigner",
    "GoogleSheetsClient",
    "GoogleTokenClient",
    "ServiceAccountKey",
]
