"""Service layer exports."""

from .access_tokens import AccessTokenManager, CachedToken
from .batch_reader import BatchReader
from .mutation_writer import MutationWriter
from .row_locator import RowLocator
from .schema_mapper import SchemaMapper
from .workbook import WorkbookService

__all__ = [
    "AccessTokenManager",
    "BatchReader",
    "CachedToken",
    "MutationWriter",
    "RowLocator",
    "SchemaMapper",
    "WorkbookService",
]
