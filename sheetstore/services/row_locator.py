"""
Resolve the current physical row of a record by its primary key.

Rows in the backing sheet can be sorted, inserted or deleted by people at any
moment, so a row number captured at load time cannot be trusted. Every
mutation asks this locator first.
"""

from __future__ import annotations

import logging
from typing import Optional, TYPE_CHECKING

from sheetstore.core.errors import RecordNotFoundError
from sheetstore.schemas.tables import TableRegistry
from sheetstore.utils.a1 import column_address

if TYPE_CHECKING:  # pragma: no cover - type hints only
    from sheetstore.clients.google_sheets import GoogleSheetsClient

logger = logging.getLogger(__name__)


class RowLocator:
    """Scan a table's key column for an exact, trimmed primary key match."""

    def __init__(self, sheets_client: "GoogleSheetsClient", tables: TableRegistry) -> None:
        self._sheets = sheets_client
        self._tables = tables

    async def locate_row(self, table: str, primary_key: str) -> Optional[int]:
        """Return the 1-based physical row holding ``primary_key``, or ``None``."""
        descriptor = self._tables[table]
        wanted = primary_key.strip()
        if not wanted:
            return None

        # The whole column is read from row 1, so list offsets map to rows.
        values = await self._sheets.get_values(
            column_address(descriptor.sheet_title, descriptor.key_column)
        )
        for offset, row in enumerate(values):
            if row and str(row[0]).strip() == wanted:
                return offset + 1
        return None

    async def require_row(self, table: str, primary_key: str) -> int:
        """Like :meth:`locate_row` but raise when the key is gone."""
        row = await self.locate_row(table, primary_key)
        if row is None:
            logger.warning(
                "Record %r not found in table %r; caller holds stale data.",
                primary_key,
                table,
            )
            raise RecordNotFoundError(table, primary_key)
        return row


__all__ = ["RowLocator"]
