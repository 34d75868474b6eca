"""
Field updates, appends and soft deletes against logical tables.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence, TYPE_CHECKING, Union

from sheetstore.core.errors import MappingError
from sheetstore.schemas.tables import TableDescriptor, TableRegistry
from sheetstore.services.row_locator import RowLocator
from sheetstore.services.schema_mapper import SchemaMapper
from sheetstore.utils.a1 import cell_address, row_address

if TYPE_CHECKING:  # pragma: no cover - type hints only
    from sheetstore.clients.google_sheets import GoogleSheetsClient

logger = logging.getLogger(__name__)

RowValues = Union[Mapping[str, Any], Sequence[Any]]


class MutationWriter:
    """Write to the backing sheet, always addressing rows by primary key.

    None of these methods accept a row number. Each mutation of an existing
    record re-locates the row immediately before writing. The locate and the
    write are sequenced, not atomic: an edit made by someone else in between
    can still move the row.
    """

    def __init__(
        self,
        sheets_client: "GoogleSheetsClient",
        tables: TableRegistry,
        locator: RowLocator,
        mapper: SchemaMapper | None = None,
    ) -> None:
        self._sheets = sheets_client
        self._tables = tables
        self._locator = locator
        self._mapper = mapper or SchemaMapper()

    async def update_field(
        self,
        table: str,
        primary_key: str,
        field: str,
        value: Any,
        audit_info: Optional[str] = None,
    ) -> int:
        """Write one field, plus the audit stamp when given. Returns the row."""
        return await self.update_fields(
            table, primary_key, {field: value}, audit_info=audit_info
        )

    async def update_fields(
        self,
        table: str,
        primary_key: str,
        changes: Mapping[str, Any],
        audit_info: Optional[str] = None,
    ) -> int:
        """Write several fields of one record in a single batch call."""
        descriptor = self._tables[table]
        cells = self._resolve_cells(descriptor, changes, audit_info)
        if not cells:
            raise MappingError("No fields to update.")

        row = await self._locator.require_row(table, primary_key)
        await self._write_cells(descriptor, row, cells)
        logger.info(
            "Updated %s of %s %r at row %d.",
            ", ".join(sorted(changes)),
            table,
            primary_key,
            row,
        )
        return row

    async def upsert_row(
        self, table: str, primary_key: str, changes: Mapping[str, Any]
    ) -> Optional[int]:
        """Update the record's fields, or append it when the key is absent.

        Returns the updated row, or ``None`` when a new row was appended.
        """
        descriptor = self._tables[table]
        cells = self._resolve_cells(descriptor, changes, None)
        row = await self._locator.locate_row(table, primary_key)
        if row is None:
            await self.append_row(
                table, {**changes, descriptor.key_field: primary_key}
            )
            return None
        if cells:
            await self._write_cells(descriptor, row, cells)
            logger.info("Updated %s %r at row %d.", table, primary_key, row)
        return row

    async def append_row(self, table: str, values: RowValues) -> Dict[str, Any]:
        """Append a row to the end of the table's range."""
        descriptor = self._tables[table]
        if isinstance(values, Mapping):
            row = self._mapper.encode(values, descriptor)
        else:
            row = ["" if value is None else value for value in values]
            if len(row) > descriptor.width:
                raise MappingError(
                    f"Row has {len(row)} cells but table {table!r} maps "
                    f"{descriptor.width}."
                )
        updates = await self._sheets.append_values(descriptor.range, [row])
        logger.info("Appended row to %s (%s).", table, updates.get("updatedRange", "?"))
        return updates

    async def clear_row(self, table: str, primary_key: str) -> int:
        """Blank the record's cells in place. Returns the cleared row."""
        descriptor = self._tables[table]
        row = await self._locator.require_row(table, primary_key)
        await self._sheets.clear_values(
            row_address(
                descriptor.sheet_title,
                row,
                first_column=0,
                last_column=descriptor.width - 1,
            )
        )
        logger.info("Cleared %s %r at row %d.", table, primary_key, row)
        return row

    async def _write_cells(
        self, descriptor: TableDescriptor, row: int, cells: List[tuple[int, str]]
    ) -> None:
        # One batchUpdate so every cell lands on the same located row.
        data: List[Dict[str, Any]] = [
            {
                "range": cell_address(descriptor.sheet_title, column, row),
                "values": [[value]],
            }
            for column, value in cells
        ]
        await self._sheets.batch_update_values(data)

    def _resolve_cells(
        self,
        descriptor: TableDescriptor,
        changes: Mapping[str, Any],
        audit_info: Optional[str],
    ) -> List[tuple[int, str]]:
        if descriptor.key_field in changes:
            raise MappingError(
                f"Primary key {descriptor.key_field!r} of {descriptor.name!r} "
                "cannot be updated in place."
            )
        cells = self._mapper.encode_partial(descriptor, changes)
        if audit_info:
            if descriptor.audit_field is None:
                raise MappingError(
                    f"Table {descriptor.name!r} has no audit column."
                )
            cells.append((descriptor.column_of(descriptor.audit_field), audit_info))
        return cells


__all__ = ["MutationWriter", "RowValues"]
