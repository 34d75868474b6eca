"""
Bulk reads of several logical tables in one request.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence, TYPE_CHECKING

from sheetstore.schemas.records import DomainRecord
from sheetstore.schemas.tables import TableDescriptor, TableRegistry
from sheetstore.services.schema_mapper import SchemaMapper
from sheetstore.utils.a1 import parse_bounds, split_range

if TYPE_CHECKING:  # pragma: no cover - type hints only
    from sheetstore.clients.google_sheets import GoogleSheetsClient


class BatchReader:
    """Fetch and decode tables through ``values:batchGet``."""

    def __init__(
        self,
        sheets_client: "GoogleSheetsClient",
        tables: TableRegistry,
        mapper: SchemaMapper | None = None,
    ) -> None:
        self._sheets = sheets_client
        self._tables = tables
        self._mapper = mapper or SchemaMapper()

    async def fetch_all(self, table_names: Sequence[str]) -> Dict[str, List[DomainRecord]]:
        """Return decoded records keyed by table, in the order requested."""
        raw = await self._fetch(table_names)
        return {
            name: self._mapper.decode(rows, self._tables[name], first_row=first_row)
            for name, (rows, first_row) in raw.items()
        }

    async def fetch_raw(self, table_names: Sequence[str]) -> Dict[str, List[List[Any]]]:
        """Return undecoded cell rows keyed by table, in the order requested."""
        raw = await self._fetch(table_names)
        return {name: rows for name, (rows, _) in raw.items()}

    async def fetch_table(self, table_name: str) -> List[DomainRecord]:
        """Read and decode a single table with a plain ``values/{range}`` call."""
        descriptor = self._tables[table_name]
        rows = await self._sheets.get_values(descriptor.range)
        return self._mapper.decode(rows, descriptor)

    async def _fetch(
        self, table_names: Sequence[str]
    ) -> Dict[str, tuple[List[List[Any]], int]]:
        descriptors = [self._tables[name] for name in dict.fromkeys(table_names)]
        if not descriptors:
            return {}

        value_ranges = await self._sheets.batch_get([d.range for d in descriptors])
        matched = _match_value_ranges(descriptors, value_ranges)

        result: Dict[str, tuple[List[List[Any]], int]] = {}
        for descriptor in descriptors:
            value_range = matched.get(descriptor.name) or {}
            rows = value_range.get("values") or []
            result[descriptor.name] = (rows, _first_row(value_range, descriptor))
        return result


def _match_value_ranges(
    descriptors: List[TableDescriptor], value_ranges: List[Dict[str, Any]]
) -> Dict[str, Dict[str, Any]]:
    """Pair each response entry with its table by worksheet title.

    Entries whose title is missing or ambiguous fall back to their position.
    """
    by_title: Dict[str, List[TableDescriptor]] = {}
    for descriptor in descriptors:
        by_title.setdefault(descriptor.sheet_title, []).append(descriptor)

    matched: Dict[str, Dict[str, Any]] = {}
    leftovers: List[tuple[int, Dict[str, Any]]] = []
    for position, value_range in enumerate(value_ranges):
        title = split_range(value_range.get("range") or "")[0]
        candidates = by_title.get(title, []) if title else []
        if len(candidates) == 1 and candidates[0].name not in matched:
            matched[candidates[0].name] = value_range
        else:
            leftovers.append((position, value_range))

    for position, value_range in leftovers:
        if position < len(descriptors):
            name = descriptors[position].name
            matched.setdefault(name, value_range)
    return matched


def _first_row(value_range: Dict[str, Any], descriptor: TableDescriptor) -> int:
    # The API echoes the range it actually returned, e.g. "'Demandas'!A2:AB40".
    returned: Optional[str] = value_range.get("range")
    if returned:
        cells = split_range(returned)[1]
        if cells:
            try:
                bounds = parse_bounds(cells)
            except ValueError:
                return descriptor.first_row
            if bounds.first_row is not None:
                return bounds.first_row
    return descriptor.first_row


__all__ = ["BatchReader"]
