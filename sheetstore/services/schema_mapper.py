"""
Translate between cell rows and :class:`DomainRecord` instances.
"""

from __future__ import annotations

from typing import Any, Iterable, List, Mapping, Optional, Sequence, Tuple

from sheetstore.core.errors import MappingError
from sheetstore.schemas.records import DomainRecord
from sheetstore.schemas.tables import TableDescriptor


def _cell_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    return str(value)


class SchemaMapper:
    """Encode and decode rows according to a table descriptor."""

    def decode(
        self,
        rows: Optional[Iterable[Sequence[Any]]],
        descriptor: TableDescriptor,
        *,
        first_row: Optional[int] = None,
    ) -> List[DomainRecord]:
        """Decode ``rows`` read from the descriptor's range.

        Rows with a blank key, a header sentinel, or a missing required field
        are skipped. ``first_row`` is the physical row of ``rows[0]``.
        """
        start = descriptor.first_row if first_row is None else first_row
        records: List[DomainRecord] = []
        for offset, row in enumerate(rows or ()):
            fields = self.decode_row(row, descriptor)
            if not self._is_data_row(row, fields, descriptor):
                continue
            records.append(
                DomainRecord(
                    table=descriptor.name,
                    key_field=descriptor.key_field,
                    fields=fields,
                    last_known_row=start + offset,
                )
            )
        return records

    def decode_row(
        self, row: Sequence[Any], descriptor: TableDescriptor
    ) -> dict[str, str]:
        fields: dict[str, str] = {}
        for name, index in descriptor.columns.items():
            raw = _cell_text(row[index]) if index < len(row) else ""
            fields[name] = raw if raw.strip() else descriptor.default_for(name)
        if descriptor.normaliser is not None:
            fields = descriptor.normaliser(fields)
        return fields

    def _is_data_row(
        self,
        row: Sequence[Any],
        fields: Mapping[str, str],
        descriptor: TableDescriptor,
    ) -> bool:
        key_index = descriptor.key_column
        key = _cell_text(row[key_index]).strip() if key_index < len(row) else ""
        if not key:
            return False
        for name, sentinel in descriptor.header_sentinels.items():
            if fields.get(name, "").strip().lower() == sentinel:
                return False
        return all(fields.get(name, "").strip() for name in descriptor.required_fields)

    def encode(
        self, fields: Mapping[str, Any], descriptor: TableDescriptor
    ) -> List[str]:
        """Encode a complete row from column A to the last mapped column."""
        unknown = set(fields) - set(descriptor.columns)
        if unknown:
            raise MappingError(
                f"Fields {sorted(unknown)} have no column in table {descriptor.name!r}."
            )
        row = [""] * descriptor.width
        for name, index in descriptor.columns.items():
            if name in fields:
                row[index] = _cell_text(fields[name])
            else:
                row[index] = descriptor.default_for(name)
        return row

    def encode_partial(
        self, descriptor: TableDescriptor, changes: Mapping[str, Any]
    ) -> List[Tuple[int, str]]:
        """Resolve only the columns touched by ``changes``."""
        return sorted(
            (descriptor.column_of(name), _cell_text(value))
            for name, value in changes.items()
        )


__all__ = ["SchemaMapper"]
