"""Decoded spreadsheet rows."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional


@dataclass(frozen=True)
class DomainRecord:
    """One decoded row of a logical table.

    ``last_known_row`` is the physical row the record occupied when it was
    read. It is kept for display only; every write path takes a primary key
    and locates the row again.
    """

    table: str
    key_field: str
    fields: Mapping[str, str] = field(default_factory=dict)
    last_known_row: Optional[int] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "fields", MappingProxyType(dict(self.fields)))

    @property
    def primary_key(self) -> str:
        return self.fields.get(self.key_field, "")

    def __getitem__(self, name: str) -> str:
        return self.fields[name]

    def get(self, name: str, default: str = "") -> str:
        return self.fields.get(name, default)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "table": self.table,
            "primary_key": self.primary_key,
            "fields": dict(self.fields),
            "last_known_row": self.last_known_row,
        }


__all__ = ["DomainRecord"]
