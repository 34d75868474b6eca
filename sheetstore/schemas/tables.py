"""
Logical table descriptors.

Each descriptor pins a logical table to its worksheet range and maps field
names to fixed 0-based column indices. The mappings are static; only the
ranges come from configuration.

The log and comments tables carry a generated id in column A, ahead of the
timestamp. Sheets laid out without that column need an empty column A
inserted before they decode correctly.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Callable, Dict, Mapping, Optional, Tuple

from sheetstore.core.errors import MappingError
from sheetstore.utils.a1 import parse_bounds, split_range

RowNormaliser = Callable[[Dict[str, str]], Dict[str, str]]

TASKS = "tasks"
COLLABORATORS = "collaborators"
LOG = "log"
COMMENTS = "comments"
DETAIL = "detail"
SETTINGS = "settings"
NOTIFICATIONS = "notifications"


@dataclass(frozen=True)
class TableDescriptor:
    """Static schema of one logical table."""

    name: str
    range: str
    columns: Mapping[str, int]
    key_field: str
    defaults: Mapping[str, str] = field(default_factory=dict)
    header_sentinels: Mapping[str, str] = field(default_factory=dict)
    required_fields: Tuple[str, ...] = ()
    audit_field: Optional[str] = None
    normaliser: Optional[RowNormaliser] = None

    def __post_init__(self) -> None:
        if self.key_field not in self.columns:
            raise MappingError(
                f"Table {self.name!r} key field {self.key_field!r} has no column."
            )
        if self.audit_field is not None and self.audit_field not in self.columns:
            raise MappingError(
                f"Table {self.name!r} audit field {self.audit_field!r} has no column."
            )
        object.__setattr__(self, "columns", MappingProxyType(dict(self.columns)))

    @property
    def sheet_title(self) -> str:
        return split_range(self.range)[0]

    @property
    def first_row(self) -> int:
        """Physical row number of the first row the range returns."""
        return parse_bounds(split_range(self.range)[1]).first_row or 1

    @property
    def key_column(self) -> int:
        return self.columns[self.key_field]

    @property
    def width(self) -> int:
        """Number of cells from column A to the last mapped column."""
        return max(self.columns.values()) + 1

    def column_of(self, field_name: str) -> int:
        try:
            return self.columns[field_name]
        except KeyError:
            raise MappingError(
                f"Field {field_name!r} has no column in table {self.name!r}."
            ) from None

    def default_for(self, field_name: str) -> str:
        return self.defaults.get(field_name, "")


def _looks_like_email(value: str) -> bool:
    return "@" in value


def _prefer_department_column(fields: Dict[str, str]) -> Dict[str, str]:
    # Some rows carry the e-mail in C and the department in D.
    department = fields.get("department", "").strip()
    alternative = fields.get("department_alt", "").strip()
    if (not department or _looks_like_email(department)) and alternative:
        department = alternative
    fields["department"] = department
    return fields


TASK_COLUMNS = {
    "id": 0,
    "name": 1,
    "cnpj": 2,
    "regime": 3,
    "resp_fiscal": 5,
    "status_fiscal": 6,
    "resp_contabil": 8,
    "status_contabil": 9,
    "resp_balanco": 10,
    "status_balanco": 11,
    "resp_lucro": 13,
    "status_lucro": 14,
    "resp_reinf": 15,
    "status_reinf": 16,
    "resp_ecd": 18,
    "status_ecd": 19,
    "resp_ecf": 20,
    "status_ecf": 21,
    "prioridade": 23,
    "last_editor": 24,
    "due_date": 27,
}

TASK_DEFAULTS = {
    "status_fiscal": "EM ABERTO",
    "status_contabil": "EM ABERTO",
    "status_balanco": "EM ABERTO",
    "status_lucro": "PENDENTE",
    "status_reinf": "PENDENTE",
    "status_ecd": "PENDENTE",
    "status_ecf": "PENDENTE",
}


def build_tables(ranges: Mapping[str, str]) -> Dict[str, TableDescriptor]:
    """Build the descriptor registry from configured ranges."""

    def _range(name: str) -> str:
        try:
            return ranges[name]
        except KeyError:
            raise MappingError(f"No range configured for table {name!r}.") from None

    descriptors = (
        TableDescriptor(
            name=TASKS,
            range=_range(TASKS),
            columns=TASK_COLUMNS,
            key_field="id",
            defaults=TASK_DEFAULTS,
            header_sentinels={"id": "código", "name": "nome"},
            audit_field="last_editor",
        ),
        TableDescriptor(
            name=COLLABORATORS,
            range=_range(COLLABORATORS),
            columns={
                "id": 0,
                "name": 1,
                "department": 2,
                "department_alt": 3,
                "email": 4,
            },
            key_field="id",
            header_sentinels={"name": "nome"},
            required_fields=("name",),
            normaliser=_prefer_department_column,
        ),
        TableDescriptor(
            name=LOG,
            range=_range(LOG),
            columns={
                "id": 0,
                "timestamp": 1,
                "description": 2,
                "user": 3,
                "task_id": 4,
            },
            key_field="id",
            header_sentinels={"id": "id"},
        ),
        TableDescriptor(
            name=COMMENTS,
            range=_range(COMMENTS),
            columns={
                "id": 0,
                "task_id": 1,
                "timestamp": 2,
                "author": 3,
                "text": 4,
            },
            key_field="id",
            defaults={"author": "Anônimo"},
            header_sentinels={"id": "id"},
        ),
        TableDescriptor(
            name=DETAIL,
            range=_range(DETAIL),
            columns={"task_id": 0, "name": 1, "description": 2, "checklist": 3},
            key_field="task_id",
            defaults={"checklist": "[]"},
            header_sentinels={"task_id": "id"},
        ),
        TableDescriptor(
            name=SETTINGS,
            range=_range(SETTINGS),
            columns={"user_id": 0, "user_name": 1, "settings": 2},
            key_field="user_id",
            header_sentinels={"user_id": "id"},
        ),
        TableDescriptor(
            name=NOTIFICATIONS,
            range=_range(NOTIFICATIONS),
            columns={
                "id": 0,
                "recipient": 1,
                "sender": 2,
                "task_id": 3,
                "message": 4,
                "is_read": 5,
                "timestamp": 6,
            },
            key_field="id",
            defaults={"is_read": "FALSE"},
            header_sentinels={"id": "id"},
        ),
    )
    return {descriptor.name: descriptor for descriptor in descriptors}


class TableRegistry:
    """Lookup of descriptors by logical table name."""

    def __init__(self, descriptors: Mapping[str, TableDescriptor]) -> None:
        self._descriptors = dict(descriptors)

    @classmethod
    def from_ranges(cls, ranges: Mapping[str, str]) -> "TableRegistry":
        return cls(build_tables(ranges))

    def __getitem__(self, name: str) -> TableDescriptor:
        try:
            return self._descriptors[name]
        except KeyError:
            raise MappingError(f"Unknown table {name!r}.") from None

    def __contains__(self, name: object) -> bool:
        return name in self._descriptors

    def names(self) -> Tuple[str, ...]:
        return tuple(self._descriptors)


__all__ = [
    "COLLABORATORS",
    "COMMENTS",
    "DETAIL",
    "LOG",
    "NOTIFICATIONS",
    "SETTINGS",
    "TASKS",
    "TASK_COLUMNS",
    "TableDescriptor",
    "TableRegistry",
    "build_tables",
]
