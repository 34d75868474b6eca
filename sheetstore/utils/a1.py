"""A1 notation helpers.

Column indices are 0-based everywhere in the package; letters only appear
here, when a request address is built for the Sheets API.
"""

from __future__ import annotations

import re
from typing import NamedTuple, Optional

_CELL_PATTERN = re.compile(r"^([A-Za-z]*)(\d*)$")


class RangeBounds(NamedTuple):
    """Parsed cell bounds of an A1 range. ``None`` means unbounded."""

    first_column: int
    first_row: Optional[int]
    last_column: Optional[int]
    last_row: Optional[int]


def column_letter(index: int) -> str:
    """Return the column letters for a 0-based ``index`` (0 -> ``A``)."""
    if index < 0:
        raise ValueError("Column index must be >= 0")
    letters: list[str] = []
    index += 1
    while index:
        index, remainder = divmod(index - 1, 26)
        letters.append(chr(65 + remainder))
    return "".join(reversed(letters))


def column_index(letters: str) -> int:
    """Return the 0-based index for column ``letters`` (``AB`` -> 27)."""
    if not letters or not letters.isalpha():
        raise ValueError(f"Invalid column letters: {letters!r}")
    value = 0
    for char in letters.upper():
        value = value * 26 + (ord(char) - 64)
    return value - 1


def quote_title(title: str) -> str:
    """Return a worksheet title quoted according to A1 notation rules."""
    safe = (title or "").strip()
    if not safe:
        raise ValueError("Worksheet title must not be empty")
    return "'" + safe.replace("'", "''") + "'"


def split_range(range_: str) -> tuple[str, str]:
    """Split ``Sheet!A1:B2`` into the unquoted title and the cell part."""
    title, sep, cells = range_.rpartition("!")
    if not sep:
        return range_.strip(), ""
    title = title.strip()
    if len(title) >= 2 and title.startswith("'") and title.endswith("'"):
        title = title[1:-1].replace("''", "'")
    return title, cells.strip()


def parse_bounds(cells: str) -> RangeBounds:
    """Parse the cell part of a range (``A2:AB``, ``F5``, ``A:A``)."""
    if not cells:
        return RangeBounds(0, None, None, None)
    start, _, end = cells.partition(":")
    first_letters, first_digits = _parse_cell(start)
    first_column = column_index(first_letters) if first_letters else 0
    first_row = int(first_digits) if first_digits else None
    if not end:
        return RangeBounds(first_column, first_row, first_column, first_row)
    last_letters, last_digits = _parse_cell(end)
    last_column = column_index(last_letters) if last_letters else None
    last_row = int(last_digits) if last_digits else None
    return RangeBounds(first_column, first_row, last_column, last_row)


def _parse_cell(cell: str) -> tuple[str, str]:
    match = _CELL_PATTERN.match(cell.strip())
    if not match:
        raise ValueError(f"Invalid A1 cell reference: {cell!r}")
    return match.group(1), match.group(2)


def cell_address(title: str, column: int, row: int) -> str:
    """Return ``'Sheet'!F5`` for a 0-based column and 1-based row."""
    if row < 1:
        raise ValueError("Row index must be >= 1")
    return f"{quote_title(title)}!{column_letter(column)}{row}"


def row_address(title: str, row: int, *, first_column: int, last_column: int) -> str:
    """Return a range covering one row between two 0-based columns."""
    if row < 1:
        raise ValueError("Row index must be >= 1")
    return (
        f"{quote_title(title)}!{column_letter(first_column)}{row}"
        f":{column_letter(last_column)}{row}"
    )


def column_address(title: str, column: int) -> str:
    """Return a range spanning every row of a single column."""
    letter = column_letter(column)
    return f"{quote_title(title)}!{letter}:{letter}"


__all__ = [
    "RangeBounds",
    "cell_address",
    "column_address",
    "column_index",
    "column_letter",
    "parse_bounds",
    "quote_title",
    "row_address",
    "split_range",
]
