from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

"""RowData model for the bulk import engine.

RowData represents one data row as delivered by the upload parser: its position in the
sheet and the raw header -> value mapping. Header text is free-form; the normalizer
resolves canonical fields from it later.
"""

__all__ = [
    "HEADER_ROW_OFFSET",
    "RowData",
    "rows_from_mappings",
]

# Row 1 of the sheet is the header, so the first data row is sheet row 2.
HEADER_ROW_OFFSET = 1


@dataclass(frozen=True)
class RowData:
    """Logical representation of a single parsed row.

    The row_number refers to the sheet row (header row = 1, first data row = 2).
    values is never mutated by the engine.
    """
    row_number: int  # Sheet row number (1st data row = 2)
    values: Mapping[str, Any]  # Raw header text -> raw value (None allowed)


def rows_from_mappings(mappings: Iterable[Mapping[str, Any]]) -> list[RowData]:
    """Wrap plain header->value mappings as RowData, numbering from the first data row."""
    return [
        RowData(row_number=index + 1 + HEADER_ROW_OFFSET, values=mapping)
        for index, mapping in enumerate(mappings)
    ]
