from __future__ import annotations

import math
from collections.abc import Mapping
from typing import Any

from .aliases import AliasTable

"""Field normalizer.

Resolves canonical field values from a raw row using the static alias tables.
No validation and no trimming happen here; validators call to_text() and strip
explicitly before applying their rules.
"""

__all__ = [
    "is_empty",
    "resolve_field",
    "normalize_row",
    "to_text",
]


def is_empty(value: Any) -> bool:
    """None, "" and NaN count as empty. False and 0 are real values."""
    if value is None:
        return True
    if isinstance(value, str):
        return value == ""
    if isinstance(value, float) and math.isnan(value):
        return True
    return False


def resolve_field(values: Mapping[str, Any], aliases: tuple[str, ...]) -> Any:
    """Return the first non-empty value among aliases, or "" when none matches."""
    for alias in aliases:
        if alias not in values:
            continue
        value = values[alias]
        if not is_empty(value):
            return value
    return ""


def normalize_row(values: Mapping[str, Any], table: AliasTable) -> dict[str, Any]:
    """Resolve every canonical field of table from values.

    The result always contains every canonical key; missing fields map to "".
    """
    return {canonical: resolve_field(values, aliases) for canonical, aliases in table}


def to_text(value: Any) -> str:
    """Coerce a raw cell value to text (untrimmed).

    Spreadsheet readers hand back numbers for numeric-looking cells, so an integral
    float such as 90001.0 becomes "90001" rather than "90001.0".
    """
    if is_empty(value):
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)
