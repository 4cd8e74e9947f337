from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path
from typing import Any

import pandas as pd

from ..models.row_data import RowData, rows_from_mappings

"""Upload reader for .csv / .xlsx files.

1行目をヘッダ行、2行目以降をデータ行として扱う (first data row = row 2).
Only the first sheet of a workbook is read. Completely blank rows are dropped before
numbering, the same way the upload form's parser packs them.
"""

__all__ = [
    "SUPPORTED_SUFFIXES",
    "SheetReadError",
    "SheetHeaderError",
    "UnsupportedFileError",
    "read_frame",
    "read_rows",
    "iter_rows",
]

SUPPORTED_SUFFIXES = (".csv", ".xlsx")


class SheetReadError(Exception):
    """Raised when the upload cannot be read (encoding, corrupt workbook, I/O)."""


class SheetHeaderError(SheetReadError):
    """Raised when the header row is missing or contains no usable column names."""


class UnsupportedFileError(SheetReadError):
    """Raised for file types other than csv / xlsx."""


def read_frame(path: Path) -> pd.DataFrame:
    """Read the raw upload into a DataFrame with the first row as header.

    CSV cells are kept as strings ("NA" / "null" stay literal); Excel cells keep
    their native types (numbers, booleans) and empty cells become None.
    """
    suffix = path.suffix.lower()
    if suffix not in SUPPORTED_SUFFIXES:
        raise UnsupportedFileError(
            f"unsupported file type '{path.suffix}' (expected one of {', '.join(SUPPORTED_SUFFIXES)})"
        )
    try:
        if suffix == ".csv":
            df = pd.read_csv(path, dtype=str, keep_default_na=False, skip_blank_lines=True)
        else:
            df = pd.read_excel(path, sheet_name=0, dtype=object, keep_default_na=False)
    except pd.errors.EmptyDataError as e:
        raise SheetHeaderError(f"'{path.name}' has no header row") from e
    except UnicodeDecodeError as e:
        raise SheetReadError(f"'{path.name}' is not UTF-8 encoded: {e.reason} at byte {e.start}") from e
    except Exception as e:
        # 壊れたブック (BadZipFile, "Excel file format cannot be determined" など)
        raise SheetReadError(f"cannot read '{path.name}': {e}") from e

    columns = [str(c).strip() for c in df.columns]
    if not columns or all(c == "" or c.startswith("Unnamed:") for c in columns):
        raise SheetHeaderError(f"'{path.name}' has no header row")
    df.columns = columns
    return df


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def _clean(value: Any) -> Any:
    # Excel 空セル (NaN / NaT) -> None
    if value is None or isinstance(value, str):
        return value
    try:
        if pd.isna(value):
            return None
    except (TypeError, ValueError):
        pass
    return value


def iter_rows(df: pd.DataFrame) -> Iterator[dict[str, Any]]:
    """Yield header -> value dicts, skipping rows where every cell is blank."""
    columns = list(df.columns)
    for raw in df.itertuples(index=False, name=None):
        if all(_is_blank(v) for v in raw):
            continue
        yield {col: _clean(val) for col, val in zip(columns, raw, strict=False)}


def read_rows(path: Path) -> list[RowData]:
    """Read an upload file into RowData numbered from sheet row 2."""
    return rows_from_mappings(iter_rows(read_frame(path)))
