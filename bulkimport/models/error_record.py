from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

from .batch_result import ErrorEntry

"""ErrorRecord model for error logging.

This module defines the ErrorRecord dataclass used for structured JSON Lines logging of
rejected rows. It supports row=0 as a sentinel value for batch-scoped entries where no
single row is responsible (company lookup, aggregate catalog update).
"""

__all__ = [
    "ErrorRecord",
]


@dataclass(frozen=True)
class ErrorRecord:
    """Structured error record for JSON Lines logging.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        file: Source filename of the batch ("" when rows did not come from a file)
        kind: Import kind value (team_member, customer, service, material)
        row: Sheet row number. 0 for batch-scoped entries
        identifier: Email / name identifying the row to a human
        outcome: "failed", "duplicate", or "info" for informational batch entries
        message: Validation, duplicate or store message
    """
    timestamp: str  # ISO8601 UTC
    file: str
    kind: str
    row: int  # 行番号。バッチ単位のエラーは 0
    identifier: str
    outcome: str
    message: str

    @staticmethod
    def create(file: str, kind: str, row: int, identifier: str, outcome: str, message: str) -> ErrorRecord:
        """Create a new ErrorRecord with current UTC timestamp."""
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return ErrorRecord(
            timestamp=ts,
            file=file,
            kind=kind,
            row=row,
            identifier=identifier,
            outcome=outcome,
            message=message,
        )

    @staticmethod
    def from_entry(entry: ErrorEntry, *, file: str, kind: str) -> ErrorRecord:
        return ErrorRecord.create(
            file=file,
            kind=kind,
            row=entry.row,
            identifier=entry.identifier,
            outcome=entry.outcome.value,
            message=entry.message,
        )

    def to_json_line(self) -> str:
        """Serialize ErrorRecord to JSON Lines format (fixed key set)."""
        return json.dumps(asdict(self), ensure_ascii=False)
