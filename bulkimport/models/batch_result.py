from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from .import_kind import ImportKind

"""Batch result models for the bulk import engine.

This module defines the per-row outcome, the error descriptor and the final
BatchResult record, plus the mutable ResultAggregator that the batch driver owns
while a run is in progress. The aggregator is the single source of truth for the
final report.
"""

__all__ = [
    "RowOutcome",
    "ErrorEntry",
    "BatchResult",
    "ResultAggregator",
]


class RowOutcome(Enum):
    """Terminal state of one row. Exactly one per row.

    INFO only marks informational batch-scoped entries and is never a row outcome.
    """
    SUCCESSFUL = "successful"
    FAILED = "failed"
    DUPLICATE = "duplicate"
    INFO = "info"


@dataclass(frozen=True)
class ErrorEntry:
    """One entry of the ordered error list.

    row=0 marks a batch-scoped entry (company lookup, aggregate update, informational).
    """
    row: int
    identifier: str
    message: str
    outcome: RowOutcome = RowOutcome.FAILED

    def to_dict(self) -> dict[str, Any]:
        return {
            "row": self.row,
            "identifier": self.identifier,
            "message": self.message,
            "outcome": self.outcome.value,
        }


@dataclass(frozen=True)
class BatchResult:
    """Final report of a batch run.

    total always equals the number of input rows. For every kind
    successful + failed + duplicates == total.
    """
    kind: ImportKind
    total: int
    successful: int
    failed: int
    duplicates: int
    errors: tuple[ErrorEntry, ...]
    started_at: datetime
    finished_at: datetime
    elapsed_seconds: float

    @property
    def has_failures(self) -> bool:
        return self.failed > 0

    def to_dict(self) -> dict[str, Any]:
        """Plain record as handed back to callers (timing omitted)."""
        return {
            "total": self.total,
            "successful": self.successful,
            "failed": self.failed,
            "duplicates": self.duplicates,
            "errors": [e.to_dict() for e in self.errors],
        }


@dataclass
class ResultAggregator:
    """Accumulates counts and error entries for one batch run.

    Owned by a single run; never shared between runs.
    """
    kind: ImportKind
    total: int
    successful: int = 0
    failed: int = 0
    duplicates: int = 0
    errors: list[ErrorEntry] = field(default_factory=list)
    started_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def record_success(self) -> None:
        self.successful += 1

    def record_failure(self, row: int, identifier: str, message: str) -> None:
        self.failed += 1
        self.errors.append(ErrorEntry(row, identifier, message, RowOutcome.FAILED))

    def record_duplicate(self, row: int, identifier: str, message: str | None = None) -> None:
        """Count a duplicate; message=None counts it without an error entry."""
        self.duplicates += 1
        if message is not None:
            self.errors.append(ErrorEntry(row, identifier, message, RowOutcome.DUPLICATE))

    def record_bulk_success(self, count: int) -> None:
        self.successful += count

    def record_bulk_failure(self, count: int, identifier: str, message: str) -> None:
        """Count ``count`` failures under a single batch-scoped (row=0) entry."""
        self.failed += count
        self.errors.append(ErrorEntry(0, identifier, message, RowOutcome.FAILED))

    def add_note(self, identifier: str, message: str) -> None:
        """Append a batch-scoped entry that does not change any count."""
        self.errors.append(ErrorEntry(0, identifier, message, RowOutcome.INFO))

    def finish(self) -> BatchResult:
        finished_at = datetime.now(UTC)
        return BatchResult(
            kind=self.kind,
            total=self.total,
            successful=self.successful,
            failed=self.failed,
            duplicates=self.duplicates,
            errors=tuple(self.errors),
            started_at=self.started_at,
            finished_at=finished_at,
            elapsed_seconds=(finished_at - self.started_at).total_seconds(),
        )
