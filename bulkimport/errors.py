from __future__ import annotations

"""Exception taxonomy for the bulk import engine.

Every exception below is caught at a row boundary (or, for the service catalog, at the
single aggregate update) by the batch driver and turned into a BatchResult entry.
None of them escapes run_batch.
"""

__all__ = [
    "BulkImportError",
    "ValidationError",
    "DuplicateSkip",
    "CommitError",
    "PreloadError",
    "StoreError",
]


class BulkImportError(Exception):
    """Base exception for import errors."""

    def __init__(self, message: str, identifier: str = "") -> None:
        super().__init__(message)
        self.message = message
        self.identifier = identifier


class ValidationError(BulkImportError):
    """Row failed a validator rule. Row-scoped, never aborts the batch."""


class DuplicateSkip(BulkImportError):
    """Row collides with a persisted or earlier in-batch identity. A classification, not a failure."""


class CommitError(BulkImportError):
    """Downstream create/update failed for a reason other than duplication."""


class PreloadError(BulkImportError):
    """Existing identity keys could not be read before the batch started."""


class StoreError(BulkImportError):
    """Store adapter could not reach or talk to its backend."""
