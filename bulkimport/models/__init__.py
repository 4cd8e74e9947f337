"""Domain models for the bulk import engine.

This package contains the row, candidate and result types shared by the normalizer,
the validators, the duplicate indexes, the commit strategies and the batch driver.
"""

from .batch_result import BatchResult, ErrorEntry, ResultAggregator, RowOutcome
from .candidates import CustomerCandidate, MaterialCandidate, ServiceCandidate, TeamMemberCandidate
from .import_kind import ImportKind
from .row_data import HEADER_ROW_OFFSET, RowData, rows_from_mappings

__all__ = [
    # Input models
    "HEADER_ROW_OFFSET",
    "ImportKind",
    "RowData",
    "rows_from_mappings",
    # Candidate records
    "CustomerCandidate",
    "MaterialCandidate",
    "ServiceCandidate",
    "TeamMemberCandidate",
    # Result models
    "BatchResult",
    "ErrorEntry",
    "ResultAggregator",
    "RowOutcome",
]
