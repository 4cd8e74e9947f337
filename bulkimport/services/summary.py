from __future__ import annotations

from ..models.batch_result import BatchResult

"""Summary line rendering service.

Format:
SUMMARY kind={kind} total={total} successful={n} failed={n} duplicates={n} elapsed_sec={x}
"""


def _format_seconds(value: float) -> str:
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if value < 0.01:
        # Format very small numbers to avoid scientific notation
        return f"{value:.6f}".rstrip("0").rstrip(".")
    return str(round(value, 3))


def render_summary_line(result: BatchResult) -> str:
    """Render the SUMMARY line for a finished batch.

    Examples:
        >>> from datetime import datetime, timezone
        >>> from bulkimport.models.import_kind import ImportKind
        >>> t = datetime(2024, 1, 1, tzinfo=timezone.utc)
        >>> r = BatchResult(ImportKind.CUSTOMER, 3, 1, 1, 1, (), t, t, 2.0)
        >>> render_summary_line(r)
        'SUMMARY kind=customer total=3 successful=1 failed=1 duplicates=1 elapsed_sec=2'
    """
    return (
        f"SUMMARY kind={result.kind.value} "
        f"total={result.total} "
        f"successful={result.successful} "
        f"failed={result.failed} "
        f"duplicates={result.duplicates} "
        f"elapsed_sec={_format_seconds(result.elapsed_seconds)}"
    )
