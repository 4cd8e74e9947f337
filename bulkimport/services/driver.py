from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Sequence

from ..errors import BulkImportError, DuplicateSkip, PreloadError, ValidationError
from ..models.batch_result import BatchResult, ResultAggregator, RowOutcome
from ..models.config_models import EngineSettings
from ..models.import_kind import ImportKind
from ..models.row_data import RowData
from ..normalize.aliases import aliases_for
from ..normalize.fields import normalize_row
from ..store.base import ImportContext, ImportStore, InvitationNotifier
from .strategies import CommitStrategy, strategy_for
from .validators import row_identifier, validator_for

"""Batch driver.

Runs one import batch: for each row normalize -> validate -> duplicate check ->
commit (or stage) -> record outcome -> report progress -> pace. Rows are processed
strictly one after another in input order. An exception raised while handling a row
is recorded as a failure of that row and the batch continues.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "ProgressCallback",
    "NO_COMPANY_MESSAGE",
    "BatchDriver",
    "run_batch",
]

ProgressCallback = Callable[[int], None]

NO_COMPANY_MESSAGE = "No company found. Please set up your company first."


class BatchDriver:
    """Drives one batch run. Not reusable across runs."""

    def __init__(
        self,
        kind: ImportKind,
        store: ImportStore,
        context: ImportContext,
        settings: EngineSettings | None = None,
        notifier: InvitationNotifier | None = None,
    ) -> None:
        self.kind = kind
        self.store = store
        self.context = context
        self.settings = settings or EngineSettings()
        self.strategy: CommitStrategy = strategy_for(kind, store, context, self.settings, notifier)
        self._validate = validator_for(kind)
        self._aliases = aliases_for(kind)

    async def run(
        self, rows: Sequence[RowData], progress_callback: ProgressCallback | None = None
    ) -> BatchResult:
        result = ResultAggregator(kind=self.kind, total=len(rows))
        logger.info("import start kind=%s rows=%d", self.kind.value, len(rows))

        if not self.context.organization_id:
            self._fail_batch(rows, result, "Company", NO_COMPANY_MESSAGE, progress_callback)
            return self._finish(result)

        try:
            await self.strategy.prepare()
        except PreloadError as e:
            logger.error("preload failed kind=%s: %s", self.kind.value, e.message)
            self._fail_batch(rows, result, e.identifier or "Company", e.message, progress_callback)
            return self._finish(result)

        for processed, row in enumerate(rows, start=1):
            outcome = await self._process_row(row, result)
            logger.debug(
                "row=%d kind=%s outcome=%s",
                row.row_number,
                self.kind.value,
                outcome.value if outcome is not None else "staged",
            )
            self._report(progress_callback, processed)
            await self._pace(processed)

        await self.strategy.finalize(result)
        return self._finish(result)

    async def _process_row(self, row: RowData, result: ResultAggregator) -> RowOutcome | None:
        fields: dict = {}
        try:
            fields = normalize_row(row.values, self._aliases)
            candidate = self._validate(fields)
            return await self.strategy.handle(row.row_number, candidate, result)
        except ValidationError as e:
            result.record_failure(row.row_number, e.identifier, e.message)
            return RowOutcome.FAILED
        except DuplicateSkip as e:
            # 空メッセージ = カウントのみ (service)
            result.record_duplicate(row.row_number, e.identifier, e.message or None)
            return RowOutcome.DUPLICATE
        except BulkImportError as e:
            result.record_failure(row.row_number, e.identifier or self._identifier(fields), e.message or "Unknown error")
            return RowOutcome.FAILED
        except Exception as e:
            logger.warning("row=%d kind=%s unexpected error: %s", row.row_number, self.kind.value, e)
            result.record_failure(row.row_number, self._identifier(fields), str(e) or "Unknown error")
            return RowOutcome.FAILED

    def _identifier(self, fields: dict) -> str:
        try:
            return row_identifier(self.kind, fields)
        except Exception:
            return "(unknown)"

    def _fail_batch(
        self,
        rows: Sequence[RowData],
        result: ResultAggregator,
        identifier: str,
        message: str,
        progress_callback: ProgressCallback | None,
    ) -> None:
        """Batch-scoped failure: every row counts as failed under one row=0 entry."""
        result.record_bulk_failure(len(rows), identifier, message)
        for processed in range(1, len(rows) + 1):
            self._report(progress_callback, processed)

    @staticmethod
    def _report(progress_callback: ProgressCallback | None, processed: int) -> None:
        if progress_callback is None:
            return
        try:
            progress_callback(processed)
        except Exception as e:  # progress is a side channel only
            logger.debug("progress callback raised at %d: %s", processed, e)

    async def _pace(self, processed: int) -> None:
        every = self.settings.pace_every
        if every > 0 and processed % every == 0:
            await asyncio.sleep(self.settings.pace_seconds)

    def _finish(self, result: ResultAggregator) -> BatchResult:
        final = result.finish()
        logger.info(
            "import done kind=%s total=%d successful=%d failed=%d duplicates=%d",
            self.kind.value,
            final.total,
            final.successful,
            final.failed,
            final.duplicates,
        )
        return final


async def run_batch(
    rows: Sequence[RowData],
    kind: ImportKind | str,
    progress_callback: ProgressCallback | None = None,
    *,
    store: ImportStore,
    context: ImportContext,
    settings: EngineSettings | None = None,
    notifier: InvitationNotifier | None = None,
) -> BatchResult:
    """Run one import batch and return its BatchResult.

    Args:
        rows: Parsed rows in sheet order (see rows_from_mappings for plain dicts)
        kind: ImportKind (or its value, e.g. "customer")
        progress_callback: Called after each row with the 1-based processed count
        store: Persistence collaborator
        context: Organization / importer identity
        settings: Pacing and duplicate-phrase settings
        notifier: Optional invitation e-mail sender (team members only)

    Returns:
        BatchResult. Row-level and batch-level problems are reported inside it; this
        coroutine does not raise for them.
    """
    driver = BatchDriver(ImportKind.parse(kind), store, context, settings, notifier)
    return await driver.run(rows, progress_callback)
