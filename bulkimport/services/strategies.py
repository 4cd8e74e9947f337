from __future__ import annotations

import logging
from typing import Any

from ..errors import CommitError, DuplicateSkip
from ..models.batch_result import ResultAggregator, RowOutcome
from ..models.candidates import (
    CustomerCandidate,
    MaterialCandidate,
    ServiceCandidate,
    TeamMemberCandidate,
)
from ..models.config_models import EngineSettings
from ..models.import_kind import ImportKind
from ..store.base import CommitResult, CommitStatus, ImportContext, ImportStore, InvitationNotifier
from .dedupe import CustomerIndex, MaterialIndex, ServiceIndex, TeamMemberIndex

"""Commit strategies.

Two strategies coexist:

- per-row commit (team members, customers, materials): every validated row that is not
  a duplicate is written immediately; a success extends the duplicate index so later
  rows of the same batch colliding with it are skipped.
- aggregate-then-commit (services): rows only stage names/categories; one catalog
  update is issued after the last row.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "CommitStrategy",
    "PerRowCommitStrategy",
    "TeamMemberStrategy",
    "CustomerStrategy",
    "MaterialStrategy",
    "AggregateCommitStrategy",
    "strategy_for",
]


class CommitStrategy:
    """Interface used by the batch driver.

    prepare() loads the duplicate index. handle() processes one validated candidate and
    returns its outcome (None = staged, decided in finalize()); duplicates and failed
    writes are raised as DuplicateSkip / CommitError. finalize() runs once after the
    last row.
    """
    kind: ImportKind

    def __init__(self, store: ImportStore, context: ImportContext, settings: EngineSettings) -> None:
        self.store = store
        self.context = context
        self.settings = settings

    async def prepare(self) -> None:
        raise NotImplementedError

    async def handle(self, row: int, candidate: Any, result: ResultAggregator) -> RowOutcome | None:
        raise NotImplementedError

    async def finalize(self, result: ResultAggregator) -> None:
        return None


class PerRowCommitStrategy(CommitStrategy):
    """Duplicate check, then one store write per row."""
    default_error = "Failed to create record"
    index: Any

    def identifier(self, candidate: Any) -> str:
        return candidate.name

    def duplicate_identifier(self, candidate: Any) -> str:
        return self.identifier(candidate)

    def conflict_message(self, message: str) -> str:
        """Message stored when a write is reclassified as a duplicate."""
        return message

    async def commit(self, candidate: Any) -> CommitResult:
        raise NotImplementedError

    async def after_commit(self, commit: CommitResult) -> None:
        return None

    async def handle(self, row: int, candidate: Any, result: ResultAggregator) -> RowOutcome:
        """Commit one candidate.

        Raises:
            DuplicateSkip: identity already known, or the store reported a conflict
            CommitError: the store write failed for any other reason
        """
        reason = self.index.duplicate_reason(candidate)
        if reason is not None:
            raise DuplicateSkip(reason, self.duplicate_identifier(candidate))

        commit = await self.commit(candidate)
        if commit.ok:
            self.index.remember(candidate)
            result.record_success()
            await self.after_commit(commit)
            return RowOutcome.SUCCESSFUL

        message = commit.error or self.default_error
        if commit.status is CommitStatus.CONFLICT or self.settings.is_duplicate_message(commit.error):
            raise DuplicateSkip(self.conflict_message(message), self.identifier(candidate))

        logger.warning("row=%d kind=%s commit failed: %s", row, self.kind.value, message)
        raise CommitError(message, self.identifier(candidate))


class TeamMemberStrategy(PerRowCommitStrategy):
    kind = ImportKind.TEAM_MEMBER
    default_error = "Failed to create invitation"

    def __init__(
        self,
        store: ImportStore,
        context: ImportContext,
        settings: EngineSettings,
        notifier: InvitationNotifier | None = None,
    ) -> None:
        super().__init__(store, context, settings)
        self.notifier = notifier

    async def prepare(self) -> None:
        self.index = await TeamMemberIndex.load(self.store, self.context.organization_id or "")

    def identifier(self, candidate: TeamMemberCandidate) -> str:
        return candidate.email

    def conflict_message(self, message: str) -> str:
        return "Duplicate email - invitation already exists"

    async def commit(self, candidate: TeamMemberCandidate) -> CommitResult:
        return await self.store.create_invitation(self.context, candidate)

    async def after_commit(self, commit: CommitResult) -> None:
        # 招待メール送信失敗は行の結果に影響させない
        if self.notifier is None or commit.entity is None:
            return
        try:
            await self.notifier.send_invitation(commit.entity)
        except Exception as e:
            logger.warning("invitation email failed for %s: %s", getattr(commit.entity, "email", "?"), e)


class CustomerStrategy(PerRowCommitStrategy):
    kind = ImportKind.CUSTOMER
    default_error = "Failed to create customer"

    async def prepare(self) -> None:
        self.index = await CustomerIndex.load(self.store, self.context.organization_id or "")

    def duplicate_identifier(self, candidate: CustomerCandidate) -> str:
        if self.index.emails.origin(candidate.email_key) is not None:
            return candidate.email or candidate.name
        return candidate.name

    async def commit(self, candidate: CustomerCandidate) -> CommitResult:
        return await self.store.create_customer(self.context, candidate)


class MaterialStrategy(PerRowCommitStrategy):
    kind = ImportKind.MATERIAL
    default_error = "Failed to create material"

    async def prepare(self) -> None:
        self.index = await MaterialIndex.load(self.store, self.context.organization_id or "")

    async def commit(self, candidate: MaterialCandidate) -> CommitResult:
        return await self.store.create_material(self.context, candidate)


class AggregateCommitStrategy(CommitStrategy):
    """Service catalog: stage per row, write once at the end."""
    kind = ImportKind.SERVICE
    index: ServiceIndex

    async def prepare(self) -> None:
        self.index = await ServiceIndex.load(self.store, self.context.organization_id or "")

    async def handle(self, row: int, candidate: ServiceCandidate, result: ResultAggregator) -> RowOutcome | None:
        reason = self.index.duplicate_reason(candidate)
        if reason is not None:
            # 重複はエラー一覧に載せずカウントのみ
            logger.debug("row=%d service=%r %s", row, candidate.name, reason)
            raise DuplicateSkip("", candidate.name)
        self.index.stage(candidate)
        return None

    async def finalize(self, result: ResultAggregator) -> None:
        staged = self.index.staged_names
        if not staged:
            self._add_empty_notes(result)
            return

        catalog = self.index.catalog
        services = sorted([*catalog.services, *staged])
        categories = None
        if self.index.staged_categories:
            categories = sorted([*catalog.categories, *self.index.staged_categories])

        try:
            commit = await self.store.update_service_catalog(
                self.context.organization_id or "", services, categories
            )
        except Exception as e:
            logger.warning("service catalog update raised: %s", e)
            result.record_bulk_failure(len(staged), "Company update", str(e) or "Unknown error")
            return

        if commit.ok:
            logger.info(
                "service catalog updated added_services=%d added_categories=%d",
                len(staged),
                len(self.index.staged_categories),
            )
            result.record_bulk_success(len(staged))
        else:
            message = commit.error or "Failed to update company services"
            logger.warning("service catalog update failed: %s", message)
            result.record_bulk_failure(len(staged), "Company update", message)

    @staticmethod
    def _add_empty_notes(result: ResultAggregator) -> None:
        if result.errors:
            return
        if result.duplicates == result.total and result.total > 0:
            result.add_note(
                "Import",
                "No new services to add. All services in the file already exist in your company.",
            )
        elif result.total > 0:
            result.add_note("Import", "No valid services to add (all were duplicates or invalid)")


def strategy_for(
    kind: ImportKind,
    store: ImportStore,
    context: ImportContext,
    settings: EngineSettings,
    notifier: InvitationNotifier | None = None,
) -> CommitStrategy:
    if kind is ImportKind.TEAM_MEMBER:
        return TeamMemberStrategy(store, context, settings, notifier)
    if kind is ImportKind.CUSTOMER:
        return CustomerStrategy(store, context, settings)
    if kind is ImportKind.MATERIAL:
        return MaterialStrategy(store, context, settings)
    return AggregateCommitStrategy(store, context, settings)
