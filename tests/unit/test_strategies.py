from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from bulkimport.models.batch_result import RowOutcome
from bulkimport.models.config_models import EngineSettings
from bulkimport.models.import_kind import ImportKind
from bulkimport.models.row_data import rows_from_mappings
from bulkimport.services.driver import run_batch
from bulkimport.services.strategies import (
    AggregateCommitStrategy,
    CustomerStrategy,
    MaterialStrategy,
    TeamMemberStrategy,
    strategy_for,
)
from bulkimport.store.base import CommitResult

ORG = "org-1"


def test_strategy_for_each_kind(store, context, settings):
    assert isinstance(strategy_for(ImportKind.TEAM_MEMBER, store, context, settings), TeamMemberStrategy)
    assert isinstance(strategy_for(ImportKind.CUSTOMER, store, context, settings), CustomerStrategy)
    assert isinstance(strategy_for(ImportKind.MATERIAL, store, context, settings), MaterialStrategy)
    assert isinstance(strategy_for(ImportKind.SERVICE, store, context, settings), AggregateCommitStrategy)


@pytest.mark.asyncio
async def test_commit_error_is_failure_with_store_message(store, context, settings):
    store.failures["bait"] = "permission denied for table materials"
    rows = rows_from_mappings([{"name": "Bait", "category": "c", "unit": "u", "price": 3}])
    result = await run_batch(rows, ImportKind.MATERIAL, store=store, context=context, settings=settings)
    assert result.failed == 1
    assert result.errors[0].message == "permission denied for table materials"
    assert result.errors[0].identifier == "Bait"


@pytest.mark.asyncio
async def test_duplicate_phrase_in_error_is_reclassified(store, context, settings):
    store.failures["ann@example.com"] = "Customer ALREADY EXISTS in CRM"
    rows = rows_from_mappings([{"name": "Ann", "email": "ann@example.com"}])
    result = await run_batch(rows, ImportKind.CUSTOMER, store=store, context=context, settings=settings)
    assert result.failed == 0
    assert result.duplicates == 1
    assert result.errors[0].outcome is RowOutcome.DUPLICATE
    assert result.errors[0].message == "Customer ALREADY EXISTS in CRM"


@pytest.mark.asyncio
async def test_custom_duplicate_phrases(store, context):
    settings = EngineSettings(pace_seconds=0, duplicate_phrases=("conflict",))
    store.failures["ann@example.com"] = "duplicate key"
    store.failures["bob@example.com"] = "409 conflict"
    rows = rows_from_mappings([
        {"name": "Ann", "email": "ann@example.com"},
        {"name": "Bob", "email": "bob@example.com"},
    ])
    result = await run_batch(rows, ImportKind.CUSTOMER, store=store, context=context, settings=settings)
    assert (result.failed, result.duplicates) == (1, 1)


@pytest.mark.asyncio
async def test_team_member_conflict_message_is_rewritten(store, context, settings):
    store.create_invitation = AsyncMock(return_value=CommitResult.conflict("duplicate key value violates unique constraint"))
    rows = rows_from_mappings([{"email": "a@x.com", "name": "A"}])
    result = await run_batch(rows, ImportKind.TEAM_MEMBER, store=store, context=context, settings=settings)
    assert result.duplicates == 1
    assert result.errors[0].message == "Duplicate email - invitation already exists"
    assert result.errors[0].identifier == "a@x.com"


@pytest.mark.asyncio
async def test_notifier_called_after_success_and_failures_ignored(store, context, settings):
    notifier = AsyncMock()
    notifier.send_invitation.side_effect = RuntimeError("smtp down")
    rows = rows_from_mappings([{"email": "a@x.com", "name": "A"}, {"email": "b@x.com", "name": "B"}])
    result = await run_batch(
        rows, ImportKind.TEAM_MEMBER, store=store, context=context, settings=settings, notifier=notifier
    )
    assert result.successful == 2
    assert notifier.send_invitation.await_count == 2
    sent = notifier.send_invitation.await_args_list[0].args[0]
    assert sent.email == "a@x.com"


@pytest.mark.asyncio
async def test_failed_commit_does_not_extend_index(store, context, settings):
    store.create_material = AsyncMock(side_effect=[
        CommitResult.failed("timeout"),
        CommitResult.created(),
    ])
    rows = rows_from_mappings([
        {"name": "Bait", "category": "c", "unit": "u", "price": 1},
        {"name": "Bait", "category": "c", "unit": "u", "price": 1},
    ])
    result = await run_batch(rows, ImportKind.MATERIAL, store=store, context=context, settings=settings)
    assert (result.successful, result.failed, result.duplicates) == (1, 1, 0)


@pytest.mark.asyncio
async def test_service_update_sorted_with_new_categories(store, context, settings):
    store.seed_catalog(ORG, ["Termite"], ["Treatment"])
    rows = rows_from_mappings([
        {"Service Name": "Bees", "Category": "Removal"},
        {"Service Name": "Ants", "Category": "Treatment"},
        {"Service Name": ""},
    ])
    result = await run_batch(rows, ImportKind.SERVICE, store=store, context=context, settings=settings)
    assert (result.successful, result.failed, result.duplicates) == (2, 1, 0)
    assert store.catalogs[ORG].services == ("Ants", "Bees", "Termite")
    assert store.catalogs[ORG].categories == ("Removal", "Treatment")
    assert result.errors[0].message == "Missing service name"


@pytest.mark.asyncio
async def test_service_update_failure_counts_staged_as_failed(store, context, settings):
    store.failures["__catalog__"] = "row level security"
    rows = rows_from_mappings([{"service": "A"}, {"service": "B"}, {"service": ""}, {"service": "a"}])
    result = await run_batch(rows, ImportKind.SERVICE, store=store, context=context, settings=settings)
    assert result.successful == 0
    assert result.duplicates == 1
    assert result.failed == 3
    assert result.successful + result.failed + result.duplicates == result.total
    last = result.errors[-1]
    assert (last.row, last.identifier, last.message) == (0, "Company update", "row level security")


@pytest.mark.asyncio
async def test_service_update_exception_uses_default_identifier(store, context, settings):
    store.update_service_catalog = AsyncMock(side_effect=RuntimeError("boom"))
    rows = rows_from_mappings([{"service": "A"}])
    result = await run_batch(rows, ImportKind.SERVICE, store=store, context=context, settings=settings)
    assert result.failed == 1
    assert result.errors[-1].identifier == "Company update"
    assert result.errors[-1].message == "boom"


@pytest.mark.asyncio
async def test_service_all_existing_adds_note(store, context, settings):
    store.seed_catalog(ORG, ["A", "B"])
    rows = rows_from_mappings([{"service": "a"}, {"service": "B"}])
    result = await run_batch(rows, ImportKind.SERVICE, store=store, context=context, settings=settings)
    assert result.duplicates == 2
    assert store.catalog_updates == 0
    assert [(e.row, e.identifier) for e in result.errors] == [(0, "Import")]
    assert result.errors[0].message.startswith("No new services to add.")
    assert result.errors[0].outcome is RowOutcome.INFO
    assert not result.has_failures


@pytest.mark.asyncio
async def test_service_nothing_staged_with_errors_adds_no_note(store, context, settings):
    rows = rows_from_mappings([{"service": ""}])
    result = await run_batch(rows, ImportKind.SERVICE, store=store, context=context, settings=settings)
    assert [e.message for e in result.errors] == ["Missing service name"]
