from __future__ import annotations

from unittest.mock import AsyncMock, patch

import pytest

from bulkimport.models.batch_result import RowOutcome
from bulkimport.models.config_models import EngineSettings
from bulkimport.models.import_kind import ImportKind
from bulkimport.models.row_data import rows_from_mappings
from bulkimport.services.driver import NO_COMPANY_MESSAGE, BatchDriver, run_batch
from bulkimport.store.base import ImportContext, ServiceCatalog

ORG = "org-1"


@pytest.mark.asyncio
async def test_team_member_example_end_to_end(store, context, settings):
    rows = rows_from_mappings([
        {"email": "x@y.com", "name": "X"},
        {"email": "x@y.com", "name": "X dup"},
        {"email": "bad", "name": "Y"},
    ])
    result = await run_batch(rows, ImportKind.TEAM_MEMBER, store=store, context=context, settings=settings)
    assert result.to_dict()["total"] == 3
    assert (result.successful, result.failed, result.duplicates) == (1, 1, 1)
    dup, failed = result.errors
    assert dup.row == 3 and dup.outcome is RowOutcome.DUPLICATE
    assert dup.message == "Duplicate email within file - skipped"
    assert failed.row == 4 and failed.outcome is RowOutcome.FAILED
    assert failed.identifier == "bad"
    assert failed.message == "Invalid or missing email address"


@pytest.mark.asyncio
async def test_same_identity_twice_is_one_success_one_duplicate_regardless_of_order(store, context, settings):
    rows = rows_from_mappings([
        {"Material Name": "Trap", "Category": "Traps", "Unit": "each", "Retail Price": "9"},
        {"Material Name": "Bait", "Category": "Baits", "Unit": "each", "Retail Price": "5"},
        {"Material Name": "TRAP", "Category": "Traps", "Unit": "each", "Retail Price": "9"},
    ])
    result = await run_batch(rows, "material", store=store, context=context, settings=settings)
    assert result.successful == 2
    assert result.duplicates == 1
    assert result.errors[0].row == 4


@pytest.mark.asyncio
async def test_preexisting_identity_is_duplicate_even_on_first_row(store, context, settings):
    store.seed_customer(ORG, name="Ann", email="ann@example.com")
    rows = rows_from_mappings([{"Customer Name": "Ann B", "Email": "ANN@example.com"}])
    result = await run_batch(rows, ImportKind.CUSTOMER, store=store, context=context, settings=settings)
    assert result.successful == 0
    assert result.duplicates == 1
    assert result.errors[0].message == "Duplicate customer (email already exists) - skipped"
    assert result.errors[0].identifier == "ANN@example.com"


@pytest.mark.asyncio
async def test_counts_add_up_for_per_row_kinds(store, context, settings):
    store.seed_material(ORG, "Old")
    rows = rows_from_mappings([
        {"name": "Old", "category": "c", "unit": "u", "retailPrice": 1},
        {"name": "New", "category": "c", "unit": "u", "retailPrice": "x"},
        {"name": "New", "category": "c", "unit": "u", "retailPrice": 2},
        {"name": "", "category": "c", "unit": "u", "retailPrice": 2},
    ])
    result = await run_batch(rows, ImportKind.MATERIAL, store=store, context=context, settings=settings)
    assert result.total == 4
    assert result.successful + result.failed + result.duplicates == result.total
    assert (result.successful, result.failed, result.duplicates) == (1, 2, 1)


@pytest.mark.asyncio
async def test_service_example(store, context, settings):
    store.seed_catalog(ORG, ["A"])
    rows = rows_from_mappings([{"service": "A"}, {"service": "B"}, {"service": "B"}])
    result = await run_batch(rows, ImportKind.SERVICE, store=store, context=context, settings=settings)
    assert result.total == 3
    assert result.successful == 1
    assert result.duplicates == 2
    assert result.failed == 0
    assert store.catalogs[ORG].services == ("A", "B")
    assert store.catalog_updates == 1
    # 重複はエラー一覧に載らない
    assert result.errors == ()


@pytest.mark.asyncio
async def test_progress_called_once_per_row_in_order(store, context, settings):
    seen: list[int] = []
    rows = rows_from_mappings([{"email": f"u{i}@x.com", "name": "U"} for i in range(5)] + [{"email": "bad"}])
    await run_batch(rows, ImportKind.TEAM_MEMBER, seen.append, store=store, context=context, settings=settings)
    assert seen == [1, 2, 3, 4, 5, 6]


@pytest.mark.asyncio
async def test_progress_callback_errors_do_not_break_the_batch(store, context, settings):
    def boom(_: int) -> None:
        raise RuntimeError("ui gone")

    rows = rows_from_mappings([{"email": "a@x.com", "name": "A"}])
    result = await run_batch(rows, ImportKind.TEAM_MEMBER, boom, store=store, context=context, settings=settings)
    assert result.successful == 1


@pytest.mark.asyncio
async def test_pacing_after_every_tenth_row(store, context):
    settings = EngineSettings(pace_every=10, pace_seconds=0.25)
    rows = rows_from_mappings([{"service": f"S{i}"} for i in range(25)])
    with patch("bulkimport.services.driver.asyncio.sleep", new=AsyncMock()) as sleep:
        await run_batch(rows, ImportKind.SERVICE, store=store, context=context, settings=settings)
    assert sleep.await_count == 2
    sleep.assert_awaited_with(0.25)


@pytest.mark.asyncio
async def test_no_pause_before_tenth_row(store, context):
    rows = rows_from_mappings([{"service": f"S{i}"} for i in range(9)])
    with patch("bulkimport.services.driver.asyncio.sleep", new=AsyncMock()) as sleep:
        await run_batch(rows, ImportKind.SERVICE, store=store, context=context)
    sleep.assert_not_awaited()


@pytest.mark.asyncio
async def test_missing_organization_fails_whole_batch(store, settings):
    seen: list[int] = []
    rows = rows_from_mappings([{"email": "a@x.com", "name": "A"}, {"email": "b@x.com", "name": "B"}])
    result = await run_batch(
        rows, ImportKind.TEAM_MEMBER, seen.append,
        store=store, context=ImportContext(organization_id=None), settings=settings,
    )
    assert result.total == 2
    assert result.failed == 2
    assert len(result.errors) == 1
    entry = result.errors[0]
    assert (entry.row, entry.identifier, entry.message) == (0, "Company", NO_COMPANY_MESSAGE)
    assert seen == [1, 2]


@pytest.mark.asyncio
async def test_preload_failure_fails_whole_batch(store, context, settings):
    store.preload_error = "timeout"
    rows = rows_from_mappings([{"name": "Bait", "category": "c", "unit": "u", "price": 1}])
    result = await run_batch(rows, ImportKind.MATERIAL, store=store, context=context, settings=settings)
    assert result.failed == 1
    assert result.errors[0].message == "Failed to load existing materials: timeout"


@pytest.mark.asyncio
async def test_unexpected_exception_is_row_failure(store, context, settings):
    store.create_customer = AsyncMock(side_effect=[RuntimeError(""), RuntimeError("socket closed")])
    rows = rows_from_mappings([
        {"name": "Ann", "phone": "1"},
        {"name": "Bob", "phone": "2"},
    ])
    result = await run_batch(rows, ImportKind.CUSTOMER, store=store, context=context, settings=settings)
    assert result.failed == 2
    assert [e.message for e in result.errors] == ["Unknown error", "socket closed"]
    assert [e.identifier for e in result.errors] == ["Ann", "Bob"]


@pytest.mark.asyncio
async def test_empty_batch(store, context, settings):
    driver = BatchDriver(ImportKind.CUSTOMER, store, context, settings)
    result = await driver.run([])
    assert result.to_dict() == {"total": 0, "successful": 0, "failed": 0, "duplicates": 0, "errors": []}


@pytest.mark.asyncio
async def test_service_catalog_with_null_entry_does_not_escape(store, context, settings):
    store.catalogs[ORG] = ServiceCatalog(("A", None), ())
    rows = rows_from_mappings([{"Service Name": "B"}, {"Service Name": "a"}])
    result = await run_batch(rows, ImportKind.SERVICE, store=store, context=context, settings=settings)
    assert (result.successful, result.failed, result.duplicates) == (1, 0, 1)
    assert store.catalogs[ORG].services == ("A", "B")
