from __future__ import annotations

import asyncio
import logging
import os
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import psycopg2
from psycopg2 import errors as pg_errors

from ..errors import StoreError
from ..models.candidates import CustomerCandidate, MaterialCandidate, TeamMemberCandidate
from ..models.config_models import DatabaseConfig
from .base import (
    CommitResult,
    CustomerKeys,
    ImportContext,
    ServiceCatalog,
    build_invitation,
    customer_status_for,
)

"""PostgreSQL ImportStore (psycopg2).

Tables: invitations, customers, materials, companies (see sql/schema.sql).
Each write runs in its own transaction so one failing row never rolls back another.
UniqueViolation -> CONFLICT, any other psycopg2 error -> ERROR. Blocking driver calls
are pushed to a worker thread with asyncio.to_thread; the engine awaits them one at a
time so the connection is never used concurrently.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "PostgresStore",
    "resolve_dsn",
    "connect",
]

INSERT_INVITATION = (
    "INSERT INTO invitations (id, organization_id, organization_name, email, role, "
    "invitation_code, invited_by, status, created_at, expires_at) "
    "VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s)"
)
INSERT_CUSTOMER = (
    "INSERT INTO customers (id, organization_id, name, email, phone, address, city, state, "
    "zip_code, notes, email_consent, status, created_by) "
    "VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)"
)
INSERT_MATERIAL = (
    "INSERT INTO materials (id, organization_id, name, description, category, subcategory, "
    "unit, cost_per_unit, retail_price, supplier, supplier_sku, reorder_threshold, "
    "quantity_in_stock, storage_location, active, internal_notes, taxable, "
    "default_markup_percent) "
    "VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)"
)
UPDATE_CATALOG = (
    "UPDATE companies SET services = %s, "
    "service_categories = COALESCE(%s::text[], service_categories), updated_at = now() "
    "WHERE id = %s"
)


def resolve_dsn(db_cfg: DatabaseConfig) -> str:
    """Build the connection string.

    接続情報の優先順位:
        1. DATABASE_URL / PGDSN (DSN 全体)
        2. config の database.dsn
        3. PGHOST / PGPORT / PGUSER / PGPASSWORD / PGDATABASE, 不足分は config の各項目
    """
    dsn = os.getenv("DATABASE_URL") or os.getenv("PGDSN") or db_cfg.dsn
    if dsn:
        return dsn
    host = os.getenv("PGHOST", db_cfg.host or "localhost")
    port = os.getenv("PGPORT", str(db_cfg.port) if db_cfg.port else "5432")
    user = os.getenv("PGUSER", db_cfg.user or "postgres")
    password = os.getenv("PGPASSWORD", db_cfg.password or "")
    database = os.getenv("PGDATABASE", db_cfg.database or "postgres")
    dsn = f"host={host} port={port} user={user} dbname={database}"
    if password:
        dsn += f" password={password}"
    return dsn


@contextmanager
def connect(dsn: str) -> Iterator[PostgresStore]:
    """Open a psycopg2 connection and yield a PostgresStore bound to it.

    Raises:
        StoreError: the server could not be reached
    """
    try:
        conn = psycopg2.connect(dsn)
    except psycopg2.Error as e:
        raise StoreError(_first_line(e) or "connection failed", "Database") from e
    conn.autocommit = False
    try:
        yield PostgresStore(conn)
    finally:
        conn.close()


def _first_line(e: Exception) -> str:
    text = (getattr(e, "pgerror", None) or str(e)).strip()
    return text.splitlines()[0] if text else ""


class PostgresStore:
    def __init__(self, conn: Any) -> None:
        self._conn = conn

    # -- sync helpers (run in a worker thread) ------------------------------

    def _fetch(self, sql: str, params: tuple[Any, ...]) -> list[tuple[Any, ...]]:
        try:
            with self._conn.cursor() as cur:
                cur.execute(sql, params)
                rows = cur.fetchall()
            self._conn.commit()
            return rows
        except psycopg2.Error:
            self._conn.rollback()
            raise

    def _write(self, sql: str, params: tuple[Any, ...], entity: Any = None) -> CommitResult:
        try:
            with self._conn.cursor() as cur:
                cur.execute(sql, params)
                rowcount = cur.rowcount
            self._conn.commit()
        except pg_errors.UniqueViolation as e:
            self._conn.rollback()
            return CommitResult.conflict(_first_line(e) or "Duplicate record")
        except psycopg2.Error as e:
            self._conn.rollback()
            logger.debug("write failed: %s", e)
            return CommitResult.failed(_first_line(e) or "Database error")
        if rowcount == 0:
            return CommitResult.failed("No rows affected")
        return CommitResult.created(entity)

    # -- lookups --------------------------------------------------------------

    async def existing_invitation_emails(self, organization_id: str) -> set[str]:
        rows = await asyncio.to_thread(
            self._fetch,
            "SELECT lower(email) FROM invitations WHERE organization_id = %s AND status = 'pending'",
            (organization_id,),
        )
        return {r[0] for r in rows if r[0]}

    async def customer_duplicate_keys(self, organization_id: str) -> CustomerKeys:
        rows = await asyncio.to_thread(
            self._fetch,
            "SELECT lower(trim(coalesce(email, ''))), lower(trim(coalesce(name, ''))), "
            "lower(trim(coalesce(zip_code, ''))) FROM customers WHERE organization_id = %s",
            (organization_id,),
        )
        emails = frozenset(email for email, _, _ in rows if email)
        name_zips = frozenset((name, zip_code) for _, name, zip_code in rows if name and zip_code)
        return CustomerKeys(emails, name_zips)

    async def existing_material_names(self, organization_id: str) -> set[str]:
        rows = await asyncio.to_thread(
            self._fetch,
            "SELECT lower(trim(name)) FROM materials WHERE organization_id = %s",
            (organization_id,),
        )
        return {r[0] for r in rows if r[0]}

    async def get_service_catalog(self, organization_id: str) -> ServiceCatalog:
        rows = await asyncio.to_thread(
            self._fetch,
            "SELECT services, service_categories FROM companies WHERE id = %s",
            (organization_id,),
        )
        if not rows:
            return ServiceCatalog()
        services, categories = rows[0]
        return ServiceCatalog(tuple(services or ()), tuple(categories or ()))

    # -- writes ---------------------------------------------------------------

    async def create_invitation(self, context: ImportContext, candidate: TeamMemberCandidate) -> CommitResult:
        inv = build_invitation(str(uuid.uuid4()), context, candidate)
        params = (
            inv.id,
            inv.organization_id,
            inv.organization_name,
            inv.email,
            inv.role,
            inv.invitation_code,
            inv.invited_by,
            inv.status,
            inv.created_at,
            inv.expires_at,
        )
        return await asyncio.to_thread(self._write, INSERT_INVITATION, params, inv)

    async def create_customer(self, context: ImportContext, candidate: CustomerCandidate) -> CommitResult:
        c = candidate
        params = (
            str(uuid.uuid4()),
            context.organization_id,
            c.name,
            c.email or None,
            c.phone or None,
            c.address or None,
            c.city or None,
            c.state or None,
            c.zip_code or None,
            c.notes or None,
            c.email_consent,
            customer_status_for(context.importer_role),
            context.invited_by,
        )
        return await asyncio.to_thread(self._write, INSERT_CUSTOMER, params, candidate)

    async def create_material(self, context: ImportContext, candidate: MaterialCandidate) -> CommitResult:
        m = candidate
        params = (
            str(uuid.uuid4()),
            context.organization_id,
            m.name,
            m.description or None,
            m.category,
            m.subcategory or None,
            m.unit,
            m.cost_per_unit,
            m.retail_price,
            m.supplier or None,
            m.supplier_sku or None,
            m.reorder_threshold,
            m.quantity_in_stock,
            m.storage_location or None,
            m.active,
            m.internal_notes or None,
            m.taxable,
            m.default_markup_percent,
        )
        return await asyncio.to_thread(self._write, INSERT_MATERIAL, params, candidate)

    async def update_service_catalog(
        self, organization_id: str, services: list[str], categories: list[str] | None
    ) -> CommitResult:
        result = await asyncio.to_thread(
            self._write, UPDATE_CATALOG, (services, categories, organization_id)
        )
        if result.error == "No rows affected":
            return CommitResult.failed("Company not found")
        return result
