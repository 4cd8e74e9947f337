from __future__ import annotations

import itertools
from dataclasses import asdict
from typing import Any

from ..models.candidates import CustomerCandidate, MaterialCandidate, TeamMemberCandidate
from .base import (
    CommitResult,
    CustomerKeys,
    ImportContext,
    Invitation,
    ServiceCatalog,
    build_invitation,
    customer_status_for,
)

"""In-memory ImportStore.

Used for mock mode (no database connection) and throughout the tests. Records are kept
per organization. Writes that would collide with an existing identity return a CONFLICT
result the same way the PostgreSQL adapter does on a unique violation.

Test hooks:
- ``failures``: identity key -> error message; a write for that key returns ERROR
- ``preload_error``: when set, every lookup raises RuntimeError with this message
"""

__all__ = [
    "InMemoryStore",
]


class InMemoryStore:
    def __init__(self) -> None:
        self.invitations: dict[str, list[Invitation]] = {}
        self.customers: dict[str, list[dict[str, Any]]] = {}
        self.materials: dict[str, list[dict[str, Any]]] = {}
        self.catalogs: dict[str, ServiceCatalog] = {}
        self.failures: dict[str, str] = {}
        self.preload_error: str | None = None
        self.catalog_updates = 0
        self._ids = itertools.count(1)

    # -- seeding helpers (tests / mock mode) ---------------------------------

    def seed_invitation(self, organization_id: str, email: str, role: str = "field_tech") -> None:
        ctx = ImportContext(organization_id=organization_id)
        cand = TeamMemberCandidate(email=email, name=email, role=role)
        self.invitations.setdefault(organization_id, []).append(
            build_invitation(self._next_id("inv"), ctx, cand)
        )

    def seed_customer(self, organization_id: str, **fields: Any) -> None:
        self.customers.setdefault(organization_id, []).append(asdict(CustomerCandidate(**fields)))

    def seed_material(self, organization_id: str, name: str, **fields: Any) -> None:
        record = {"name": name}
        record.update(fields)
        self.materials.setdefault(organization_id, []).append(record)

    def seed_catalog(self, organization_id: str, services: list[str], categories: list[str] | None = None) -> None:
        self.catalogs[organization_id] = ServiceCatalog(tuple(services), tuple(categories or ()))

    # -- lookups ------------------------------------------------------------

    def _check_preload(self) -> None:
        if self.preload_error is not None:
            raise RuntimeError(self.preload_error)

    async def existing_invitation_emails(self, organization_id: str) -> set[str]:
        self._check_preload()
        return {
            inv.email.lower()
            for inv in self.invitations.get(organization_id, [])
            if inv.status == "pending"
        }

    async def customer_duplicate_keys(self, organization_id: str) -> CustomerKeys:
        self._check_preload()
        emails: set[str] = set()
        name_zips: set[tuple[str, str]] = set()
        for c in self.customers.get(organization_id, []):
            email = (c.get("email") or "").strip().lower()
            name = (c.get("name") or "").strip().lower()
            zip_code = (c.get("zip_code") or "").strip().lower()
            if email:
                emails.add(email)
            if name and zip_code:
                name_zips.add((name, zip_code))
        return CustomerKeys(frozenset(emails), frozenset(name_zips))

    async def existing_material_names(self, organization_id: str) -> set[str]:
        self._check_preload()
        return {
            (m.get("name") or "").strip().lower()
            for m in self.materials.get(organization_id, [])
            if (m.get("name") or "").strip()
        }

    async def get_service_catalog(self, organization_id: str) -> ServiceCatalog:
        self._check_preload()
        return self.catalogs.get(organization_id, ServiceCatalog())

    # -- writes -------------------------------------------------------------

    async def create_invitation(self, context: ImportContext, candidate: TeamMemberCandidate) -> CommitResult:
        if candidate.email_key in self.failures:
            return CommitResult.failed(self.failures[candidate.email_key])
        org = context.organization_id or ""
        if candidate.email_key in await self.existing_invitation_emails(org):
            return CommitResult.conflict("An invitation already exists for this email")
        invitation = build_invitation(self._next_id("inv"), context, candidate)
        self.invitations.setdefault(org, []).append(invitation)
        return CommitResult.created(invitation)

    async def create_customer(self, context: ImportContext, candidate: CustomerCandidate) -> CommitResult:
        key = candidate.email_key or candidate.name.lower()
        if key in self.failures:
            return CommitResult.failed(self.failures[key])
        org = context.organization_id or ""
        existing = await self.customer_duplicate_keys(org)
        if candidate.email_key and candidate.email_key in existing.email_keys:
            return CommitResult.conflict("Duplicate customer (email already exists)")
        record = asdict(candidate)
        record["id"] = self._next_id("cus")
        record["status"] = customer_status_for(context.importer_role)
        record["created_by"] = context.invited_by
        self.customers.setdefault(org, []).append(record)
        return CommitResult.created(record)

    async def create_material(self, context: ImportContext, candidate: MaterialCandidate) -> CommitResult:
        if candidate.name_key in self.failures:
            return CommitResult.failed(self.failures[candidate.name_key])
        org = context.organization_id or ""
        if candidate.name_key in await self.existing_material_names(org):
            return CommitResult.conflict("Duplicate material name")
        record = asdict(candidate)
        record["id"] = self._next_id("mat")
        self.materials.setdefault(org, []).append(record)
        return CommitResult.created(record)

    async def update_service_catalog(
        self, organization_id: str, services: list[str], categories: list[str] | None
    ) -> CommitResult:
        if "__catalog__" in self.failures:
            return CommitResult.failed(self.failures["__catalog__"])
        current = self.catalogs.get(organization_id, ServiceCatalog())
        self.catalogs[organization_id] = ServiceCatalog(
            services=tuple(services),
            categories=tuple(categories) if categories is not None else current.categories,
        )
        self.catalog_updates += 1
        return CommitResult.created(self.catalogs[organization_id])

    def _next_id(self, prefix: str) -> str:
        return f"{prefix}-{next(self._ids)}"
