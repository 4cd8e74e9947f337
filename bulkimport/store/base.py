from __future__ import annotations

import secrets
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from enum import Enum
from typing import Any, Protocol

from ..models.candidates import CustomerCandidate, MaterialCandidate, TeamMemberCandidate

"""Store interface consumed by the import engine.

The engine never talks to a database directly. It reads existing identity keys and
writes new records through an ImportStore. Every write returns a CommitResult whose
status tells a duplicate conflict apart from any other failure.
"""

__all__ = [
    "ImportContext",
    "CommitStatus",
    "CommitResult",
    "CustomerKeys",
    "ServiceCatalog",
    "Invitation",
    "ImportStore",
    "InvitationNotifier",
    "INVITATION_CODE_ALPHABET",
    "INVITATION_TTL",
    "generate_invitation_code",
    "build_invitation",
    "customer_status_for",
]

INVITATION_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
INVITATION_CODE_LENGTH = 8
INVITATION_TTL = timedelta(days=7)

# 顧客を即時承認できるロール。それ以外は pending で作成
APPROVER_ROLES = frozenset({"admin", "supervisor", "super_admin"})


@dataclass(frozen=True)
class ImportContext:
    """Who is importing and for which organization."""
    organization_id: str | None
    invited_by: str | None = None
    importer_role: str = "admin"
    organization_name: str = ""


class CommitStatus(Enum):
    CREATED = "created"
    CONFLICT = "conflict"  # 同一キーのレコードが既に存在
    ERROR = "error"


@dataclass(frozen=True)
class CommitResult:
    status: CommitStatus
    error: str | None = None
    entity: Any = None

    @property
    def ok(self) -> bool:
        return self.status is CommitStatus.CREATED

    @staticmethod
    def created(entity: Any = None) -> CommitResult:
        return CommitResult(CommitStatus.CREATED, None, entity)

    @staticmethod
    def conflict(error: str) -> CommitResult:
        return CommitResult(CommitStatus.CONFLICT, error)

    @staticmethod
    def failed(error: str) -> CommitResult:
        return CommitResult(CommitStatus.ERROR, error)


@dataclass(frozen=True)
class CustomerKeys:
    """Existing customer identities of one organization (both already lower-cased)."""
    email_keys: frozenset[str] = frozenset()
    name_zip_keys: frozenset[tuple[str, str]] = frozenset()


@dataclass(frozen=True)
class ServiceCatalog:
    services: tuple[str, ...] = ()
    categories: tuple[str, ...] = ()


@dataclass(frozen=True)
class Invitation:
    id: str
    organization_id: str
    organization_name: str
    email: str
    role: str
    invitation_code: str
    invited_by: str | None
    status: str = "pending"
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    expires_at: datetime = field(default_factory=lambda: datetime.now(UTC) + INVITATION_TTL)


class ImportStore(Protocol):
    """Persistence collaborator. All identity lookups are scoped to one organization."""

    async def existing_invitation_emails(self, organization_id: str) -> set[str]: ...

    async def customer_duplicate_keys(self, organization_id: str) -> CustomerKeys: ...

    async def existing_material_names(self, organization_id: str) -> set[str]: ...

    async def get_service_catalog(self, organization_id: str) -> ServiceCatalog: ...

    async def create_invitation(
        self, context: ImportContext, candidate: TeamMemberCandidate
    ) -> CommitResult: ...

    async def create_customer(
        self, context: ImportContext, candidate: CustomerCandidate
    ) -> CommitResult: ...

    async def create_material(
        self, context: ImportContext, candidate: MaterialCandidate
    ) -> CommitResult: ...

    async def update_service_catalog(
        self, organization_id: str, services: list[str], categories: list[str] | None
    ) -> CommitResult: ...


class InvitationNotifier(Protocol):
    """Sends the invitation e-mail after an invitation has been created."""

    async def send_invitation(self, invitation: Invitation) -> None: ...


def generate_invitation_code() -> str:
    return "".join(secrets.choice(INVITATION_CODE_ALPHABET) for _ in range(INVITATION_CODE_LENGTH))


def build_invitation(invitation_id: str, context: ImportContext, candidate: TeamMemberCandidate) -> Invitation:
    """Invitation as persisted: lower-cased email, fresh code, pending for 7 days."""
    now = datetime.now(UTC)
    return Invitation(
        id=invitation_id,
        organization_id=context.organization_id or "",
        organization_name=context.organization_name,
        email=candidate.email_key,
        role=candidate.role,
        invitation_code=generate_invitation_code(),
        invited_by=context.invited_by,
        status="pending",
        created_at=now,
        expires_at=now + INVITATION_TTL,
    )


def customer_status_for(importer_role: str) -> str:
    return "approved" if importer_role in APPROVER_ROLES else "pending"
