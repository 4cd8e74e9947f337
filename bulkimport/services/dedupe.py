from __future__ import annotations

from collections.abc import Awaitable, Callable, Hashable, Iterable
from typing import Any

from ..errors import PreloadError
from ..models.candidates import (
    CustomerCandidate,
    MaterialCandidate,
    ServiceCandidate,
    TeamMemberCandidate,
)
from ..store.base import ImportStore, ServiceCatalog

"""Duplicate indexes.

A duplicate index is built once per batch run from the keys already persisted for the
organization, then grows as rows of the same batch succeed. It is discarded at the end
of the run and never persisted itself.
"""

__all__ = [
    "DuplicateIndex",
    "TeamMemberIndex",
    "CustomerIndex",
    "MaterialIndex",
    "ServiceIndex",
]

EXISTING = "existing"
IN_BATCH = "batch"


class DuplicateIndex:
    """Key set that remembers whether a key came from the store or from this batch."""

    def __init__(self, existing: Iterable[Hashable] = ()) -> None:
        self._existing: set[Hashable] = set(existing)
        self._batch: set[Hashable] = set()

    def origin(self, key: Hashable | None) -> str | None:
        """EXISTING, IN_BATCH, or None when the key is unknown (None keys never collide)."""
        if key is None:
            return None
        if key in self._existing:
            return EXISTING
        if key in self._batch:
            return IN_BATCH
        return None

    def add(self, key: Hashable | None) -> None:
        if key is not None:
            self._batch.add(key)

    def __contains__(self, key: object) -> bool:
        return key in self._existing or key in self._batch

    def __len__(self) -> int:
        return len(self._existing | self._batch)

    @property
    def added(self) -> set[Hashable]:
        """Keys added during this batch."""
        return set(self._batch)


async def _preload(
    what: str,
    loader: Callable[[str], Awaitable[Any]],
    organization_id: str,
    build: Callable[[Any], Any],
) -> Any:
    # 読み込みとインデックス構築の両方を PreloadError に包む
    try:
        return build(await loader(organization_id))
    except Exception as e:
        raise PreloadError(f"Failed to load existing {what}: {str(e) or 'Unknown error'}", "Company") from e


class TeamMemberIndex:
    """Lower-cased invitation emails."""

    def __init__(self, existing_emails: Iterable[str] = ()) -> None:
        self.emails = DuplicateIndex(e.strip().lower() for e in existing_emails if e)

    @classmethod
    async def load(cls, store: ImportStore, organization_id: str) -> TeamMemberIndex:
        return await _preload("invitations", store.existing_invitation_emails, organization_id, cls)

    def duplicate_reason(self, candidate: TeamMemberCandidate) -> str | None:
        origin = self.emails.origin(candidate.email_key)
        if origin == EXISTING:
            return "Duplicate email - invitation already exists"
        if origin == IN_BATCH:
            return "Duplicate email within file - skipped"
        return None

    def remember(self, candidate: TeamMemberCandidate) -> None:
        self.emails.add(candidate.email_key)


class CustomerIndex:
    """Two-key identity: e-mail, and name + postal code. Either one colliding is a duplicate."""

    def __init__(
        self,
        email_keys: Iterable[str] = (),
        name_zip_keys: Iterable[tuple[str, str]] = (),
    ) -> None:
        self.emails = DuplicateIndex(email_keys)
        self.name_zips = DuplicateIndex(name_zip_keys)

    @classmethod
    async def load(cls, store: ImportStore, organization_id: str) -> CustomerIndex:
        return await _preload(
            "customers",
            store.customer_duplicate_keys,
            organization_id,
            lambda keys: cls(keys.email_keys, keys.name_zip_keys),
        )

    def duplicate_reason(self, candidate: CustomerCandidate) -> str | None:
        # email を先に判定 (メッセージの決定性)
        if self.emails.origin(candidate.email_key) is not None:
            return "Duplicate customer (email already exists) - skipped"
        if self.name_zips.origin(candidate.name_zip_key) is not None:
            return "Duplicate customer (name + ZIP already exists) - skipped"
        return None

    def remember(self, candidate: CustomerCandidate) -> None:
        self.emails.add(candidate.email_key)
        self.name_zips.add(candidate.name_zip_key)


class MaterialIndex:
    """Lower-cased material names."""

    def __init__(self, existing_names: Iterable[str] = ()) -> None:
        self.names = DuplicateIndex(n.strip().lower() for n in existing_names if n and n.strip())

    @classmethod
    async def load(cls, store: ImportStore, organization_id: str) -> MaterialIndex:
        return await _preload("materials", store.existing_material_names, organization_id, cls)

    def duplicate_reason(self, candidate: MaterialCandidate) -> str | None:
        if self.names.origin(candidate.name_key) is not None:
            return "Duplicate material name - skipped"
        return None

    def remember(self, candidate: MaterialCandidate) -> None:
        self.names.add(candidate.name_key)


def _clean_names(values: Iterable[Any]) -> tuple[str, ...]:
    return tuple(v for v in values if isinstance(v, str) and v.strip())


class ServiceIndex:
    """Catalog names and categories, compared case-insensitively.

    Staged names/categories keep the spelling of the first row that introduced them.
    """

    def __init__(self, catalog: ServiceCatalog | None = None) -> None:
        catalog = catalog or ServiceCatalog()
        # NULL / 空要素は無視する (text[] は NULL 要素を許す)
        self.catalog = ServiceCatalog(_clean_names(catalog.services), _clean_names(catalog.categories))
        self.names = DuplicateIndex(s.casefold() for s in self.catalog.services)
        self.categories = DuplicateIndex(c.casefold() for c in self.catalog.categories)
        self.staged_names: list[str] = []
        self.staged_categories: list[str] = []

    @classmethod
    async def load(cls, store: ImportStore, organization_id: str) -> ServiceIndex:
        return await _preload("company services", store.get_service_catalog, organization_id, cls)

    def duplicate_reason(self, candidate: ServiceCandidate) -> str | None:
        origin = self.names.origin(candidate.name_key)
        if origin == EXISTING:
            return "Service already exists in company catalog - skipped"
        if origin == IN_BATCH:
            return "Duplicate service within file - skipped"
        return None

    def stage(self, candidate: ServiceCandidate) -> None:
        self.names.add(candidate.name_key)
        self.staged_names.append(candidate.name)
        if candidate.category:
            key = candidate.category.casefold()
            if key not in self.categories:
                self.categories.add(key)
                self.staged_categories.append(candidate.category)
