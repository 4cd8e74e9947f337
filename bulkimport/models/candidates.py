from __future__ import annotations

from dataclasses import dataclass

"""Candidate records produced by the row validators.

A candidate is the trimmed, type-coerced output of one successfully validated row.
It lives only until it is committed (or staged, for services) or rejected as a duplicate.
"""

__all__ = [
    "TeamMemberCandidate",
    "CustomerCandidate",
    "ServiceCandidate",
    "MaterialCandidate",
]


@dataclass(frozen=True)
class TeamMemberCandidate:
    """Invitation to create for a new team member."""
    email: str  # trimmed, original case
    name: str
    role: str  # admin / supervisor / field_tech
    phone: str = ""
    notes: str = ""

    @property
    def email_key(self) -> str:
        return self.email.lower()


@dataclass(frozen=True)
class CustomerCandidate:
    """Customer record to create."""
    name: str
    email: str = ""
    phone: str = ""
    address: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = ""
    notes: str = ""
    email_consent: bool = False

    @property
    def email_key(self) -> str | None:
        """Lower-cased email, or None when the row has no email."""
        return self.email.lower() if self.email else None

    @property
    def name_zip_key(self) -> tuple[str, str] | None:
        """(lower name, lower postal code), or None when either part is empty."""
        if not self.name or not self.zip_code:
            return None
        return (self.name.lower(), self.zip_code.lower())


@dataclass(frozen=True)
class ServiceCandidate:
    """Catalog service name (and optional category) to stage."""
    name: str
    category: str = ""
    description: str = ""
    base_price: str = ""

    @property
    def name_key(self) -> str:
        return self.name.casefold()


@dataclass(frozen=True)
class MaterialCandidate:
    """Inventory material to create."""
    name: str
    category: str
    unit: str
    retail_price: float
    description: str = ""
    subcategory: str = ""
    cost_per_unit: float = 0.0
    supplier: str = ""
    supplier_sku: str = ""
    reorder_threshold: float = 0.0
    quantity_in_stock: float = 0.0
    storage_location: str = ""
    active: bool = True
    internal_notes: str = ""
    taxable: bool = False
    default_markup_percent: float = 0.0

    @property
    def name_key(self) -> str:
        return self.name.lower()
