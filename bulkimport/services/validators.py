from __future__ import annotations

import math
from collections.abc import Callable, Mapping
from typing import Any

import pandas as pd

from ..errors import ValidationError
from ..models.candidates import (
    CustomerCandidate,
    MaterialCandidate,
    ServiceCandidate,
    TeamMemberCandidate,
)
from ..models.import_kind import ImportKind
from ..normalize.fields import to_text

"""Row validators, one per import kind.

Each validator takes the normalized field mapping of one row and either returns a
candidate record or raises ValidationError. Rules are checked in a fixed order and the
first failing rule wins, so the message for a given row is always the same.
"""

__all__ = [
    "ROLE_ALIASES",
    "DEFAULT_ROLE",
    "normalize_role",
    "parse_number",
    "parse_flag",
    "validate_team_member",
    "validate_customer",
    "validate_service",
    "validate_material",
    "validator_for",
    "row_identifier",
]

DEFAULT_ROLE = "field_tech"

ROLE_ALIASES: dict[str, str] = {
    "admin": "admin",
    "administrator": "admin",
    "company administrator": "admin",
    "supervisor": "supervisor",
    "manager": "supervisor",
    "technician": "field_tech",
    "field technician": "field_tech",
    "field tech": "field_tech",
    "field_tech": "field_tech",
    "tech": "field_tech",
}

_TRUTHY = frozenset({"true", "yes", "1"})


def _text(fields: Mapping[str, Any], key: str) -> str:
    return to_text(fields.get(key, "")).strip()


def normalize_role(raw: Any) -> str:
    """Map a free-text role to admin/supervisor/field_tech. Never fails."""
    text = to_text(raw).strip().lower()
    if not text:
        return DEFAULT_ROLE
    return ROLE_ALIASES.get(text, DEFAULT_ROLE)


def parse_number(raw: Any) -> float | None:
    """Parse a finite number; None for empty, non-numeric or infinite input."""
    if isinstance(raw, bool):
        return None
    text = to_text(raw).strip()
    if not text:
        return None
    value = pd.to_numeric(text, errors="coerce")
    if pd.isna(value):
        return None
    value = float(value)
    if not math.isfinite(value):
        return None
    return value


def parse_flag(raw: Any, *, extra_token: str, default: bool) -> bool:
    """Interpret a yes/no cell.

    Booleans pass through. Text matches true/yes/1 or extra_token case-insensitively.
    Unset cells return default.
    """
    if isinstance(raw, bool):
        return raw
    text = to_text(raw).strip().lower()
    if not text:
        return default
    return text in _TRUTHY or text == extra_token


def validate_team_member(fields: Mapping[str, Any]) -> TeamMemberCandidate:
    email = _text(fields, "email")
    if not email or "@" not in email:
        raise ValidationError("Invalid or missing email address", email or "(missing email)")
    name = _text(fields, "name")
    if not name:
        raise ValidationError("Missing name", email)
    return TeamMemberCandidate(
        email=email,
        name=name,
        role=normalize_role(fields.get("role", "")),
        phone=_text(fields, "phone"),
        notes=_text(fields, "notes"),
    )


def validate_customer(fields: Mapping[str, Any]) -> CustomerCandidate:
    name = _text(fields, "name")
    email = _text(fields, "email")
    phone = _text(fields, "phone")
    if not name:
        raise ValidationError("Missing customer name", email or phone or "(no identifier)")
    if not email and not phone:
        raise ValidationError("At least one of email or phone is required", name)
    if email and "@" not in email:
        raise ValidationError("Invalid email format", name)
    consent = fields.get("email_consent", "")
    return CustomerCandidate(
        name=name,
        email=email,
        phone=phone,
        address=_text(fields, "address"),
        city=_text(fields, "city"),
        state=_text(fields, "state"),
        zip_code=_text(fields, "zip_code"),
        notes=_text(fields, "notes"),
        email_consent=consent is True or consent == "true",
    )


def validate_service(fields: Mapping[str, Any]) -> ServiceCandidate:
    name = _text(fields, "name")
    if not name:
        raise ValidationError("Missing service name", "(missing service name)")
    return ServiceCandidate(
        name=name,
        category=_text(fields, "category"),
        description=_text(fields, "description"),
        base_price=_text(fields, "base_price"),
    )


def validate_material(fields: Mapping[str, Any]) -> MaterialCandidate:
    name = _text(fields, "name")
    if not name:
        raise ValidationError("Missing material name", "(missing material name)")
    category = _text(fields, "category")
    if not category:
        raise ValidationError("Missing category", name)
    unit = _text(fields, "unit")
    if not unit:
        raise ValidationError("Missing unit", name)
    retail_price = parse_number(fields.get("retail_price", ""))
    if retail_price is None:
        raise ValidationError("Retail price is required and must be numeric", name)

    # 任意の数値列は非数値でもエラーにせず 0 扱い
    def optional_number(key: str) -> float:
        value = parse_number(fields.get(key, ""))
        return 0.0 if value is None else value

    return MaterialCandidate(
        name=name,
        category=category,
        unit=unit,
        retail_price=retail_price,
        description=_text(fields, "description"),
        subcategory=_text(fields, "subcategory"),
        cost_per_unit=optional_number("cost_per_unit"),
        supplier=_text(fields, "supplier"),
        supplier_sku=_text(fields, "supplier_sku"),
        reorder_threshold=optional_number("reorder_threshold"),
        quantity_in_stock=optional_number("quantity_in_stock"),
        storage_location=_text(fields, "storage_location"),
        active=parse_flag(fields.get("active", ""), extra_token="active", default=True),
        internal_notes=_text(fields, "internal_notes"),
        taxable=parse_flag(fields.get("taxable", ""), extra_token="taxable", default=False),
        default_markup_percent=optional_number("default_markup_percent"),
    )


_VALIDATORS: dict[ImportKind, Callable[[Mapping[str, Any]], Any]] = {
    ImportKind.TEAM_MEMBER: validate_team_member,
    ImportKind.CUSTOMER: validate_customer,
    ImportKind.SERVICE: validate_service,
    ImportKind.MATERIAL: validate_material,
}


def validator_for(kind: ImportKind) -> Callable[[Mapping[str, Any]], Any]:
    return _VALIDATORS[kind]


def row_identifier(kind: ImportKind, fields: Mapping[str, Any]) -> str:
    """Best-effort human identifier for a row whose processing blew up unexpectedly."""
    if kind is ImportKind.TEAM_MEMBER:
        return _text(fields, "email") or "(missing email)"
    if kind is ImportKind.CUSTOMER:
        return _text(fields, "name") or _text(fields, "email") or _text(fields, "phone") or "(no identifier)"
    if kind is ImportKind.SERVICE:
        return _text(fields, "name") or "(missing service name)"
    return _text(fields, "name") or "(missing material name)"
