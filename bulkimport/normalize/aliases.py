from __future__ import annotations

from ..models.import_kind import ImportKind

"""Header alias tables.

Each table is an ordered tuple of (canonical field, aliases). Aliases are tried in
declared order; the first non-empty value wins. Variants cover the spellings seen in
real uploads: camelCase, capitalized, all-caps and "spaced words" headers, plus the
column titles of the downloadable templates.
"""

__all__ = [
    "AliasTable",
    "TEAM_MEMBER_ALIASES",
    "CUSTOMER_ALIASES",
    "SERVICE_ALIASES",
    "MATERIAL_ALIASES",
    "aliases_for",
]

AliasTable = tuple[tuple[str, tuple[str, ...]], ...]

TEAM_MEMBER_ALIASES: AliasTable = (
    ("email", ("email", "Email", "EMAIL", "Email Address", "email address")),
    ("name", ("name", "Name", "NAME", "Full Name", "full name")),
    ("role", ("role", "Role", "ROLE")),
    ("phone", ("phone", "Phone", "PHONE", "Phone Number", "phone number")),
    ("notes", ("notes", "Notes", "NOTES")),
)

CUSTOMER_ALIASES: AliasTable = (
    ("name", ("name", "Name", "NAME", "Customer Name", "customer name")),
    ("email", ("email", "Email", "EMAIL", "Customer Email", "customer email")),
    ("phone", ("phone", "Phone", "PHONE", "Phone Number", "phone number")),
    ("address", ("address", "Address", "ADDRESS", "Street Address", "street address")),
    ("city", ("city", "City", "CITY", "City/Town", "city/town")),
    ("state", ("state", "State", "STATE", "State/Province", "state/province")),
    (
        "zip_code",
        (
            "zipCode",
            "zipcode",
            "zip code",
            "ZIP Code",
            "ZIP CODE",
            "Zip Code",
            "Postal Code",
            "postal code",
        ),
    ),
    ("notes", ("notes", "Notes", "NOTES", "Service Notes", "service notes")),
    ("email_consent", ("emailConsent", "email consent", "Email Consent")),
)

SERVICE_ALIASES: AliasTable = (
    ("name", ("service", "Service", "SERVICE", "Service Name", "service name")),
    ("category", ("category", "Category", "CATEGORY", "Category Name", "category name")),
    (
        "description",
        ("description", "Description", "DESCRIPTION", "Service Description", "service description"),
    ),
    (
        "base_price",
        ("basePrice", "base price", "Base Price", "BASE PRICE", "Base Rate", "base rate"),
    ),
)

MATERIAL_ALIASES: AliasTable = (
    ("name", ("name", "Name", "NAME", "Material Name", "material name")),
    (
        "description",
        ("description", "Description", "DESCRIPTION", "Service Description", "service description"),
    ),
    ("category", ("category", "Category", "CATEGORY", "Category Name", "category name")),
    ("subcategory", ("subcategory", "Subcategory", "SUBCATEGORY")),
    ("unit", ("unit", "Unit", "UNIT")),
    ("cost_per_unit", ("costPerUnit", "Cost Per Unit", "cost per unit", "cost", "Cost")),
    ("retail_price", ("retailPrice", "Retail Price", "retail price", "price", "Price")),
    ("supplier", ("supplier", "Supplier")),
    ("supplier_sku", ("supplierSku", "Supplier SKU", "supplier sku")),
    ("reorder_threshold", ("reorderThreshold", "Reorder Threshold", "reorder threshold")),
    ("quantity_in_stock", ("quantityInStock", "Quantity In Stock", "quantity in stock")),
    ("storage_location", ("storageLocation", "Storage Location", "storage location")),
    ("active", ("active", "Active", "Is Active", "is active")),
    ("internal_notes", ("internalNotes", "Internal Notes", "internal notes")),
    ("taxable", ("taxable", "Taxable", "Is Taxable", "is taxable")),
    (
        "default_markup_percent",
        (
            "defaultMarkupPercent",
            "Default Markup %",
            "default markup %",
            "Markup Percent",
            "markup percent",
        ),
    ),
)

_TABLES: dict[ImportKind, AliasTable] = {
    ImportKind.TEAM_MEMBER: TEAM_MEMBER_ALIASES,
    ImportKind.CUSTOMER: CUSTOMER_ALIASES,
    ImportKind.SERVICE: SERVICE_ALIASES,
    ImportKind.MATERIAL: MATERIAL_ALIASES,
}


def aliases_for(kind: ImportKind) -> AliasTable:
    return _TABLES[kind]
