from __future__ import annotations

from enum import Enum

"""ImportKind enum.

The kind is fixed for a whole batch run and selects the alias table, the validator,
the duplicate index and the commit strategy.
"""

__all__ = [
    "ImportKind",
]


class ImportKind(Enum):
    """Category of entity a batch run creates.

    Values double as the CLI / config spelling (``--kind customer``).
    """
    TEAM_MEMBER = "team_member"
    CUSTOMER = "customer"
    SERVICE = "service"
    MATERIAL = "material"

    @property
    def label(self) -> str:
        """Plural label used in log lines ("team members", "customers", ...)."""
        return _LABELS[self]

    @classmethod
    def parse(cls, value: str | ImportKind) -> ImportKind:
        """Resolve a kind from its value, its name, or a few common spellings."""
        if isinstance(value, ImportKind):
            return value
        key = str(value).strip().lower().replace("-", "_").replace(" ", "_")
        key = _ALIASES.get(key, key)
        try:
            return cls(key)
        except ValueError:
            raise ValueError(f"unknown import kind: {value!r}") from None


_LABELS = {
    ImportKind.TEAM_MEMBER: "team members",
    ImportKind.CUSTOMER: "customers",
    ImportKind.SERVICE: "services",
    ImportKind.MATERIAL: "materials",
}

# 旧 UI タブ名 (users/customers/services/materials) も受け付ける
_ALIASES = {
    "users": "team_member",
    "user": "team_member",
    "team_members": "team_member",
    "customers": "customer",
    "services": "service",
    "materials": "material",
}
