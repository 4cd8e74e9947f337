from .aliases import aliases_for
from .fields import is_empty, normalize_row, resolve_field, to_text

__all__ = [
    "aliases_for",
    "is_empty",
    "normalize_row",
    "resolve_field",
    "to_text",
]
