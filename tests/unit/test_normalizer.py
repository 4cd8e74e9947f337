from __future__ import annotations

import math

from bulkimport.models.import_kind import ImportKind
from bulkimport.normalize import aliases_for, is_empty, normalize_row, resolve_field, to_text
from bulkimport.normalize.aliases import CUSTOMER_ALIASES, MATERIAL_ALIASES


def test_resolve_field_first_non_empty_alias_wins():
    values = {"zipCode": "", "zip code": None, "ZIP Code": "90001", "Zip Code": "11111"}
    assert resolve_field(values, ("zipCode", "zipcode", "zip code", "ZIP Code", "Zip Code")) == "90001"


def test_resolve_field_returns_empty_string_when_absent():
    assert resolve_field({"other": "x"}, ("name", "Name")) == ""


def test_resolve_field_skips_nan():
    assert resolve_field({"Name": math.nan, "NAME": "Bob"}, ("Name", "NAME")) == "Bob"


def test_resolve_field_keeps_false_and_zero():
    assert resolve_field({"active": False}, ("active",)) is False
    assert resolve_field({"price": 0}, ("price",)) == 0


def test_normalize_row_contains_every_canonical_key():
    fields = normalize_row({"Customer Name": "Ann", "ZIP Code": 90001}, CUSTOMER_ALIASES)
    assert set(fields) == {c for c, _ in CUSTOMER_ALIASES}
    assert fields["name"] == "Ann"
    assert fields["zip_code"] == 90001
    assert fields["email"] == ""


def test_normalize_row_does_not_trim():
    fields = normalize_row({"name": "  Bait Station  "}, MATERIAL_ALIASES)
    assert fields["name"] == "  Bait Station  "


def test_aliases_for_every_kind():
    firsts = {kind: aliases_for(kind)[0][0] for kind in ImportKind}
    assert firsts == {
        ImportKind.TEAM_MEMBER: "email",
        ImportKind.CUSTOMER: "name",
        ImportKind.SERVICE: "name",
        ImportKind.MATERIAL: "name",
    }


def test_is_empty():
    assert is_empty(None)
    assert is_empty("")
    assert is_empty(float("nan"))
    assert not is_empty(" ")
    assert not is_empty(0)
    assert not is_empty(False)


def test_to_text_coercions():
    assert to_text(90001.0) == "90001"
    assert to_text(12.5) == "12.5"
    assert to_text(True) == "true"
    assert to_text(None) == ""
    assert to_text(" x ") == " x "
