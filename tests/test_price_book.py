"""
Price book tests: factory defaults, override merging, malformed-blob recovery,
the settings-table store, and single-rate edits.

Tests:
1-7.   Merge (defaults + partial overrides), read-only rate groups
8-11.  Parsing stored payloads
12-16. PriceBookStore load / save / reset
17-21. set_rate
"""

import json
import logging

import pytest
from pydantic import ValidationError
from sqlalchemy import inspect

from signquote.database import init_db
from signquote.models import AppSetting, SignCategory, SIGN_TYPES_HIERARCHY, PIPE_SIZES
from signquote.price_book import (
    DEFAULT_PRICE_BOOK, build_price_book, default_price_book, merge_price_book,
    parse_price_book, price_book_to_json, set_rate,
)
from signquote.schemas import PriceBook


def _store_raw(db, payload, key="signQuotePricing"):
    """Write a raw settings row as an older release would have left it."""
    db.add(AppSetting(key=key, value_json=payload))
    db.commit()


# ============================================================
# 1-7. Merge
# ============================================================

def test_merge_labor_tier_keeps_other_tiers():
    """Overriding labor.tier1 keeps the default tier2 and tier3."""
    book = build_price_book({"labor": {"tier1": 200}})
    assert book.labor.tier1 == 200
    assert book.labor.tier2 == 100
    assert book.labor.tier3 == 100


def test_merge_does_not_touch_defaults():
    """Merging returns a new dict; the factory table is unchanged."""
    merged = merge_price_book(DEFAULT_PRICE_BOOK, {"structural": {"steel_per_ft": 999}})
    assert merged["structural"]["steel_per_ft"] == 999
    assert DEFAULT_PRICE_BOOK["structural"]["steel_per_ft"] == 120
    assert merged["structural"]["beading_per_ft"] == 125


def test_merge_material_category_keeps_missing_subtypes():
    """A stored category lacking a subtype still gets that subtype's default."""
    book = build_price_book({"materials": {SignCategory.SSWOL.value: {"Flex": 300}}})
    assert book.material_rate(SignCategory.SSWOL, "Flex") == 300
    assert book.material_rate(SignCategory.SSWOL, "PVC Paste on Cladding") == 600
    assert book.material_rate(SignCategory.SSWL, "Flex Light Board") == 350


def test_merge_none_values_count_as_missing():
    """None in an override falls back to the default."""
    book = build_price_book({"labor": {"tier1": None, "tier2": 90}, "currency_symbol": None})
    assert book.labor.tier1 == 150
    assert book.labor.tier2 == 90
    assert book.currency_symbol == "Rs."


def test_merged_book_has_every_leaf():
    """Sparse overrides still produce a rate for every category, subtype, pipe and group key."""
    book = build_price_book({"pipes": {PIPE_SIZES[0]: 4000}, "others": {}})
    for category, subtypes in SIGN_TYPES_HIERARCHY.items():
        for sub_type in subtypes:
            assert book.material_rate(category, sub_type) is not None
    assert set(PIPE_SIZES) <= set(book.pipes)
    assert book.pipes[PIPE_SIZES[0]] == 4000
    assert book.others.concrete_base_unit == 5000
    assert book.electrical.tube_light_unit == 850


def test_empty_materials_filled_with_zero():
    """A book built with no materials still prices every known subtype, at 0."""
    book = PriceBook(materials={})
    for category, subtypes in SIGN_TYPES_HIERARCHY.items():
        for sub_type in subtypes:
            assert book.material_rate(category, sub_type) == 0.0


def test_rate_groups_are_read_only():
    """A loaded book can't be edited in place; set_rate returns a new one."""
    book = default_price_book()
    with pytest.raises(ValidationError):
        book.labor.tier1 = 999
    with pytest.raises(ValidationError):
        book.structural.steel_per_ft = 1
    with pytest.raises(ValidationError):
        book.electrical.tube_light_unit = 1
    with pytest.raises(ValidationError):
        book.others.concrete_base_unit = 1
    assert book.labor.tier1 == 150


# ============================================================
# 8-11. Parsing stored payloads
# ============================================================

def test_parse_partial_json():
    """A partial JSON blob merges onto the defaults."""
    book = parse_price_book(json.dumps({"labor": {"tier1": 200}}))
    assert book.labor.tier1 == 200
    assert book.structural.steel_per_ft == 120


def test_parse_bytes_payload():
    """Bytes are decoded like text."""
    book = parse_price_book(b'{"currency_symbol": "LKR"}')
    assert book.currency_symbol == "LKR"


@pytest.mark.parametrize("payload", [
    "{not json",
    "[1, 2, 3]",
    '"just a string"',
    '{"labor": 5}',
    '{"labor": {"tier1": "abc"}}',
    '{"materials": {"Single Side without light (SSWOL)": 12}}',
    b'{"currency_symbol": "\x80"}',
])
def test_parse_malformed_falls_back_to_defaults(payload, caplog):
    """Anything that can't be parsed is discarded in full and logged."""
    with caplog.at_level(logging.WARNING, logger="signquote.price_book"):
        book = parse_price_book(payload)
    assert book == default_price_book()
    assert "malformed" in caplog.text


def test_parse_empty_payload_is_defaults():
    """None and empty string mean nothing stored."""
    assert parse_price_book(None) == default_price_book()
    assert parse_price_book("") == default_price_book()


def test_json_round_trip_is_stable():
    """Serialized book parses back to the same rates."""
    book = build_price_book({"labor": {"tier3": 80}, "pipes": {PIPE_SIZES[-1]: 16000}})
    assert parse_price_book(price_book_to_json(book)) == book


# ============================================================
# 12-16. PriceBookStore
# ============================================================

def test_store_load_without_row_returns_defaults(store):
    """Nothing stored yet: factory rates."""
    assert store.load() == default_price_book()


def test_store_save_then_load(store):
    """Saved customizations come back on the next load."""
    book = set_rate(store.load(), "labor", "tier1", 175)
    store.save(book)
    loaded = store.load()
    assert loaded.labor.tier1 == 175
    assert loaded == book


def test_store_merges_older_stored_blob(store, db):
    """A blob from an older release missing keys gets defaults for them."""
    _store_raw(db, json.dumps({"labor": {"tier1": 200}, "electrical": {}}))
    book = store.load()
    assert book.labor.tier1 == 200
    assert book.labor.tier2 == 100
    assert book.electrical.tube_light_unit == 850


def test_store_malformed_blob_returns_defaults(store, db):
    """A corrupt stored blob never blocks loading."""
    _store_raw(db, "{{{")
    assert store.load() == default_price_book()


def test_store_reset_overwrites_customizations(store, db):
    """reset() writes factory rates over whatever was stored."""
    store.save(set_rate(default_price_book(), "structural", "steel_per_ft", 500))
    restored = store.reset()
    assert restored == default_price_book()
    assert store.load().structural.steel_per_ft == 120
    row = db.get(AppSetting, store.key)
    assert json.loads(row.value_json)["structural"]["steel_per_ft"] == 120


def test_init_db_creates_settings_table(settings_engine):
    """init_db registers and creates the key/value table."""
    init_db(bind=settings_engine)
    assert inspect(settings_engine).has_table("app_settings")


# ============================================================
# 17-21. set_rate
# ============================================================

def test_set_rate_returns_new_book():
    """The original book is left alone."""
    book = default_price_book()
    updated = set_rate(book, "electrical", "tube_light_unit", "900")
    assert updated.electrical.tube_light_unit == 900
    assert book.electrical.tube_light_unit == 850


def test_set_rate_non_numeric_becomes_zero():
    """Lenient parse, like the pricing form."""
    updated = set_rate(default_price_book(), "others", "off_cut_per_sqft", "abc")
    assert updated.others.off_cut_per_sqft == 0.0


def test_set_rate_material_needs_category():
    """Material rates are keyed by category and subtype."""
    book = default_price_book()
    with pytest.raises(ValueError):
        set_rate(book, "materials", "Flex", 300)
    updated = set_rate(book, "materials", "Flex", 300, category=SignCategory.DSWO)
    assert updated.material_rate(SignCategory.DSWO, "Flex") == 300
    assert updated.material_rate(SignCategory.SSWOL, "Flex") == 260


def test_set_rate_unknown_section_or_key():
    """Typos fail loudly instead of adding dead rates."""
    book = default_price_book()
    with pytest.raises(ValueError):
        set_rate(book, "paint", "tier1", 1)
    with pytest.raises(ValueError):
        set_rate(book, "labor", "tier4", 1)


def test_set_rate_new_pipe_size_allowed():
    """Pipes accept new sizes."""
    updated = set_rate(default_price_book(), "pipes", '5" x 3mm', 20000)
    assert updated.pipes['5" x 3mm'] == 20000
