"""Tests for the pure record mutations in core.inventory."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from core.inventory import (
    apply_add,
    apply_query,
    apply_remove,
    make_key,
    parse_quantity,
    resolve_location,
)

FIXED = datetime(2025, 1, 2, 3, 4, 5, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    "name, location",
    [
        ("Carrots", "Fridge"),
        ("CARROTS", "fridge"),
        ("carrots", "FRIDGE"),
        ("  carrots ", " fridge"),
    ],
)
def test_make_key_ignores_case_and_padding(name, location):
    assert make_key(name, location) == "carrots_fridge"


def test_make_key_defaults_location():
    assert make_key("Milk") == "milk_fridge"
    assert make_key("Milk", "") == "milk_fridge"
    assert resolve_location(None) == "fridge"


def test_make_key_keeps_non_ascii_location():
    assert make_key("carrots", "冷蔵庫") == "carrots_冷蔵庫"


@pytest.mark.parametrize(
    "raw, expected",
    [
        (3, 3),
        ("7", 7),
        (" 12 ", 12),
        ("4 pieces", 4),
        ("-2", -2),
        (2.9, 2),
        ("0", 0),
        ("not-a-number", 1),
        ("", 1),
        (None, 1),
        (True, 1),
        ([3], 1),
        (float("nan"), 1),
    ],
)
def test_parse_quantity(raw, expected):
    assert parse_quantity(raw) == expected


def test_add_creates_entry_with_original_case():
    record, outcome = apply_add({}, "Carrots", 4, "fridge", now=FIXED)

    entry = record["carrots_fridge"]
    assert entry.name == "Carrots"
    assert entry.quantity == 4
    assert entry.location == "fridge"
    assert entry.last_updated == FIXED
    assert outcome.status == "added"
    assert "4" in outcome.message and "fridge" in outcome.message


def test_add_accumulates():
    record, _ = apply_add({}, "carrots", 3, "fridge")
    record, outcome = apply_add(record, "carrots", 2, "fridge")

    assert record["carrots_fridge"].quantity == 5
    assert outcome.remaining == 5
    assert "5" in outcome.message


def test_add_is_case_insensitive_across_calls():
    record, _ = apply_add({}, "Eggs", 6, "Fridge")
    record, _ = apply_add(record, "eggs", 6, "fridge")

    assert list(record) == ["eggs_fridge"]
    assert record["eggs_fridge"].quantity == 12
    # First writer's casing is kept
    assert record["eggs_fridge"].name == "Eggs"


def test_add_non_numeric_quantity_matches_adding_one():
    a, _ = apply_add({}, "eggs", "not-a-number", "fridge", now=FIXED)
    b, _ = apply_add({}, "eggs", 1, "fridge", now=FIXED)
    assert a == b


def test_add_does_not_mutate_input():
    original, _ = apply_add({}, "milk", 1, "fridge")
    snapshot = dict(original)

    updated, _ = apply_add(original, "milk", 2, "fridge")

    assert original == snapshot
    assert original["milk_fridge"].quantity == 1
    assert updated["milk_fridge"].quantity == 3


def test_add_passes_display_name_and_metadata_through():
    record, _ = apply_add({}, "carrots", 1, "冷蔵庫", display_name="にんじん", metadata={"brand": "x"})
    entry = record["carrots_冷蔵庫"]
    assert entry.display_name == "にんじん"
    assert entry.metadata == {"brand": "x"}

    # Later adds without metadata keep what is there
    record, _ = apply_add(record, "carrots", 1, "冷蔵庫")
    assert record["carrots_冷蔵庫"].metadata == {"brand": "x"}
    assert record["carrots_冷蔵庫"].display_name == "にんじん"


def test_add_stamps_last_updated():
    record, _ = apply_add({}, "rice", 1, "pantry", now=FIXED)
    later = datetime(2025, 6, 1, tzinfo=timezone.utc)
    record, _ = apply_add(record, "rice", 1, "pantry", now=later)
    assert record["rice_pantry"].last_updated == later


def test_remove_less_than_stock_decrements():
    record, _ = apply_add({}, "carrots", 4, "fridge")
    record, outcome = apply_remove(record, "carrots", 1, "fridge")

    assert record["carrots_fridge"].quantity == 3
    assert outcome.status == "removed"
    assert outcome.remaining == 3
    assert "3 remaining" in outcome.message


@pytest.mark.parametrize("amount", [4, 10])
def test_remove_at_or_above_stock_deletes_entry(amount):
    record, _ = apply_add({}, "carrots", 4, "fridge")
    record, outcome = apply_remove(record, "carrots", amount, "fridge")

    assert "carrots_fridge" not in record
    assert outcome.status == "exhausted"
    assert outcome.entry is None
    assert "-" not in outcome.message


def test_remove_missing_entry_leaves_record_untouched():
    record, _ = apply_add({}, "eggs", 2, "fridge")
    same, outcome = apply_remove(record, "carrots", 1, "fridge")

    assert same is record
    assert outcome.status == "empty"
    assert outcome.message == "No carrots(s) found in fridge"


def test_remove_non_numeric_quantity_removes_one():
    record, _ = apply_add({}, "eggs", 3, "fridge")
    record, _ = apply_remove(record, "eggs", "a few", "fridge")
    assert record["eggs_fridge"].quantity == 2


def test_query_returns_zero_for_absent_entry():
    assert apply_query({}, "bananas", "fridge") == 0


def test_query_reads_quantity():
    record, _ = apply_add({}, "Apples", 5, "counter")
    assert apply_query(record, "apples", "COUNTER") == 5
    assert apply_query(record, "apples", "fridge") == 0


def test_scenario_add_then_overdraw():
    record, outcome = apply_add({}, "carrots", 4, "fridge")
    assert record["carrots_fridge"].quantity == 4
    assert "4" in outcome.message and "fridge" in outcome.message

    record, outcome = apply_remove(record, "carrots", 10, "fridge")
    assert record == {}
    assert outcome.status == "exhausted"
