"""Tests for the global string table."""

import threading

import pytest

from l2dat.models.errors import MalformedField
from l2dat.models.string_table import NONE_STR, StringTable


def test_from_ordered_list_is_clean_and_positional():
    table = StringTable.from_ordered_list(["None", "Sword", "Shield"])
    assert not table.dirty
    assert table.get(1) == "Sword"
    assert table[2] == "Shield"
    assert table.next_index == 3
    assert len(table) == 3


def test_case_insensitive_lookup_resolves_to_last_duplicate():
    table = StringTable.from_ordered_list(["None", "Sword", "sword"])
    assert table.get_index("SWORD") == 2
    assert not table.dirty


def test_unseen_string_is_appended_and_dirties():
    table = StringTable.from_ordered_list(["None", "Sword", "sword"])
    assert table.get_index("Shield") == 3
    assert table.dirty
    assert table.to_ordered_list() == ["None", "Sword", "sword", "Shield"]


def test_get_index_is_idempotent():
    table = StringTable()
    first = table.get_index("Bow")
    generation = table.generation
    assert table.get_index("bow") == first
    assert table.get_index("BOW") == first
    assert table.generation == generation
    assert len(table) == 1


def test_empty_text_maps_to_none_sentinel():
    table = StringTable.from_ordered_list(["None", "Sword"])
    assert table.get_index("") == 0
    assert not table.dirty

    fresh = StringTable()
    assert fresh.get_index("") == 0
    assert fresh.get(0) == NONE_STR


def test_placeholder_for_unknown_index():
    table = StringTable.from_ordered_list(["a"])
    assert table.get_or_placeholder(0) == "a"
    assert table.get_or_placeholder(42) == "NameNotFound[42]"


def test_require_unknown_index():
    table = StringTable.from_ordered_list(["a"])
    with pytest.raises(MalformedField, match="index 5"):
        table.require(5)


def test_contains_ignores_case():
    table = StringTable.from_ordered_list(["Sword"])
    assert "sWoRd" in table
    assert "Shield" not in table
    assert 1 not in table


def test_gap_in_indices_is_an_assertion():
    table = StringTable.from_ordered_list(["a", "b", "c"])
    del table._forward[1]
    with pytest.raises(AssertionError, match="gap"):
        table.to_ordered_list()


def test_ordered_snapshot_reports_generation():
    table = StringTable()
    table.get_index("a")
    values, generation = table.ordered_snapshot()
    assert values == ["a"]
    assert generation == table.generation


def test_mark_clean_skipped_after_later_append():
    table = StringTable()
    table.get_index("a")
    _, generation = table.ordered_snapshot()
    table.get_index("b")
    assert table.mark_clean(generation) is False
    assert table.dirty
    assert table.mark_clean(table.generation) is True
    assert not table.dirty


def test_concurrent_interning_keeps_indices_dense():
    table = StringTable()
    words = [f"word{i}" for i in range(200)]

    def intern_all():
        for word in words:
            table.get_index(word)

    threads = [threading.Thread(target=intern_all) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert table.to_ordered_list() == sorted(words, key=table.get_index)
    assert len(table) == len(words)
