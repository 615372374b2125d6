"""Tests for ChangeTrackedTable dirty tracking."""

from dataclasses import dataclass, field

from l2dat.models.tracked_table import ChangeTrackedTable


@dataclass(slots=True)
class _Thing:
    id: int
    tags: list[str] = field(default_factory=list)


def test_loaded_table_is_clean():
    table = ChangeTrackedTable.from_entries([(1, "A"), (2, "B")])
    assert not table.dirty
    assert len(table) == 2
    assert table[1] == "A"


def test_insert_always_dirties_even_if_equal():
    table = ChangeTrackedTable.from_entries([(1, "A"), (2, "B")])
    table.insert(1, "A")
    assert table.dirty
    assert table[1] == "A"


def test_insert_if_changed_skips_equal_value():
    table = ChangeTrackedTable.from_entries([(1, "A"), (2, "B")])
    assert table.insert_if_changed(1, "A") is False
    assert not table.dirty
    assert table.insert_if_changed(1, "Z") is True
    assert table.dirty
    assert table[1] == "Z"


def test_insert_if_changed_new_key():
    table = ChangeTrackedTable.from_entries([(1, "A")])
    assert table.insert_if_changed(3, "C") is True
    assert list(table) == [1, 3]


def test_overwrite_keeps_position():
    table = ChangeTrackedTable.from_entries([(1, "A"), (2, "B"), (3, "C")])
    table.insert(2, "b")
    assert list(table.items()) == [(1, "A"), (2, "b"), (3, "C")]


def test_get_default():
    table = ChangeTrackedTable.from_entries([(1, "A")])
    assert table.get(9) is None
    assert table.get(9, "x") == "x"
    assert 1 in table
    assert 9 not in table


def test_snapshot_of_clean_table_is_empty_and_clean():
    table = ChangeTrackedTable.from_entries([(1, "A"), (2, "B")])
    snapshot = table.snapshot_if_dirty()
    assert len(snapshot) == 0
    assert not snapshot.dirty


def test_snapshot_of_dirty_table_is_deep_copy():
    table = ChangeTrackedTable.from_entries([(1, _Thing(1, ["a"]))])
    table.insert(2, _Thing(2))
    snapshot = table.snapshot_if_dirty()

    table[1].tags.append("b")
    table.insert(3, _Thing(3))

    assert snapshot.dirty
    assert list(snapshot) == [1, 2]
    assert snapshot[1].tags == ["a"]
    assert snapshot.generation == table.generation - 1


def test_mark_clean_respects_generation():
    table = ChangeTrackedTable.from_entries([(1, "A")])
    table.insert(1, "B")
    generation = table.generation
    table.insert(1, "C")
    assert table.mark_clean(generation) is False
    assert table.dirty
    assert table.mark_clean() is True
    assert not table.dirty


def test_in_place_edit_counts_as_changed():
    table = ChangeTrackedTable.from_entries([(1, _Thing(1, ["a"]))])
    thing = table.get(1)
    thing.tags.append("b")

    assert table.insert_if_changed(1, thing) is True
    assert table.dirty


def test_saved_snapshot_becomes_the_baseline():
    table = ChangeTrackedTable.from_entries([(1, _Thing(1))])
    table[1].tags.append("x")
    table.insert_if_changed(1, table[1])
    snapshot = table.snapshot_if_dirty()

    assert table.mark_clean(snapshot.generation, snapshot) is True
    assert table.insert_if_changed(1, _Thing(1, ["x"])) is False
    assert not table.dirty


def test_baseline_follows_written_snapshot_even_if_edited_meanwhile():
    table = ChangeTrackedTable.from_entries([(1, _Thing(1))])
    table.insert(1, _Thing(1, ["saved"]))
    snapshot = table.snapshot_if_dirty()
    table.insert(1, _Thing(1, ["later"]))

    assert table.mark_clean(snapshot.generation, snapshot) is False
    # Reverting to what was written: nothing new relative to disk, but the
    # live value differs, so it is stored.
    assert table.insert_if_changed(1, _Thing(1, ["saved"])) is True
    assert table[1].tags == ["saved"]
