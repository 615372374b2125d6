"""Tests for PersistenceOrchestrator against real files in tmp_path."""

import logging
import threading
from dataclasses import replace

import pytest

from l2dat.engine import persistence
from l2dat.engine.persistence import PersistenceOrchestrator
from l2dat.models.errors import MalformedField, SaveInProgressError, TableIOError, ValueOutOfRange
from l2dat.parser.dat_file import encode_records
from l2dat.parser.entity_parser import ETC_ITEM_SCHEMA, build_etc_item_record
from l2dat.parser.protocol import ARMOR, ETC_ITEMS, GAME_DATA_NAME, SKILLS, WEAPONS

from dat_builders import STRINGS, utf, weapon_bytes


def _file_bytes(folder):
    return {p.name: p.read_bytes() for p in folder.iterdir()}


def test_nothing_dirty_writes_nothing(system_folder, loaded):
    before = _file_bytes(system_folder)

    report = PersistenceOrchestrator(loaded.holder).save()

    assert len(report) == 0
    assert report.ok
    assert GAME_DATA_NAME in report.unchanged
    assert WEAPONS in report.unchanged
    assert _file_bytes(system_folder) == before


def test_forced_resave_is_byte_identical(system_folder, loaded):
    holder = loaded.holder
    before = _file_bytes(system_folder)
    for name in (WEAPONS, ARMOR, ETC_ITEMS, SKILLS):
        for key, entity in list(holder.table(name).items()):
            holder.save_entity(name, key, entity, force=True)

    report = PersistenceOrchestrator(holder, max_workers=2).save()

    assert sorted(report.succeeded) == sorted([WEAPONS, ARMOR, ETC_ITEMS, SKILLS])
    assert GAME_DATA_NAME in report.unchanged
    assert _file_bytes(system_folder) == before
    assert not holder.has_unsaved_changes


def test_edit_rewrites_only_that_table(system_folder, loaded):
    holder = loaded.holder
    before = _file_bytes(system_folder)
    holder.save_entity(WEAPONS, 1, replace(holder.table(WEAPONS)[1], p_atk=99))

    report = PersistenceOrchestrator(holder).save()

    assert report.succeeded == [WEAPONS]
    assert (system_folder / "weapongrp.dat").read_bytes() == weapon_bytes(1, "Sword", p_atk=99)
    after = _file_bytes(system_folder)
    del before["weapongrp.dat"], after["weapongrp.dat"]
    assert after == before
    assert not holder.table(WEAPONS).dirty


def test_new_string_is_written_to_string_table(system_folder, loaded):
    holder = loaded.holder
    holder.save_entity(WEAPONS, 1, replace(holder.table(WEAPONS)[1], icon="icon.new"))

    report = PersistenceOrchestrator(holder).save()

    assert report.result_for(GAME_DATA_NAME).ok
    assert (system_folder / "l2gamedataname.dat").read_bytes() == b"".join(
        utf(s) for s in STRINGS + ["icon.new"]
    )
    assert (system_folder / "weapongrp.dat").read_bytes() == weapon_bytes(
        1, "Sword", icon=len(STRINGS)
    )
    assert not holder.strings.dirty


def test_deleted_file_fails_alone(system_folder, loaded):
    holder = loaded.holder
    holder.save_entity(WEAPONS, 1, replace(holder.table(WEAPONS)[1], p_atk=50))
    holder.save_entity(ARMOR, 2, replace(holder.table(ARMOR)[2], p_def=60))
    potion = replace(holder.table(ETC_ITEMS)[3], weight=9)
    holder.save_entity(ETC_ITEMS, 3, potion)
    (system_folder / "armorgrp.dat").unlink()

    report = PersistenceOrchestrator(holder, max_workers=3).save()

    assert not report.ok
    assert set(report.failed) == {ARMOR}
    assert isinstance(report.failed[ARMOR], TableIOError)
    assert not (system_folder / "armorgrp.dat").exists()
    assert (system_folder / "weapongrp.dat").read_bytes() == weapon_bytes(1, "Sword", p_atk=50)
    assert (system_folder / "etcitemgrp.dat").read_bytes() == encode_records(
        [build_etc_item_record(potion, holder.strings)], ETC_ITEM_SCHEMA
    )
    assert holder.dirty_tables() == [ARMOR]


def _blocking_write(monkeypatch, table_name):
    """Make the write of *table_name* wait until the returned event is set."""
    started = threading.Event()
    release = threading.Event()
    real_write = persistence._write

    def write(job):
        if job.table_name == table_name:
            started.set()
            assert release.wait(5)
        real_write(job)

    monkeypatch.setattr(persistence, "_write", write)
    return started, release


def test_second_save_is_rejected_while_running(monkeypatch, loaded):
    holder = loaded.holder
    holder.save_entity(WEAPONS, 1, replace(holder.table(WEAPONS)[1], p_atk=70))
    started, release = _blocking_write(monkeypatch, WEAPONS)
    orchestrator = PersistenceOrchestrator(holder)

    handle = orchestrator.save_async()
    assert started.wait(5)
    assert orchestrator.is_saving
    with pytest.raises(SaveInProgressError):
        orchestrator.save()
    with pytest.raises(SaveInProgressError):
        orchestrator.save_async()

    release.set()
    report = handle.result(timeout=5)
    assert report.succeeded == [WEAPONS]
    assert handle.done()
    assert not orchestrator.is_saving


def test_edit_during_save_stays_dirty(monkeypatch, system_folder, loaded):
    holder = loaded.holder
    sword = holder.table(WEAPONS)[1]
    holder.save_entity(WEAPONS, 1, replace(sword, p_atk=70))
    started, release = _blocking_write(monkeypatch, WEAPONS)

    handle = PersistenceOrchestrator(holder).save_async()
    assert started.wait(5)
    holder.save_entity(WEAPONS, 1, replace(sword, p_atk=80))
    release.set()
    report = handle.result(timeout=5)

    assert report.succeeded == [WEAPONS]
    assert (system_folder / "weapongrp.dat").read_bytes() == weapon_bytes(1, "Sword", p_atk=70)
    assert holder.table(WEAPONS).dirty

    PersistenceOrchestrator(holder).save()
    assert (system_folder / "weapongrp.dat").read_bytes() == weapon_bytes(1, "Sword", p_atk=80)
    assert not holder.table(WEAPONS).dirty


def test_in_place_edit_is_written_and_becomes_baseline(system_folder, loaded):
    holder = loaded.holder
    sword = holder.table(WEAPONS).get(1)
    sword.p_atk = 99
    holder.save_entity(WEAPONS, 1, sword)

    report = PersistenceOrchestrator(holder).save()

    assert report.succeeded == [WEAPONS]
    assert (system_folder / "weapongrp.dat").read_bytes() == weapon_bytes(1, "Sword", p_atk=99)
    assert holder.save_entity(WEAPONS, 1, replace(sword)) is False
    assert not holder.has_unsaved_changes


def test_encode_overflow_fails_only_that_table(system_folder, loaded):
    holder = loaded.holder
    armor_before = (system_folder / "armorgrp.dat").read_bytes()
    holder.save_entity(WEAPONS, 1, replace(holder.table(WEAPONS)[1], p_atk=45))
    holder.save_entity(ARMOR, 2, replace(holder.table(ARMOR)[2], crystal_type=256))

    report = PersistenceOrchestrator(holder).save()

    assert isinstance(report.failed[ARMOR], ValueOutOfRange)
    assert report.failed[ARMOR].field == "Armor[0].crystal_type"
    assert report.succeeded == [WEAPONS]
    assert (system_folder / "weapongrp.dat").read_bytes() == weapon_bytes(1, "Sword", p_atk=45)
    assert (system_folder / "armorgrp.dat").read_bytes() == armor_before
    assert holder.dirty_tables() == [ARMOR]


def test_wrong_value_type_fails_only_that_table(system_folder, loaded):
    holder = loaded.holder
    holder.save_entity(WEAPONS, 1, replace(holder.table(WEAPONS)[1], name=None))
    holder.save_entity(ARMOR, 2, replace(holder.table(ARMOR)[2], p_def=61))
    holder.save_entity(ETC_ITEMS, 3, replace(holder.table(ETC_ITEMS)[3], icon=7))

    report = PersistenceOrchestrator(holder).save()

    assert set(report.failed) == {WEAPONS, ETC_ITEMS}
    assert isinstance(report.failed[WEAPONS], MalformedField)
    assert isinstance(report.failed[ETC_ITEMS], MalformedField)
    assert report.succeeded == [ARMOR]
    assert not holder.table(ARMOR).dirty
    assert holder.table(WEAPONS).dirty


def test_string_table_result_comes_first(monkeypatch, caplog, loaded):
    holder = loaded.holder
    holder.save_entity(WEAPONS, 1, replace(holder.table(WEAPONS)[1], icon="icon.new"))
    weapons_written = threading.Event()
    real_write = persistence._write

    def write(job):
        # The string table finishes last; its result must still be collected first.
        if job.table_name == GAME_DATA_NAME:
            assert weapons_written.wait(5)
        real_write(job)
        if job.table_name == WEAPONS:
            weapons_written.set()

    monkeypatch.setattr(persistence, "_write", write)
    caplog.set_level(logging.INFO, logger="l2dat")

    report = PersistenceOrchestrator(holder, max_workers=2).save()

    assert [r.table_name for r in report] == [GAME_DATA_NAME, WEAPONS]
    messages = [r.getMessage() for r in caplog.records]
    assert messages.index(f"{GAME_DATA_NAME} saved") < messages.index(f"{WEAPONS} saved")
