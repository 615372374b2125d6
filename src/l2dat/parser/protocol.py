"""Table definitions per client protocol revision.

A TableDef ties a logical table name to its canonical file name, record
schema, container shape and record <-> entity glue. One loader handles every
revision; the revision only selects which TableDefs apply.
"""

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from l2dat.models.string_table import StringTable
from l2dat.parser import entity_parser as ep
from l2dat.parser.record_schema import RecordSchema


class ProtocolRevision(Enum):
    GRAND_CRUSADE_110 = "grand_crusade_110"


class ContainerShape(Enum):
    ARRAY = "array"   # order-significant, keyed by row position
    KEYED = "keyed"   # keyed by an integer id field of the record


# Logical table names
GAME_DATA_NAME = "game data name"
NPC_STRINGS = "npc strings"
HUNTING_ZONES = "hunting zones"
QUESTS = "quests"
SKILLS = "skills"
NPCS = "npcs"
WEAPONS = "weapons"
ARMOR = "armor"
ETC_ITEMS = "etc items"
ITEM_SETS = "item sets"
RECIPES = "recipes"
ENCHANT_STAT_BONUS = "enchant stat bonus"

STRING_TABLE_FILE = "l2gamedataname.dat"

ITEM_TABLES: tuple[str, ...] = (WEAPONS, ARMOR, ETC_ITEMS)


@dataclass(frozen=True, slots=True)
class TableDef:
    """How one logical table is stored on disk and mapped to entities."""
    name: str
    file_name: str
    schema: RecordSchema
    shape: ContainerShape
    from_record: Callable[[dict[str, Any], StringTable], Any]
    to_record: Callable[[Any, Any, StringTable], dict[str, Any]]
    key_field: str | None = None

    def key_of(self, record: dict[str, Any], position: int) -> Any:
        if self.shape is ContainerShape.ARRAY:
            return position
        return record[self.key_field]


def _ignore_key(build: Callable[[Any, StringTable], dict[str, Any]]):
    """Adapt a build_*_record(entity, strings) function to (key, entity, strings)."""
    def to_record(key: Any, entity: Any, strings: StringTable) -> dict[str, Any]:
        return build(entity, strings)
    return to_record


def _keyed(name: str, file_name: str, schema: RecordSchema, parse, build) -> TableDef:
    return TableDef(
        name=name,
        file_name=file_name,
        schema=schema,
        shape=ContainerShape.KEYED,
        from_record=parse,
        to_record=_ignore_key(build),
        key_field="id",
    )


_GRAND_CRUSADE_110: tuple[TableDef, ...] = (
    TableDef(
        name=NPC_STRINGS,
        file_name="npcstring-ru.dat",
        schema=ep.NPC_STRING_SCHEMA,
        shape=ContainerShape.KEYED,
        from_record=ep.parse_npc_string,
        to_record=ep.build_npc_string_record,
        key_field="id",
    ),
    _keyed(HUNTING_ZONES, "huntingzone-ru.dat", ep.HUNTING_ZONE_SCHEMA,
           ep.parse_hunting_zone, ep.build_hunting_zone_record),
    _keyed(QUESTS, "questname-ru.dat", ep.QUEST_SCHEMA,
           ep.parse_quest, ep.build_quest_record),
    _keyed(SKILLS, "skillgrp.dat", ep.SKILL_SCHEMA,
           ep.parse_skill, ep.build_skill_record),
    _keyed(NPCS, "npcgrp.dat", ep.NPC_SCHEMA,
           ep.parse_npc, ep.build_npc_record),
    _keyed(WEAPONS, "weapongrp.dat", ep.WEAPON_SCHEMA,
           ep.parse_weapon, ep.build_weapon_record),
    _keyed(ARMOR, "armorgrp.dat", ep.ARMOR_SCHEMA,
           ep.parse_armor, ep.build_armor_record),
    _keyed(ETC_ITEMS, "etcitemgrp.dat", ep.ETC_ITEM_SCHEMA,
           ep.parse_etc_item, ep.build_etc_item_record),
    _keyed(ITEM_SETS, "setitemgrp.dat", ep.ITEM_SET_SCHEMA,
           ep.parse_item_set, ep.build_item_set_record),
    _keyed(RECIPES, "recipe-c.dat", ep.RECIPE_SCHEMA,
           ep.parse_recipe, ep.build_recipe_record),
    TableDef(
        name=ENCHANT_STAT_BONUS,
        file_name="enchantstatbonus.dat",
        schema=ep.ENCHANT_STAT_BONUS_SCHEMA,
        shape=ContainerShape.ARRAY,
        from_record=ep.parse_enchant_stat_bonus,
        to_record=_ignore_key(ep.build_enchant_stat_bonus_record),
    ),
)

_TABLE_DEFS: dict[ProtocolRevision, tuple[TableDef, ...]] = {
    ProtocolRevision.GRAND_CRUSADE_110: _GRAND_CRUSADE_110,
}


def table_defs(protocol: ProtocolRevision) -> tuple[TableDef, ...]:
    """Entity table definitions for *protocol* (the string table is separate)."""
    return _TABLE_DEFS[protocol]


def string_table_file(protocol: ProtocolRevision) -> str:
    return STRING_TABLE_FILE
