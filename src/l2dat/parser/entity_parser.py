"""Record schemas and record <-> entity glue for the client data tables.

Every table is described twice here: once as a RecordSchema (the wire
layout) and once as a pair of functions converting a decoded record dict to a
domain entity and back.

Key edge cases handled here:
  - STR_REF fields hold raw u32 indices in the record; parse_* resolves them
    with StringTable.require() (an unknown index is a MalformedField) and
    build_* interns text with StringTable.get_index(), which may grow the
    string table.
  - FLOC fields are (x, y, z) tuples in the record and Position in entities.
  - Item set slots are a vector of vectors of item ids.
"""

from typing import Any

from l2dat.models.entities import (
    Armor,
    EnchantStatBonus,
    EtcItem,
    HuntingZone,
    ItemSet,
    ItemSetEnchantInfo,
    Npc,
    Position,
    Quest,
    QuestGoal,
    QuestReward,
    QuestStep,
    Recipe,
    RecipeMaterial,
    Skill,
    SkillLevel,
    Weapon,
)
from l2dat.models.string_table import StringTable
from l2dat.parser.record_schema import (
    ASCF,
    BYTE,
    DWORD,
    FLOAT,
    FLOC,
    INT,
    STR_REF,
    UTF,
    WORD,
    RecordSchema,
    Vec,
)


Record = dict[str, Any]


# -- Schemas ---------------------------------------------------------------

GAME_DATA_NAME_SCHEMA = RecordSchema("GameDataName", [("value", UTF)])

NPC_STRING_SCHEMA = RecordSchema("NpcString", [
    ("id", DWORD),
    ("value", ASCF),
])

HUNTING_ZONE_SCHEMA = RecordSchema("HuntingZone", [
    ("id", DWORD),
    ("zone_type", DWORD),
    ("min_recommended_level", DWORD),
    ("max_recommended_level", DWORD),
    ("start_npc_loc", FLOC),
    ("description", ASCF),
    ("search_zone_id", DWORD),
    ("name", ASCF),
    ("region_id", WORD),
    ("npc_id", DWORD),
    ("quest_ids", Vec(WORD)),
    ("instance_zone_id", DWORD),
])

QUEST_GOAL_SCHEMA = RecordSchema("QuestGoal", [
    ("target_id", DWORD),
    ("goal_type", DWORD),
    ("count", WORD),
])

QUEST_STEP_SCHEMA = RecordSchema("QuestStep", [
    ("title", ASCF),
    ("label", ASCF),
    ("description", ASCF),
    ("goals", Vec(QUEST_GOAL_SCHEMA, count=BYTE)),
    ("locations", Vec(FLOC, count=BYTE)),
])

QUEST_REWARD_SCHEMA = RecordSchema("QuestReward", [
    ("item_id", DWORD),
    ("count", DWORD),
])

QUEST_SCHEMA = RecordSchema("Quest", [
    ("id", DWORD),
    ("title", ASCF),
    ("min_level", DWORD),
    ("max_level", DWORD),
    ("start_npc_ids", Vec(DWORD)),
    ("steps", Vec(QUEST_STEP_SCHEMA, count=WORD)),
    ("rewards", Vec(QUEST_REWARD_SCHEMA)),
])

SKILL_LEVEL_SCHEMA = RecordSchema("SkillLevel", [
    ("level", WORD),
    ("mp_cost", WORD),
    ("hp_cost", WORD),
    ("cast_range", INT),
    ("hit_time", FLOAT),
    ("reuse_delay", FLOAT),
    ("description", ASCF),
])

SKILL_SCHEMA = RecordSchema("Skill", [
    ("id", DWORD),
    ("name", STR_REF),
    ("description", ASCF),
    ("icon", STR_REF),
    ("operate_type", BYTE),
    ("levels", Vec(SKILL_LEVEL_SCHEMA, count=WORD)),
])

NPC_SCHEMA = RecordSchema("Npc", [
    ("id", DWORD),
    ("name", ASCF),
    ("title", ASCF),
    ("level", BYTE),
    ("mesh", STR_REF),
    ("textures", Vec(STR_REF, count=BYTE)),
    ("properties", Vec(WORD)),
    ("quest_ids", Vec(WORD)),
    ("collision_radius", FLOAT),
    ("collision_height", FLOAT),
])

WEAPON_SCHEMA = RecordSchema("Weapon", [
    ("id", DWORD),
    ("name", ASCF),
    ("description", ASCF),
    ("icon", STR_REF),
    ("mesh", STR_REF),
    ("weight", DWORD),
    ("crystal_type", BYTE),
    ("weapon_type", BYTE),
    ("p_atk", WORD),
    ("m_atk", WORD),
    ("attack_speed", WORD),
    ("critical", BYTE),
    ("soulshot_count", BYTE),
    ("spiritshot_count", BYTE),
])

ARMOR_SCHEMA = RecordSchema("Armor", [
    ("id", DWORD),
    ("name", ASCF),
    ("description", ASCF),
    ("icon", STR_REF),
    ("mesh", STR_REF),
    ("weight", DWORD),
    ("crystal_type", BYTE),
    ("armor_type", BYTE),
    ("body_part", BYTE),
    ("p_def", WORD),
    ("m_def", WORD),
    ("mp_bonus", WORD),
])

ETC_ITEM_SCHEMA = RecordSchema("EtcItem", [
    ("id", DWORD),
    ("name", ASCF),
    ("description", ASCF),
    ("icon", STR_REF),
    ("weight", DWORD),
    ("crystal_type", BYTE),
    ("etc_item_type", BYTE),
    ("consume_type", BYTE),
])

ITEM_SET_ENCHANT_SCHEMA = RecordSchema("ItemSetEnchantInfo", [
    ("enchant_level", DWORD),
    ("enchant_description", ASCF),
])

ITEM_SET_SCHEMA = RecordSchema("ItemSet", [
    ("id", DWORD),
    ("base_items", Vec(Vec(DWORD))),
    ("base_descriptions", Vec(ASCF)),
    ("additional_items", Vec(Vec(DWORD))),
    ("additional_descriptions", Vec(ASCF)),
    ("unk1", DWORD),
    ("unk2", DWORD),
    ("enchant_info", Vec(ITEM_SET_ENCHANT_SCHEMA)),
])

RECIPE_MATERIAL_SCHEMA = RecordSchema("RecipeMaterial", [
    ("item_id", DWORD),
    ("count", DWORD),
])

RECIPE_SCHEMA = RecordSchema("Recipe", [
    ("id", DWORD),
    ("name", ASCF),
    ("recipe_item", DWORD),
    ("product", DWORD),
    ("product_count", DWORD),
    ("level", DWORD),
    ("mp_cost", DWORD),
    ("success_rate", DWORD),
    ("materials", Vec(RECIPE_MATERIAL_SCHEMA)),
])

ENCHANT_STAT_BONUS_SCHEMA = RecordSchema("EnchantStatBonus", [
    ("weapon_grade", DWORD),
    ("magic_weapon", DWORD),
    ("unk1", DWORD),
    ("weapon_type", Vec(DWORD)),
    ("soulshot_power", FLOAT),
    ("spiritshot_power", FLOAT),
])


# -- Helpers ---------------------------------------------------------------

def _position(value: tuple[float, float, float]) -> Position:
    x, y, z = value
    return Position(x, y, z)


def _floc(position: Position) -> tuple[float, float, float]:
    return (position.x, position.y, position.z)


# -- NPC strings -----------------------------------------------------------

def parse_npc_string(record: Record, strings: StringTable) -> str:
    return record["value"]


def build_npc_string_record(key: int, value: str, strings: StringTable) -> Record:
    return {"id": key, "value": value}


# -- Hunting zones ---------------------------------------------------------

def parse_hunting_zone(record: Record, strings: StringTable) -> HuntingZone:
    return HuntingZone(
        id=record["id"],
        zone_type=record["zone_type"],
        min_recommended_level=record["min_recommended_level"],
        max_recommended_level=record["max_recommended_level"],
        start_npc_loc=_position(record["start_npc_loc"]),
        description=record["description"],
        search_zone_id=record["search_zone_id"],
        name=record["name"],
        region_id=record["region_id"],
        npc_id=record["npc_id"],
        quest_ids=list(record["quest_ids"]),
        instance_zone_id=record["instance_zone_id"],
    )


def build_hunting_zone_record(zone: HuntingZone, strings: StringTable) -> Record:
    return {
        "id": zone.id,
        "zone_type": zone.zone_type,
        "min_recommended_level": zone.min_recommended_level,
        "max_recommended_level": zone.max_recommended_level,
        "start_npc_loc": _floc(zone.start_npc_loc),
        "description": zone.description,
        "search_zone_id": zone.search_zone_id,
        "name": zone.name,
        "region_id": zone.region_id,
        "npc_id": zone.npc_id,
        "quest_ids": list(zone.quest_ids),
        "instance_zone_id": zone.instance_zone_id,
    }


# -- Quests ----------------------------------------------------------------

def parse_quest(record: Record, strings: StringTable) -> Quest:
    steps = [
        QuestStep(
            title=step["title"],
            label=step["label"],
            description=step["description"],
            goals=[QuestGoal(**goal) for goal in step["goals"]],
            locations=[_position(loc) for loc in step["locations"]],
        )
        for step in record["steps"]
    ]
    return Quest(
        id=record["id"],
        title=record["title"],
        min_level=record["min_level"],
        max_level=record["max_level"],
        start_npc_ids=list(record["start_npc_ids"]),
        steps=steps,
        rewards=[QuestReward(**reward) for reward in record["rewards"]],
    )


def build_quest_record(quest: Quest, strings: StringTable) -> Record:
    return {
        "id": quest.id,
        "title": quest.title,
        "min_level": quest.min_level,
        "max_level": quest.max_level,
        "start_npc_ids": list(quest.start_npc_ids),
        "steps": [
            {
                "title": step.title,
                "label": step.label,
                "description": step.description,
                "goals": [
                    {"target_id": g.target_id, "goal_type": g.goal_type, "count": g.count}
                    for g in step.goals
                ],
                "locations": [_floc(loc) for loc in step.locations],
            }
            for step in quest.steps
        ],
        "rewards": [{"item_id": r.item_id, "count": r.count} for r in quest.rewards],
    }


# -- Skills ----------------------------------------------------------------

def parse_skill(record: Record, strings: StringTable) -> Skill:
    return Skill(
        id=record["id"],
        name=strings.require(record["name"]),
        description=record["description"],
        icon=strings.require(record["icon"]),
        operate_type=record["operate_type"],
        levels=[SkillLevel(**level) for level in record["levels"]],
    )


def build_skill_record(skill: Skill, strings: StringTable) -> Record:
    return {
        "id": skill.id,
        "name": strings.get_index(skill.name),
        "description": skill.description,
        "icon": strings.get_index(skill.icon),
        "operate_type": skill.operate_type,
        "levels": [
            {
                "level": lvl.level,
                "mp_cost": lvl.mp_cost,
                "hp_cost": lvl.hp_cost,
                "cast_range": lvl.cast_range,
                "hit_time": lvl.hit_time,
                "reuse_delay": lvl.reuse_delay,
                "description": lvl.description,
            }
            for lvl in skill.levels
        ],
    }


# -- NPCs ------------------------------------------------------------------

def parse_npc(record: Record, strings: StringTable) -> Npc:
    return Npc(
        id=record["id"],
        name=record["name"],
        title=record["title"],
        level=record["level"],
        mesh=strings.require(record["mesh"]),
        textures=[strings.require(i) for i in record["textures"]],
        properties=list(record["properties"]),
        quest_ids=list(record["quest_ids"]),
        collision_radius=record["collision_radius"],
        collision_height=record["collision_height"],
    )


def build_npc_record(npc: Npc, strings: StringTable) -> Record:
    return {
        "id": npc.id,
        "name": npc.name,
        "title": npc.title,
        "level": npc.level,
        "mesh": strings.get_index(npc.mesh),
        "textures": [strings.get_index(t) for t in npc.textures],
        "properties": list(npc.properties),
        "quest_ids": list(npc.quest_ids),
        "collision_radius": npc.collision_radius,
        "collision_height": npc.collision_height,
    }


# -- Items -----------------------------------------------------------------

def parse_weapon(record: Record, strings: StringTable) -> Weapon:
    values = dict(record)
    values["icon"] = strings.require(record["icon"])
    values["mesh"] = strings.require(record["mesh"])
    return Weapon(**values)


def build_weapon_record(weapon: Weapon, strings: StringTable) -> Record:
    return {
        "id": weapon.id,
        "name": weapon.name,
        "description": weapon.description,
        "icon": strings.get_index(weapon.icon),
        "mesh": strings.get_index(weapon.mesh),
        "weight": weapon.weight,
        "crystal_type": weapon.crystal_type,
        "weapon_type": weapon.weapon_type,
        "p_atk": weapon.p_atk,
        "m_atk": weapon.m_atk,
        "attack_speed": weapon.attack_speed,
        "critical": weapon.critical,
        "soulshot_count": weapon.soulshot_count,
        "spiritshot_count": weapon.spiritshot_count,
    }


def parse_armor(record: Record, strings: StringTable) -> Armor:
    values = dict(record)
    values["icon"] = strings.require(record["icon"])
    values["mesh"] = strings.require(record["mesh"])
    return Armor(**values)


def build_armor_record(armor: Armor, strings: StringTable) -> Record:
    return {
        "id": armor.id,
        "name": armor.name,
        "description": armor.description,
        "icon": strings.get_index(armor.icon),
        "mesh": strings.get_index(armor.mesh),
        "weight": armor.weight,
        "crystal_type": armor.crystal_type,
        "armor_type": armor.armor_type,
        "body_part": armor.body_part,
        "p_def": armor.p_def,
        "m_def": armor.m_def,
        "mp_bonus": armor.mp_bonus,
    }


def parse_etc_item(record: Record, strings: StringTable) -> EtcItem:
    values = dict(record)
    values["icon"] = strings.require(record["icon"])
    return EtcItem(**values)


def build_etc_item_record(etc_item: EtcItem, strings: StringTable) -> Record:
    return {
        "id": etc_item.id,
        "name": etc_item.name,
        "description": etc_item.description,
        "icon": strings.get_index(etc_item.icon),
        "weight": etc_item.weight,
        "crystal_type": etc_item.crystal_type,
        "etc_item_type": etc_item.etc_item_type,
        "consume_type": etc_item.consume_type,
    }


# -- Item sets -------------------------------------------------------------

def parse_item_set(record: Record, strings: StringTable) -> ItemSet:
    return ItemSet(
        id=record["id"],
        base_items=[list(slot) for slot in record["base_items"]],
        base_descriptions=list(record["base_descriptions"]),
        additional_items=[list(slot) for slot in record["additional_items"]],
        additional_descriptions=list(record["additional_descriptions"]),
        unk1=record["unk1"],
        unk2=record["unk2"],
        enchant_info=[ItemSetEnchantInfo(**info) for info in record["enchant_info"]],
    )


def build_item_set_record(item_set: ItemSet, strings: StringTable) -> Record:
    return {
        "id": item_set.id,
        "base_items": [list(slot) for slot in item_set.base_items],
        "base_descriptions": list(item_set.base_descriptions),
        "additional_items": [list(slot) for slot in item_set.additional_items],
        "additional_descriptions": list(item_set.additional_descriptions),
        "unk1": item_set.unk1,
        "unk2": item_set.unk2,
        "enchant_info": [
            {
                "enchant_level": info.enchant_level,
                "enchant_description": info.enchant_description,
            }
            for info in item_set.enchant_info
        ],
    }


# -- Recipes ---------------------------------------------------------------

def parse_recipe(record: Record, strings: StringTable) -> Recipe:
    values = dict(record)
    values["materials"] = [RecipeMaterial(**m) for m in record["materials"]]
    return Recipe(**values)


def build_recipe_record(recipe: Recipe, strings: StringTable) -> Record:
    return {
        "id": recipe.id,
        "name": recipe.name,
        "recipe_item": recipe.recipe_item,
        "product": recipe.product,
        "product_count": recipe.product_count,
        "level": recipe.level,
        "mp_cost": recipe.mp_cost,
        "success_rate": recipe.success_rate,
        "materials": [{"item_id": m.item_id, "count": m.count} for m in recipe.materials],
    }


# -- Enchant stat bonus ----------------------------------------------------

def parse_enchant_stat_bonus(record: Record, strings: StringTable) -> EnchantStatBonus:
    return EnchantStatBonus(
        weapon_grade=record["weapon_grade"],
        magic_weapon=record["magic_weapon"],
        unk1=record["unk1"],
        weapon_type=list(record["weapon_type"]),
        soulshot_power=record["soulshot_power"],
        spiritshot_power=record["spiritshot_power"],
    )


def build_enchant_stat_bonus_record(bonus: EnchantStatBonus, strings: StringTable) -> Record:
    return {
        "weapon_grade": bonus.weapon_grade,
        "magic_weapon": bonus.magic_weapon,
        "unk1": bonus.unk1,
        "weapon_type": list(bonus.weapon_type),
        "soulshot_power": bonus.soulshot_power,
        "spiritshot_power": bonus.spiritshot_power,
    }
