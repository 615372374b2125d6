"""Domain entities for the client data tables.

Entities hold resolved values: string-table references are stored as text,
position triples as Position. Conversion to and from wire records lives in
l2dat.parser.entity_parser so these classes stay free of codec details.
"""

from dataclasses import dataclass, field
from enum import Enum


@dataclass(slots=True)
class Position:
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0


@dataclass(slots=True)
class HuntingZone:
    """A huntingzone-*.dat record."""
    id: int
    zone_type: int
    min_recommended_level: int
    max_recommended_level: int
    start_npc_loc: Position
    description: str
    search_zone_id: int
    name: str
    region_id: int              # u16
    npc_id: int
    quest_ids: list[int] = field(default_factory=list)   # u16 each
    instance_zone_id: int = 0


@dataclass(slots=True)
class QuestGoal:
    target_id: int              # npc or item id, depending on goal_type
    goal_type: int
    count: int                  # u16


@dataclass(slots=True)
class QuestStep:
    title: str
    label: str
    description: str
    goals: list[QuestGoal] = field(default_factory=list)       # u8 count
    locations: list[Position] = field(default_factory=list)    # u8 count


@dataclass(slots=True)
class QuestReward:
    item_id: int
    count: int


@dataclass(slots=True)
class Quest:
    """A questname-*.dat record with its nested steps."""
    id: int
    title: str
    min_level: int
    max_level: int
    start_npc_ids: list[int] = field(default_factory=list)
    steps: list[QuestStep] = field(default_factory=list)       # u16 count
    rewards: list[QuestReward] = field(default_factory=list)


@dataclass(slots=True)
class SkillLevel:
    level: int                  # u16
    mp_cost: int                # u16
    hp_cost: int                # u16
    cast_range: int             # i32, -1 = self
    hit_time: float
    reuse_delay: float
    description: str = ""


@dataclass(slots=True)
class Skill:
    """A skillgrp.dat record. Name and icon are string-table backed."""
    id: int
    name: str
    description: str
    icon: str
    operate_type: int           # u8
    levels: list[SkillLevel] = field(default_factory=list)     # u16 count


@dataclass(slots=True)
class Npc:
    """An npcgrp.dat record."""
    id: int
    name: str
    title: str
    level: int                  # u8
    mesh: str                   # string table
    textures: list[str] = field(default_factory=list)    # string table, u8 count
    properties: list[int] = field(default_factory=list)  # u16 each
    quest_ids: list[int] = field(default_factory=list)   # u16 each
    collision_radius: float = 0.0
    collision_height: float = 0.0


@dataclass(slots=True)
class Weapon:
    """A weapongrp.dat record."""
    id: int
    name: str
    description: str
    icon: str                   # string table
    mesh: str                   # string table
    weight: int
    crystal_type: int           # u8
    weapon_type: int            # u8
    p_atk: int                  # u16
    m_atk: int                  # u16
    attack_speed: int           # u16
    critical: int               # u8
    soulshot_count: int         # u8
    spiritshot_count: int       # u8


@dataclass(slots=True)
class Armor:
    """An armorgrp.dat record."""
    id: int
    name: str
    description: str
    icon: str                   # string table
    mesh: str                   # string table
    weight: int
    crystal_type: int           # u8
    armor_type: int             # u8
    body_part: int              # u8
    p_def: int                  # u16
    m_def: int                  # u16
    mp_bonus: int               # u16


@dataclass(slots=True)
class EtcItem:
    """An etcitemgrp.dat record."""
    id: int
    name: str
    description: str
    icon: str                   # string table
    weight: int
    crystal_type: int           # u8
    etc_item_type: int          # u8
    consume_type: int           # u8


class ItemKind(Enum):
    WEAPON = "weapon"
    ARMOR = "armor"
    ETC = "etc"


@dataclass(slots=True)
class Item:
    """Summary row of the combined item index. Derived, never persisted."""
    id: int
    name: str
    icon: str
    kind: ItemKind

    @classmethod
    def from_weapon(cls, weapon: Weapon) -> "Item":
        return cls(weapon.id, weapon.name, weapon.icon, ItemKind.WEAPON)

    @classmethod
    def from_armor(cls, armor: Armor) -> "Item":
        return cls(armor.id, armor.name, armor.icon, ItemKind.ARMOR)

    @classmethod
    def from_etc_item(cls, etc_item: EtcItem) -> "Item":
        return cls(etc_item.id, etc_item.name, etc_item.icon, ItemKind.ETC)


@dataclass(slots=True)
class ItemSetEnchantInfo:
    enchant_level: int
    enchant_description: str


@dataclass(slots=True)
class ItemSet:
    """A setitemgrp.dat record.

    base_items / additional_items are lists of slots; each slot lists the
    item ids that can fill it.
    """
    id: int
    base_items: list[list[int]] = field(default_factory=list)
    base_descriptions: list[str] = field(default_factory=list)
    additional_items: list[list[int]] = field(default_factory=list)
    additional_descriptions: list[str] = field(default_factory=list)
    unk1: int = 0
    unk2: int = 0
    enchant_info: list[ItemSetEnchantInfo] = field(default_factory=list)

    @property
    def name(self) -> str:
        return str(self.id)


@dataclass(slots=True)
class RecipeMaterial:
    item_id: int
    count: int


@dataclass(slots=True)
class Recipe:
    """A recipe-*.dat record."""
    id: int
    name: str
    recipe_item: int
    product: int
    product_count: int
    level: int
    mp_cost: int
    success_rate: int
    materials: list[RecipeMaterial] = field(default_factory=list)


@dataclass(slots=True)
class EnchantStatBonus:
    """An enchantstatbonus.dat row. The file is a flat, ordered array."""
    weapon_grade: int
    magic_weapon: int
    unk1: int
    weapon_type: list[int] = field(default_factory=list)
    soulshot_power: float = 0.0
    spiritshot_power: float = 0.0
