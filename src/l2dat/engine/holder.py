"""In-memory editing session over the loaded client data tables."""

import logging
from collections.abc import Mapping
from typing import Any

from l2dat.engine.filters import CatalogRow, filter_entities
from l2dat.models.entities import Item
from l2dat.models.errors import DatError
from l2dat.models.string_table import StringTable
from l2dat.models.tracked_table import ChangeTrackedTable
from l2dat.parser.catalog import Catalog
from l2dat.parser.protocol import (
    ARMOR,
    ETC_ITEMS,
    GAME_DATA_NAME,
    ITEM_TABLES,
    NPCS,
    WEAPONS,
    ProtocolRevision,
)

logger = logging.getLogger(__name__)


class GameDataHolder:
    """Owns the string table, the loaded tables and the derived item index.

    Tables that failed to load are not present and can't be edited; their
    errors are kept in ``failures``. Edits should go through save_entity(),
    which skips value-identical overwrites so they don't dirty a table.
    """

    __slots__ = ("catalog", "strings", "tables", "failures", "all_items")

    def __init__(
        self,
        catalog: Catalog,
        strings: StringTable,
        tables: Mapping[str, ChangeTrackedTable],
        failures: Mapping[str, DatError] | None = None,
    ) -> None:
        self.catalog = catalog
        self.strings = strings
        self.tables: dict[str, ChangeTrackedTable] = dict(tables)
        self.failures: dict[str, DatError] = dict(failures or {})
        self.all_items: dict[int, Item] = {}
        self.refill_all_items()

    @property
    def protocol(self) -> ProtocolRevision:
        return self.catalog.protocol

    def table(self, name: str) -> ChangeTrackedTable:
        try:
            return self.tables[name]
        except KeyError:
            if name in self.failures:
                raise KeyError(f"Table '{name}' failed to load: {self.failures[name]}") from None
            raise KeyError(f"Unknown table '{name}'") from None

    # -- Derived tables -----------------------------------------------------

    def refill_all_items(self) -> None:
        """Rebuild the combined item index from the typed item tables."""
        self.all_items.clear()
        if WEAPONS in self.tables:
            self.all_items.update((w.id, Item.from_weapon(w)) for w in self.tables[WEAPONS].values())
        if ETC_ITEMS in self.tables:
            self.all_items.update((e.id, Item.from_etc_item(e)) for e in self.tables[ETC_ITEMS].values())
        if ARMOR in self.tables:
            self.all_items.update((a.id, Item.from_armor(a)) for a in self.tables[ARMOR].values())

    # -- Display helpers ----------------------------------------------------

    def npc_name(self, npc_id: int) -> str:
        npc = self.tables[NPCS].get(npc_id) if NPCS in self.tables else None
        if npc is None:
            return f"{npc_id} Not Exist!"
        return npc.name

    def item_name(self, item_id: int) -> str:
        item = self.all_items.get(item_id)
        if item is None:
            return f"{item_id} Not Exist!"
        return item.name

    # -- Edits --------------------------------------------------------------

    def save_entity(self, table_name: str, key: Any, entity: Any, *, force: bool = False) -> bool:
        """Store an edited entity. Returns True if the table was modified.

        Unless *force* is set, an entity equal to both the stored and the
        last saved value is ignored and the table's dirty flag is left alone.
        An entity edited in place still counts as changed.
        """
        table = self.table(table_name)
        if force:
            table.insert(key, entity)
            changed = True
        else:
            changed = table.insert_if_changed(key, entity)

        if not changed:
            logger.debug(f"{table_name}[{key}] unchanged, not marking dirty")
            return False
        if table_name in ITEM_TABLES:
            self.refill_all_items()
        return True

    def intern(self, text: str) -> int:
        return self.strings.get_index(text)

    # -- Queries ------------------------------------------------------------

    def filter(self, table_name: str, text: str) -> list[CatalogRow]:
        return filter_entities(self.table(table_name).items(), text)

    def dirty_tables(self) -> list[str]:
        names = [name for name, table in self.tables.items() if table.dirty]
        if self.strings.dirty:
            names.insert(0, GAME_DATA_NAME)
        return names

    @property
    def has_unsaved_changes(self) -> bool:
        return bool(self.dirty_tables())

    def summary(self) -> dict[str, int]:
        """Entry count per table (string table first, item index last)."""
        counts = {GAME_DATA_NAME: len(self.strings)}
        counts.update((name, len(table)) for name, table in self.tables.items())
        counts["all items"] = len(self.all_items)
        return counts
