"""Catalogue filtering for entity lists.

Filter text is turned into one of three closed filter kinds:
  - empty text          -> NONE (everything matches)
  - text that is an int -> EXACT_ID (entity id equals it)
  - anything else       -> SUBSTRING (case-insensitive match on the name)
"""

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Any


class FilterKind(Enum):
    NONE = "none"
    EXACT_ID = "exact_id"
    SUBSTRING = "substring"


@dataclass(frozen=True, slots=True)
class EntityFilter:
    kind: FilterKind
    text: str = ""
    entity_id: int | None = None

    @classmethod
    def parse(cls, text: str) -> "EntityFilter":
        text = text.strip().lower()
        if not text:
            return cls(FilterKind.NONE)
        try:
            return cls(FilterKind.EXACT_ID, text, int(text))
        except ValueError:
            return cls(FilterKind.SUBSTRING, text)

    def matches(self, key: Any, entity: Any) -> bool:
        if self.kind is FilterKind.NONE:
            return True
        if self.kind is FilterKind.EXACT_ID:
            return key == self.entity_id or getattr(entity, "id", None) == self.entity_id
        return self.text in display_name(key, entity).lower()


@dataclass(frozen=True, slots=True)
class CatalogRow:
    """One line of an entity catalogue: id and display name."""
    id: Any
    name: str


def display_name(key: Any, entity: Any) -> str:
    """Best human-readable label for an entity."""
    if isinstance(entity, str):
        return entity
    name = getattr(entity, "name", None)
    if name:
        return str(name)
    return str(key)


def filter_entities(items: Iterable[tuple[Any, Any]], text: str) -> list[CatalogRow]:
    """Rows of (key, entity) pairs matching *text*, sorted by id."""
    entity_filter = EntityFilter.parse(text)
    rows = [
        CatalogRow(key, display_name(key, entity))
        for key, entity in items
        if entity_filter.matches(key, entity)
    ]
    rows.sort(key=lambda row: row.id)
    return rows
