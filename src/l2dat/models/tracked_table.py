"""Keyed entity collection with a single dirty flag."""

import copy
import threading
from collections.abc import Iterable, Iterator
from typing import Generic, TypeVar


K = TypeVar("K")
V = TypeVar("V")


class ChangeTrackedTable(Generic[K, V]):
    """Entity id -> entity map that remembers whether it was mutated.

    insert() always sets the dirty flag, even when the stored value is equal
    to the new one. Callers that want to avoid a spurious rewrite use
    insert_if_changed(), which compares against the last persisted value.

    The persisted baseline is a private deep copy taken at load and replaced
    whenever a save lands, so an entity edited in place through get() still
    differs from it.

    Iteration order is insertion order, which is also the order records are
    written back in; an overwrite keeps the first position.

    Mutations, snapshots and flag clearing hold a per-table lock so a save
    running in the background never loses an edit made while it runs.
    """

    __slots__ = ("_entries", "_baseline", "_dirty", "_generation", "_lock")

    def __init__(self) -> None:
        self._entries: dict[K, V] = {}
        self._baseline: dict[K, V] = {}
        self._dirty = False
        self._generation = 0
        self._lock = threading.Lock()

    @classmethod
    def from_entries(cls, pairs: Iterable[tuple[K, V]]) -> "ChangeTrackedTable[K, V]":
        """Build a freshly loaded (clean) table."""
        table: ChangeTrackedTable[K, V] = cls()
        table._entries.update(pairs)
        table._baseline = copy.deepcopy(table._entries)
        return table

    @property
    def dirty(self) -> bool:
        return self._dirty

    @property
    def generation(self) -> int:
        return self._generation

    def insert(self, key: K, value: V) -> None:
        with self._lock:
            self._entries[key] = value
            self._dirty = True
            self._generation += 1

    def insert_if_changed(self, key: K, value: V) -> bool:
        """Insert unless *value* equals both the stored and the persisted entry.

        Returns True if inserted.
        """
        unchanged = (
            key in self._entries and self._entries[key] == value
            and key in self._baseline and self._baseline[key] == value
        )
        if unchanged:
            return False
        self.insert(key, value)
        return True

    def get(self, key: K, default: V | None = None) -> V | None:
        return self._entries.get(key, default)

    def __getitem__(self, key: K) -> V:
        return self._entries[key]

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __iter__(self) -> Iterator[K]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def keys(self):
        return self._entries.keys()

    def values(self):
        return self._entries.values()

    def items(self):
        return self._entries.items()

    def snapshot_if_dirty(self) -> "ChangeTrackedTable[K, V]":
        """Deep clone if dirty, otherwise an empty clean table.

        The clone shares nothing mutable with this table, so it can be
        encoded on another thread while this one keeps being edited.
        """
        snapshot: ChangeTrackedTable[K, V] = ChangeTrackedTable()
        with self._lock:
            if not self._dirty:
                return snapshot
            snapshot._entries = copy.deepcopy(self._entries)
            snapshot._dirty = True
            snapshot._generation = self._generation
        return snapshot

    def mark_clean(
        self,
        generation: int | None = None,
        persisted: "ChangeTrackedTable[K, V] | None" = None,
    ) -> bool:
        """Record a successful write and clear the dirty flag.

        *persisted* is the snapshot that was written; it becomes the new
        baseline even when the flag stays set. Without it the current entries
        are taken as persisted. The flag is only cleared if the table didn't
        change after *generation*.

        Returns True if the flag was cleared.
        """
        with self._lock:
            if persisted is not None:
                self._baseline = persisted._entries
            elif generation is None or generation == self._generation:
                self._baseline = copy.deepcopy(self._entries)
            if generation is not None and generation != self._generation:
                return False
            self._dirty = False
            return True

    def __repr__(self) -> str:
        return f"ChangeTrackedTable(len={len(self._entries)}, dirty={self._dirty})"
