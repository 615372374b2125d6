"""Global interning table for strings shared across record kinds.

Many records store a u32 index into this table instead of inline text. The
table is append-only for the lifetime of a load/save cycle: indices are dense,
start at 0 and are never reused. Lookups by text are case-insensitive.
"""

import threading
from collections.abc import Iterable

from l2dat.models.errors import MalformedField


NONE_STR = "None"


class StringTable:
    """Index-addressable, case-insensitively deduplicating string table.

    Build it with from_ordered_list() when loading the string-table file, or
    grow it with get_index() during edits. to_ordered_list() is the only
    serialization path.

    The generation counter increases on every append so a writer can clear
    the dirty flag only if nothing was appended after its snapshot. Appends
    and flag changes hold a lock because a background save interns strings
    while the editor may do the same.
    """

    __slots__ = ("_next_index", "_forward", "_reverse", "_dirty", "_generation", "_lock")

    def __init__(self) -> None:
        self._next_index = 0
        self._forward: dict[int, str] = {}
        self._reverse: dict[str, int] = {}
        self._dirty = False
        self._generation = 0
        self._lock = threading.Lock()

    @classmethod
    def from_ordered_list(cls, values: Iterable[str]) -> "StringTable":
        """Indices are assigned by position; the result is clean.

        A later case-insensitive duplicate takes over the reverse slot, so
        get_index() resolves to the last occurrence.
        """
        table = cls()
        for value in values:
            table._add(value)
        return table

    @property
    def dirty(self) -> bool:
        return self._dirty

    @property
    def next_index(self) -> int:
        return self._next_index

    @property
    def generation(self) -> int:
        return self._generation

    def _add(self, value: str) -> int:
        index = self._next_index
        self._forward[index] = value
        self._reverse[value.lower()] = index
        self._next_index += 1
        return index

    def get_index(self, value: str) -> int:
        """Return the index of *value*, appending it if unseen.

        Empty input is stored as the "None" sentinel.
        """
        if not value:
            value = NONE_STR
        key = value.lower()
        index = self._reverse.get(key)
        if index is not None:
            return index
        with self._lock:
            # Another thread may have appended it meanwhile.
            index = self._reverse.get(key)
            if index is not None:
                return index
            self._dirty = True
            self._generation += 1
            return self._add(value)

    def get(self, index: int) -> str | None:
        return self._forward.get(index)

    def get_or_placeholder(self, index: int) -> str:
        """Display-only lookup; never fails."""
        value = self._forward.get(index)
        if value is None:
            return f"NameNotFound[{index}]"
        return value

    def require(self, index: int) -> str:
        """Codec lookup: an unresolved reference is a malformed field."""
        value = self._forward.get(index)
        if value is None:
            raise MalformedField(
                f"String table index {index} is not defined "
                f"(table has {self._next_index} entries)"
            )
        return value

    def __getitem__(self, index: int) -> str:
        return self._forward[index]

    def __len__(self) -> int:
        return len(self._forward)

    def __contains__(self, value: object) -> bool:
        return isinstance(value, str) and value.lower() in self._reverse

    def to_ordered_list(self) -> list[str]:
        """All strings sorted by index. A gap means the table is corrupt."""
        with self._lock:
            return self._ordered()

    def ordered_snapshot(self) -> tuple[list[str], int]:
        """to_ordered_list() plus the generation it reflects, taken atomically."""
        with self._lock:
            return self._ordered(), self._generation

    def _ordered(self) -> list[str]:
        result: list[str] = []
        for expected, index in enumerate(sorted(self._forward)):
            if index != expected:
                raise AssertionError(
                    f"String table has a gap: expected index {expected}, found {index}"
                )
            result.append(self._forward[index])
        return result

    def mark_clean(self, generation: int | None = None) -> bool:
        """Clear the dirty flag unless the table grew after *generation*.

        Returns True if the flag was cleared.
        """
        with self._lock:
            if generation is not None and generation != self._generation:
                return False
            self._dirty = False
            return True
