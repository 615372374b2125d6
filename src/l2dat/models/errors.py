"""Exception hierarchy for the dat codec, loader and persistence layer.

Codec errors (TruncatedInput, MalformedField, ValueOutOfRange) carry the
dotted field path and byte offset where they happened so a failed table load
can be traced back to one field of one record.
"""

from pathlib import Path


class DatError(Exception):
    """Base class for every error raised by l2dat."""

    def __init__(self, message: str, *, field: str | None = None,
                 offset: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.field = field
        self.offset = offset

    def at(self, field: str, offset: int | None = None) -> "DatError":
        """Attach the innermost field path (and offset) if not already set."""
        if self.field is None:
            self.field = field
        if self.offset is None:
            self.offset = offset
        return self

    def __str__(self) -> str:
        parts = [self.message]
        if self.field is not None:
            parts.append(f"field {self.field!r}")
        if self.offset is not None:
            parts.append(f"offset {self.offset}")
        return " | ".join(parts)


class TruncatedInput(DatError, ValueError):
    """Fewer bytes remain than a field requires."""


class MalformedField(DatError, ValueError):
    """A decoded value can't be represented by its in-memory type."""


class ValueOutOfRange(DatError, ValueError):
    """An in-memory value doesn't fit the width of its wire field."""


class MissingRequiredTable(DatError, FileNotFoundError):
    """The string-table file is absent; nothing else can be resolved."""


class TableIOError(DatError, OSError):
    """Open/read/write failure on one table file."""

    def __init__(self, path: Path, cause: OSError | None = None) -> None:
        reason = cause.strerror if cause is not None and cause.strerror else str(cause)
        super().__init__(f"I/O error on {path}: {reason}")
        self.path = path
        self.cause = cause


class SaveInProgressError(DatError, RuntimeError):
    """A save was requested while another one is still running."""
