"""Table catalog: logical table name -> file path + TableDef.

Built once per session from a directory scan and not modified afterwards.
"""

import logging
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType

from l2dat.models.errors import MissingRequiredTable
from l2dat.parser.protocol import (
    GAME_DATA_NAME,
    ProtocolRevision,
    TableDef,
    string_table_file,
    table_defs,
)

logger = logging.getLogger(__name__)


def scan_dat_directory(root: Path) -> dict[str, Path]:
    """Map lowercase file name -> path for every *.dat under *root*.

    The scan is recursive. If the same name appears twice, the first path in
    sorted order wins and the duplicate is logged.
    """
    found: dict[str, Path] = {}
    for path in sorted(root.rglob("*")):
        if not path.is_file() or path.suffix.lower() != ".dat":
            continue
        name = path.name.lower()
        if name in found:
            logger.warning(f"Duplicate dat file {path} ignored (using {found[name]})")
            continue
        found[name] = path
    return found


@dataclass(frozen=True, slots=True)
class CatalogEntry:
    table: TableDef
    path: Path | None       # None when the file was not found

    @property
    def name(self) -> str:
        return self.table.name


class Catalog:
    """Immutable mapping of logical table name to CatalogEntry."""

    __slots__ = ("_protocol", "_string_table_path", "_entries")

    def __init__(
        self,
        protocol: ProtocolRevision,
        string_table_path: Path,
        entries: Mapping[str, CatalogEntry],
    ) -> None:
        self._protocol = protocol
        self._string_table_path = string_table_path
        self._entries = MappingProxyType(dict(entries))

    @property
    def protocol(self) -> ProtocolRevision:
        return self._protocol

    @property
    def string_table_path(self) -> Path:
        return self._string_table_path

    @property
    def entries(self) -> Mapping[str, CatalogEntry]:
        return self._entries

    def __getitem__(self, name: str) -> CatalogEntry:
        return self._entries[name]

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __iter__(self) -> Iterator[CatalogEntry]:
        return iter(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)

    def path_of(self, name: str) -> Path | None:
        if name == GAME_DATA_NAME:
            return self._string_table_path
        return self._entries[name].path

    @property
    def missing(self) -> list[str]:
        return [entry.name for entry in self if entry.path is None]


def build_catalog(
    dat_paths: Mapping[str, Path],
    protocol: ProtocolRevision = ProtocolRevision.GRAND_CRUSADE_110,
) -> Catalog:
    """Bind the protocol's table definitions to scanned file paths.

    Raises:
        MissingRequiredTable: If the string-table file is not present.
    """
    paths = {name.lower(): path for name, path in dat_paths.items()}
    string_file = string_table_file(protocol)
    string_path = paths.get(string_file)
    if string_path is None:
        raise MissingRequiredTable(f"Required string table {string_file!r} not found")

    entries = {
        table.name: CatalogEntry(table=table, path=paths.get(table.file_name))
        for table in table_defs(protocol)
    }
    for entry in entries.values():
        if entry.path is None:
            logger.warning(f"Table '{entry.name}' has no file ({entry.table.file_name})")
    return Catalog(protocol, string_path, entries)
