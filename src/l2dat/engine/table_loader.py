"""Load a client system folder into a GameDataHolder.

Stages:
  1. Locate       - scan the folder and build the catalog. A missing string
                    table is fatal (MissingRequiredTable).
  2. LoadStrings  - decode the string-table file. Any failure is fatal.
  3. LoadEntities - decode every other table on a thread pool. Tables are
                    independent: references are resolved by index, so a
                    failure is recorded for that table and loading goes on.
  4. Derive       - rebuild the combined item index.
"""

import logging
from collections.abc import Mapping
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from l2dat.engine.holder import GameDataHolder
from l2dat.models.errors import DatError, TableIOError
from l2dat.models.string_table import StringTable
from l2dat.models.tracked_table import ChangeTrackedTable
from l2dat.parser.catalog import Catalog, CatalogEntry, build_catalog, scan_dat_directory
from l2dat.parser.dat_file import load_dat
from l2dat.parser.entity_parser import GAME_DATA_NAME_SCHEMA
from l2dat.parser.protocol import ProtocolRevision

logger = logging.getLogger(__name__)


class LoadOutcome(Enum):
    COMPLETE = "complete"
    PARTIAL = "partial"


@dataclass(slots=True)
class LoadResult:
    holder: GameDataHolder
    failures: dict[str, DatError] = field(default_factory=dict)

    @property
    def outcome(self) -> LoadOutcome:
        return LoadOutcome.PARTIAL if self.failures else LoadOutcome.COMPLETE

    @property
    def failed_tables(self) -> list[str]:
        return sorted(self.failures)


def load_string_table(path: Path) -> StringTable:
    records = load_dat(path, GAME_DATA_NAME_SCHEMA)
    return StringTable.from_ordered_list(r["value"] for r in records)


def load_table(entry: CatalogEntry, strings: StringTable) -> ChangeTrackedTable:
    """Decode one catalog entry into a clean ChangeTrackedTable.

    Raises:
        TableIOError: If the file is absent or unreadable.
        TruncatedInput / MalformedField: If a record doesn't decode.
    """
    if entry.path is None:
        raise TableIOError(Path(entry.table.file_name), FileNotFoundError(2, "File not found"))

    table_def = entry.table
    pairs = []
    for position, record in enumerate(load_dat(entry.path, table_def.schema)):
        pairs.append((table_def.key_of(record, position), table_def.from_record(record, strings)))
    table = ChangeTrackedTable.from_entries(pairs)
    if len(table) != len(pairs):
        logger.warning(
            f"Table '{entry.name}' has {len(pairs) - len(table)} duplicate ids; last record wins"
        )
    return table


class TableLoader:
    """Runs the load stages for one protocol revision."""

    def __init__(
        self,
        protocol: ProtocolRevision = ProtocolRevision.GRAND_CRUSADE_110,
        max_workers: int | None = None,
    ) -> None:
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self.protocol = protocol
        self.max_workers = max_workers

    def load_directory(self, system_folder: Path) -> LoadResult:
        """Scan *system_folder* for dat files and load them."""
        self.logger.info(f"Scanning {system_folder} for dat files")
        dat_paths = scan_dat_directory(Path(system_folder))
        self.logger.debug(f"Found {len(dat_paths)} dat files")
        return self.load(dat_paths)

    def load(self, dat_paths: Mapping[str, Path]) -> LoadResult:
        """Load from an explicit file name -> path mapping."""
        catalog = build_catalog(dat_paths, self.protocol)

        strings = load_string_table(catalog.string_table_path)
        self.logger.info(f"Loaded {len(strings)} strings from {catalog.string_table_path.name}")

        tables, failures = self._load_entities(catalog, strings)

        holder = GameDataHolder(catalog, strings, tables, failures)
        self._log_summary(holder, failures)
        return LoadResult(holder=holder, failures=failures)

    def _load_entities(
        self, catalog: Catalog, strings: StringTable
    ) -> tuple[dict[str, ChangeTrackedTable], dict[str, DatError]]:
        loaded: dict[str, ChangeTrackedTable] = {}
        failures: dict[str, DatError] = {}

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            future_to_entry = {
                executor.submit(load_table, entry, strings): entry
                for entry in catalog
            }
            for future in as_completed(future_to_entry):
                entry = future_to_entry[future]
                try:
                    loaded[entry.name] = future.result()
                except DatError as exc:
                    self.logger.error(f"Failed to load table '{entry.name}': {exc}")
                    failures[entry.name] = exc

        # Keep catalog order regardless of completion order.
        tables = {entry.name: loaded[entry.name] for entry in catalog if entry.name in loaded}
        return tables, failures

    def _log_summary(self, holder: GameDataHolder, failures: Mapping[str, DatError]) -> None:
        self.logger.info("======================================")
        for name, count in holder.summary().items():
            self.logger.info(f"\tLoaded {count} {name}")
        if failures:
            self.logger.warning(f"\tFailed tables: {', '.join(sorted(failures))}")
        self.logger.info("======================================")
