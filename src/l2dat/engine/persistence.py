"""Dirty-driven, concurrent write-back of the loaded tables.

save() works in three phases:

  1. Snapshot + encode (save thread). Each dirty table is deep-copied and
     encoded. Encoding interns text into the live string table, which is why
     it runs before the string table itself is snapshotted and never on the
     writer threads.
  2. Write (thread pool). The string table gets its own task; the
     orchestrator waits for it and logs it before collecting the rest. Tasks
     write disjoint files and a failure never cancels a sibling.
  3. Settle (save thread). The written snapshot becomes the table's saved
     baseline and its dirty flag is cleared, unless the table was edited
     after the snapshot was taken.

The orchestrator owns a per-instance "saving" flag. A second save() while one
is in flight raises SaveInProgressError instead of queueing.
"""

import logging
import threading
from collections.abc import Iterator
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path

from l2dat.engine.holder import GameDataHolder
from l2dat.models.errors import DatError, MalformedField, SaveInProgressError
from l2dat.models.string_table import StringTable
from l2dat.models.tracked_table import ChangeTrackedTable
from l2dat.parser.dat_file import encode_records, write_dat_bytes
from l2dat.parser.entity_parser import GAME_DATA_NAME_SCHEMA
from l2dat.parser.protocol import GAME_DATA_NAME, TableDef


@dataclass(slots=True)
class TableSaveResult:
    table_name: str
    path: Path | None
    error: DatError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(slots=True)
class SaveReport:
    """Per-table outcome of one save. ``unchanged`` lists skipped clean tables."""
    results: list[TableSaveResult] = field(default_factory=list)
    unchanged: list[str] = field(default_factory=list)

    def __iter__(self) -> Iterator[TableSaveResult]:
        return iter(self.results)

    def __len__(self) -> int:
        return len(self.results)

    def result_for(self, table_name: str) -> TableSaveResult | None:
        for result in self.results:
            if result.table_name == table_name:
                return result
        return None

    @property
    def succeeded(self) -> list[str]:
        return [r.table_name for r in self.results if r.ok]

    @property
    def failed(self) -> dict[str, DatError]:
        return {r.table_name: r.error for r in self.results if r.error is not None}

    @property
    def ok(self) -> bool:
        return not self.failed


@dataclass(slots=True)
class _WriteJob:
    table_name: str
    path: Path
    payload: bytes
    generation: int
    snapshot: ChangeTrackedTable | None = None    # None for the string table


class SaveHandle:
    """Handle for a save running in the background (see save_async)."""

    __slots__ = ("_future",)

    def __init__(self, future: "Future[SaveReport]") -> None:
        self._future = future

    def done(self) -> bool:
        return self._future.done()

    def result(self, timeout: float | None = None) -> SaveReport:
        """Block until the save finishes and return its report."""
        return self._future.result(timeout)


def _write(job: _WriteJob) -> None:
    write_dat_bytes(job.path, job.payload)


def _to_records(table_def: TableDef, snapshot: ChangeTrackedTable, strings: StringTable) -> list[dict]:
    """Convert snapshot entities to wire records.

    An entity whose attributes have the wrong shape for its glue (None
    where a list or text is expected, say) is reported as MalformedField.
    """
    records = []
    for key, entity in snapshot.items():
        try:
            records.append(table_def.to_record(key, entity, strings))
        except (TypeError, AttributeError) as exc:
            raise MalformedField(
                f"Entity {key!r} can't be converted to a record: {exc}",
                field=f"{table_def.schema.name}[{key!r}]",
            ) from exc
    return records


class PersistenceOrchestrator:
    """Writes back the dirty tables of one GameDataHolder."""

    def __init__(self, holder: GameDataHolder, max_workers: int | None = None) -> None:
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self.holder = holder
        self.max_workers = max_workers
        self._saving = threading.Lock()

    @property
    def is_saving(self) -> bool:
        """True from save() entry until every write task joined and the report exists."""
        return self._saving.locked()

    def _begin(self) -> None:
        if not self._saving.acquire(blocking=False):
            raise SaveInProgressError("A save is already in progress")

    def save(self) -> SaveReport:
        """Write every dirty table and return the per-table report."""
        self._begin()
        try:
            return self._run()
        finally:
            self._saving.release()

    def save_async(self) -> SaveHandle:
        """Start a save on a background thread.

        The in-progress check happens here, synchronously, so a rejected
        save raises immediately instead of through the handle.
        """
        self._begin()
        future: Future[SaveReport] = Future()

        def runner() -> None:
            # Release before resolving so is_saving is False once result() returns.
            try:
                try:
                    report = self._run()
                finally:
                    self._saving.release()
            except BaseException as exc:
                future.set_exception(exc)
            else:
                future.set_result(report)

        threading.Thread(target=runner, name="l2dat-save", daemon=False).start()
        return SaveHandle(future)

    # -- Phases -------------------------------------------------------------

    def _run(self) -> SaveReport:
        report = SaveReport()
        jobs = self._encode_dirty_tables(report)
        string_job = self._encode_string_table(report)

        if not jobs and string_job is None:
            self.logger.info("Nothing to save")
            return report

        written = self._write_all(jobs, string_job, report)
        self._settle(written)
        self.logger.info(
            f"Binaries saved: {len(report.succeeded)} written, "
            f"{len(report.failed)} failed, {len(report.unchanged)} unchanged"
        )
        return report

    def _encode_dirty_tables(self, report: SaveReport) -> list[_WriteJob]:
        holder = self.holder
        jobs: list[_WriteJob] = []
        for name, table in holder.tables.items():
            snapshot = table.snapshot_if_dirty()
            if not snapshot.dirty:
                self.logger.info(f"{name} unchanged")
                report.unchanged.append(name)
                continue

            entry = holder.catalog[name]
            table_def = entry.table
            try:
                records = _to_records(table_def, snapshot, holder.strings)
                payload = encode_records(records, table_def.schema)
            except DatError as exc:
                self.logger.error(f"Failed to encode {name}: {exc}")
                report.results.append(TableSaveResult(name, entry.path, exc))
                continue

            jobs.append(_WriteJob(name, entry.path, payload, snapshot.generation, snapshot))
        return jobs

    def _encode_string_table(self, report: SaveReport) -> _WriteJob | None:
        strings = self.holder.strings
        if not strings.dirty:
            self.logger.info(f"{GAME_DATA_NAME} unchanged")
            report.unchanged.append(GAME_DATA_NAME)
            return None
        values, generation = strings.ordered_snapshot()
        records = [{"value": value} for value in values]
        payload = encode_records(records, GAME_DATA_NAME_SCHEMA)
        return _WriteJob(GAME_DATA_NAME, self.holder.catalog.string_table_path, payload, generation)

    def _write_all(
        self,
        jobs: list[_WriteJob],
        string_job: _WriteJob | None,
        report: SaveReport,
    ) -> list[_WriteJob]:
        written: list[_WriteJob] = []

        def collect(job: _WriteJob, future: "Future[None]") -> None:
            try:
                future.result()
            except DatError as exc:
                self.logger.error(f"Failed to save {job.table_name}: {exc}")
                report.results.append(TableSaveResult(job.table_name, job.path, exc))
                return
            self.logger.info(f"{job.table_name} saved")
            report.results.append(TableSaveResult(job.table_name, job.path))
            written.append(job)

        # Leaving the with-block joins every task, even if collecting raises.
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            string_future = executor.submit(_write, string_job) if string_job else None
            future_to_job = {executor.submit(_write, job): job for job in jobs}

            if string_future is not None:
                collect(string_job, string_future)

            for future in as_completed(future_to_job):
                collect(future_to_job[future], future)

        return written

    def _settle(self, written: list[_WriteJob]) -> None:
        holder = self.holder
        for job in written:
            if job.table_name == GAME_DATA_NAME:
                cleared = holder.strings.mark_clean(job.generation)
            else:
                cleared = holder.tables[job.table_name].mark_clean(job.generation, job.snapshot)
            if not cleared:
                self.logger.info(f"{job.table_name} was edited during save, stays dirty")
