"""Load a system folder, mark tables dirty and write them back.

Usage:
    python -m scripts.resave_tables [--system PATH] (--table NAME ... | --all)
                                    [--add-string TEXT ...] [--log-file PATH]

Untouched entities re-encode to the same bytes as long as the string table
has no case-insensitive duplicates, so resaving is a quick way to check that
a table survives a load/save cycle. With duplicates, a string reference is
rewritten to the last duplicate's index.
"""

import argparse
from pathlib import Path

from l2dat.engine.editor_config import EditorConfig, resolve_system_folder
from l2dat.engine.holder import GameDataHolder
from l2dat.engine.persistence import PersistenceOrchestrator, SaveReport
from l2dat.engine.table_loader import TableLoader
from l2dat.models.errors import DatError
from l2dat.utils.logging_config import setup_logging


DEFAULT_CONFIG = Path("l2dat.json")


def touch_tables(holder: GameDataHolder, table_names: list[str]) -> int:
    """Re-insert every entity of *table_names*. Returns the number touched."""
    touched = 0
    for name in table_names:
        table = holder.table(name)
        for key, entity in list(table.items()):
            holder.save_entity(name, key, entity, force=True)
            touched += 1
    return touched


def format_report(report: SaveReport) -> list[str]:
    lines = []
    for result in report:
        status = "saved" if result.ok else f"FAILED: {result.error}"
        lines.append(f"{result.table_name}: {status}")
    for name in report.unchanged:
        lines.append(f"{name}: unchanged")
    return lines


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Resave client data tables")
    parser.add_argument("--system", type=Path,
                        help="Client system folder (defaults to the config value)")
    parser.add_argument("--config", type=Path, default=DEFAULT_CONFIG,
                        help="Editor config file (JSON)")
    parser.add_argument("--table", action="append", default=[],
                        help="Table to rewrite; repeat for several")
    parser.add_argument("--all", action="store_true",
                        help="Rewrite every loaded table")
    parser.add_argument("--add-string", action="append", default=[],
                        help="Intern an extra string (rewrites the string table)")
    parser.add_argument("--log-level", default=None,
                        help="Logging level (defaults to the config value)")
    parser.add_argument("--log-file", type=Path, default=None,
                        help="Also write a CSV debug log to this file")
    args = parser.parse_args(argv)

    config = EditorConfig.load(args.config)
    setup_logging(args.log_level or config.log_level, args.log_file)

    try:
        folder = resolve_system_folder(args.system, config)
        result = TableLoader(config.protocol, config.max_workers).load_directory(folder)
    except (FileNotFoundError, DatError) as exc:
        print(f"Error: {exc}")
        raise SystemExit(1)

    holder = result.holder
    names = list(holder.tables) if args.all else args.table
    try:
        touched = touch_tables(holder, names)
    except KeyError as exc:
        print(f"Error: {exc.args[0]}")
        raise SystemExit(1)
    for text in args.add_string:
        holder.intern(text)

    print(f"Touched {touched} entities in {len(names)} tables")
    report = PersistenceOrchestrator(holder, config.max_workers).save()
    for line in format_report(report):
        print(line)

    if not report.ok:
        raise SystemExit(1)


if __name__ == "__main__":
    main()
