"""Dump the data tables of a client system folder.

Usage:
    python -m scripts.dump_tables [--system PATH] [--table NAME] [--filter TEXT] [--json]
                                  [--log-file PATH]

Without --table, prints the per-table entry counts and any table that failed
to load. With --table, lists the matching entries (id and display name).
"""

import argparse
import json
from pathlib import Path

from l2dat.engine.editor_config import EditorConfig, resolve_system_folder
from l2dat.engine.holder import GameDataHolder
from l2dat.engine.table_loader import LoadResult, TableLoader
from l2dat.models.errors import DatError
from l2dat.utils.logging_config import setup_logging


DEFAULT_CONFIG = Path("l2dat.json")


def summary_lines(result: LoadResult) -> list[str]:
    lines = [f"{count:>8} | {name}" for name, count in result.holder.summary().items()]
    for name in result.failed_tables:
        lines.append(f"  FAILED | {name}: {result.failures[name]}")
    return lines


def table_rows(holder: GameDataHolder, table_name: str, text: str) -> list[dict]:
    return [{"id": row.id, "name": row.name} for row in holder.filter(table_name, text)]


def summary_dict(result: LoadResult) -> dict:
    return {
        "outcome": result.outcome.value,
        "tables": result.holder.summary(),
        "failed": {name: str(result.failures[name]) for name in result.failed_tables},
    }


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Dump client data tables")
    parser.add_argument("--system", type=Path,
                        help="Client system folder (defaults to the config value)")
    parser.add_argument("--config", type=Path, default=DEFAULT_CONFIG,
                        help="Editor config file (JSON)")
    parser.add_argument("--table", action="append", default=[],
                        help="Table to list; repeat for several")
    parser.add_argument("--filter", default="",
                        help="Id or name substring to filter listed entries")
    parser.add_argument("--json", action="store_true",
                        help="Emit JSON instead of text")
    parser.add_argument("--log-level", default=None,
                        help="Logging level (defaults to the config value)")
    parser.add_argument("--log-file", type=Path, default=None,
                        help="Also write a CSV debug log to this file")
    args = parser.parse_args(argv)

    config = EditorConfig.load(args.config)
    setup_logging(args.log_level or config.log_level, args.log_file)

    try:
        folder = resolve_system_folder(args.system, config)
    except FileNotFoundError as exc:
        print(f"Error: {exc}")
        raise SystemExit(1)

    try:
        result = TableLoader(config.protocol, config.max_workers).load_directory(folder)
    except DatError as exc:
        print(f"Error: {exc}")
        raise SystemExit(1)

    holder = result.holder
    if not args.table:
        if args.json:
            print(json.dumps(summary_dict(result), indent=2))
        else:
            for line in summary_lines(result):
                print(line)
        return

    output: dict[str, list[dict]] = {}
    for table_name in args.table:
        try:
            output[table_name] = table_rows(holder, table_name, args.filter)
        except KeyError as exc:
            print(f"Error: {exc.args[0]}")
            raise SystemExit(1)

    if args.json:
        print(json.dumps(output, indent=2, ensure_ascii=False))
        return

    for table_name, rows in output.items():
        print(f"== {table_name} ==")
        for row in rows:
            print(f"{row['id']:>8} | {row['name']}")
        print(f"Total: {len(rows)} entries")
        print()


if __name__ == "__main__":
    main()
