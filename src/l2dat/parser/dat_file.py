"""Whole-file framing for .dat tables.

A table file has no header, version tag or checksum: its body is the records
back to back until end of file. Decoding stops exactly at end of file; a
partial trailing record raises TruncatedInput tagged with the record index.

Design: iter_records is a generator, read_records a list wrapper, the same
split as the rest of the parser package.
"""

from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import Any

from l2dat.models.errors import DatError, TableIOError
from l2dat.parser.binary_reader import BinaryReader
from l2dat.parser.binary_writer import BinaryWriter
from l2dat.parser.record_schema import RecordSchema


def iter_records(data: bytes, schema: RecordSchema) -> Iterator[dict[str, Any]]:
    """Yield decoded records until the buffer is exhausted."""
    reader = BinaryReader(data)
    index = 0
    while reader.remaining > 0:
        start = reader.position
        try:
            yield schema.decode_record(reader, f"{schema.name}[{index}]")
        except DatError as exc:
            raise exc.at(f"{schema.name}[{index}]", start)
        index += 1


def read_records(data: bytes, schema: RecordSchema) -> list[dict[str, Any]]:
    """Decode every record in a table file body."""
    return list(iter_records(data, schema))


def encode_records(records: Iterable[dict[str, Any]], schema: RecordSchema) -> bytes:
    """Encode records back to back into a table file body."""
    writer = BinaryWriter()
    for index, record in enumerate(records):
        schema.write_record(writer, record, f"{schema.name}[{index}]")
    return writer.getvalue()


def read_dat_bytes(path: Path) -> bytes:
    try:
        return path.read_bytes()
    except OSError as exc:
        raise TableIOError(path, exc) from exc


def write_dat_bytes(path: Path, payload: bytes) -> None:
    """Rewrite an existing table file in place.

    The file must already exist: a table file that vanished since load is an
    I/O failure, not something to recreate silently.
    """
    try:
        with path.open("r+b") as fh:
            fh.write(payload)
            fh.truncate()
    except OSError as exc:
        raise TableIOError(path, exc) from exc


def load_dat(path: Path, schema: RecordSchema) -> list[dict[str, Any]]:
    """Read and decode a table file."""
    return read_records(read_dat_bytes(path), schema)
