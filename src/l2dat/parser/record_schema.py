"""Declarative record schemas driving the binary codec.

A schema is an ordered list of (name, field type) pairs. Field types are:

  - a Primitive tag (BYTE, WORD, DWORD, INT, FLOAT, FLOC, ASCF, UTF, STR_REF)
  - Vec(element, count=DWORD): count-prefixed homogeneous vector
  - another RecordSchema: a nested record

Decoded records are plain dicts keyed by field name. Field order and widths
are reproduced exactly on encode (no padding, no alignment), so decoding and
re-encoding an untouched record yields the same bytes.

Entity code only declares schemas and converts dicts to domain objects; it
never touches the byte cursor.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Union

from l2dat.models.errors import DatError, MalformedField
from l2dat.parser.binary_reader import BinaryReader
from l2dat.parser.binary_writer import BinaryWriter


class Primitive(Enum):
    """Wire tags for scalar fields."""

    BYTE = "BYTE"
    WORD = "WORD"
    DWORD = "DWORD"
    INT = "INT"
    FLOAT = "FLOAT"
    FLOC = "FLOC"          # x, y, z float32
    ASCF = "ASCF"          # u16 length + ASCII
    UTF = "UTF"            # u32 length + UTF-8, used by the string-table file
    STR_REF = "STR_REF"    # u32 index into the global string table

    @property
    def method(self) -> str:
        """Name of the BinaryReader/BinaryWriter method for this tag."""
        return _METHODS[self]


_METHODS: dict[Primitive, str] = {
    Primitive.BYTE: "uint8",
    Primitive.WORD: "uint16",
    Primitive.DWORD: "uint32",
    Primitive.INT: "int32",
    Primitive.FLOAT: "float32",
    Primitive.FLOC: "floc",
    Primitive.ASCF: "ascf",
    Primitive.UTF: "utf",
    Primitive.STR_REF: "uint32",
}

BYTE = Primitive.BYTE
WORD = Primitive.WORD
DWORD = Primitive.DWORD
INT = Primitive.INT
FLOAT = Primitive.FLOAT
FLOC = Primitive.FLOC
ASCF = Primitive.ASCF
UTF = Primitive.UTF
STR_REF = Primitive.STR_REF

_COUNT_TAGS = (BYTE, WORD, DWORD)


@dataclass(frozen=True, slots=True)
class Vec:
    """Count-prefixed vector. The count width is fixed by its tag."""
    element: "FieldType"
    count: Primitive = DWORD

    def __post_init__(self) -> None:
        if self.count not in _COUNT_TAGS:
            raise ValueError(f"Vector count must be BYTE, WORD or DWORD, got {self.count.name}")


@dataclass(frozen=True, slots=True)
class RecordSchema:
    """Ordered, fixed list of typed fields for one record kind."""
    name: str
    fields: tuple[tuple[str, "FieldType"], ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "fields", tuple(self.fields))
        names = [field_name for field_name, _ in self.fields]
        if len(set(names)) != len(names):
            raise ValueError(f"Duplicate field name in schema {self.name!r}")

    @property
    def field_names(self) -> tuple[str, ...]:
        return tuple(field_name for field_name, _ in self.fields)

    def decode_record(self, reader: BinaryReader, path: str = "") -> dict[str, Any]:
        """Decode one record, failing fast on the first bad field."""
        record: dict[str, Any] = {}
        for field_name, ftype in self.fields:
            record[field_name] = _read_value(reader, ftype, _join(path, field_name))
        return record

    def write_record(self, writer: BinaryWriter, record: dict[str, Any],
                     path: str = "") -> None:
        for field_name, ftype in self.fields:
            field_path = _join(path, field_name)
            try:
                value = record[field_name]
            except KeyError:
                raise MalformedField(
                    f"Record for schema {self.name!r} has no field {field_name!r}",
                    field=field_path,
                    offset=writer.position,
                )
            _write_value(writer, ftype, value, field_path)

    def encode_record(self, record: dict[str, Any]) -> bytes:
        writer = BinaryWriter()
        self.write_record(writer, record)
        return writer.getvalue()


FieldType = Union[Primitive, Vec, RecordSchema]


def _join(path: str, name: str) -> str:
    return f"{path}.{name}" if path else name


def _read_value(reader: BinaryReader, ftype: FieldType, path: str) -> Any:
    if isinstance(ftype, RecordSchema):
        return ftype.decode_record(reader, path)

    start = reader.position
    if isinstance(ftype, Vec):
        try:
            count = getattr(reader, ftype.count.method)()
        except DatError as exc:
            raise exc.at(path, start)
        return [
            _read_value(reader, ftype.element, f"{path}[{i}]")
            for i in range(count)
        ]

    try:
        return getattr(reader, ftype.method)()
    except DatError as exc:
        raise exc.at(path, start)


def _write_value(writer: BinaryWriter, ftype: FieldType, value: Any, path: str) -> None:
    if isinstance(ftype, RecordSchema):
        if not isinstance(value, dict):
            raise MalformedField(
                f"Nested record {ftype.name!r} must be a dict, got {type(value).__name__}",
                field=path,
                offset=writer.position,
            )
        ftype.write_record(writer, value, path)
        return

    start = writer.position
    if isinstance(ftype, Vec):
        if not isinstance(value, (list, tuple)):
            raise MalformedField(
                f"Vector field needs a list, got {type(value).__name__}",
                field=path,
                offset=start,
            )
        try:
            getattr(writer, ftype.count.method)(len(value))
        except DatError as exc:
            raise exc.at(path, start)
        for i, element in enumerate(value):
            _write_value(writer, ftype.element, element, f"{path}[{i}]")
        return

    try:
        getattr(writer, ftype.method)(value)
    except DatError as exc:
        raise exc.at(path, start)
