"""Tests for BinaryWriter range checks and byte layout."""

import struct

import pytest

from l2dat.models.errors import MalformedField, ValueOutOfRange
from l2dat.parser.binary_reader import BinaryReader
from l2dat.parser.binary_writer import BinaryWriter


def test_little_endian_layout():
    w = BinaryWriter()
    w.uint8(0xAB)
    w.uint16(0x1234)
    w.uint32(0xDEADBEEF)
    w.int32(-2)
    assert w.getvalue() == struct.pack("<BHIi", 0xAB, 0x1234, 0xDEADBEEF, -2)
    assert w.position == 11


def test_strings_are_length_prefixed():
    w = BinaryWriter()
    w.ascf("Sword")
    w.utf("Меч")
    raw = "Меч".encode("utf-8")
    assert w.getvalue() == (
        struct.pack("<H", 5) + b"Sword" + struct.pack("<I", len(raw)) + raw
    )


def test_floc_writes_three_floats():
    w = BinaryWriter()
    w.floc((1.5, 0.0, -3.0))
    assert w.getvalue() == struct.pack("<fff", 1.5, 0.0, -3.0)


def test_written_values_read_back():
    w = BinaryWriter()
    w.uint16(7)
    w.ascf("abc")
    w.float32(0.5)
    r = BinaryReader(w.getvalue())
    assert r.uint16() == 7
    assert r.ascf() == "abc"
    assert r.float32() == 0.5


@pytest.mark.parametrize(
    "method, value",
    [
        ("uint8", 256),
        ("uint8", -1),
        ("uint16", 0x10000),
        ("uint32", 0x1_0000_0000),
        ("int32", 0x8000_0000),
        ("int32", -0x8000_0001),
    ],
)
def test_out_of_range_integers(method, value):
    w = BinaryWriter()
    with pytest.raises(ValueOutOfRange):
        getattr(w, method)(value)
    assert w.getvalue() == b""


def test_float_overflow():
    with pytest.raises(ValueOutOfRange):
        BinaryWriter().float32(1e300)


def test_ascf_rejects_non_ascii():
    w = BinaryWriter()
    w.uint8(1)
    with pytest.raises(ValueOutOfRange, match="ASCII") as excinfo:
        w.ascf("épée")
    assert excinfo.value.offset == 1


def test_floc_needs_three_components():
    with pytest.raises(ValueOutOfRange, match="3 components"):
        BinaryWriter().floc((1.0, 2.0))


@pytest.mark.parametrize("method", ["ascf", "utf"])
def test_strings_reject_non_text(method):
    w = BinaryWriter()
    w.uint16(1)
    with pytest.raises(MalformedField, match="got NoneType") as excinfo:
        getattr(w, method)(None)
    assert excinfo.value.offset == 2


def test_floc_rejects_non_sequence():
    with pytest.raises(MalformedField, match="position"):
        BinaryWriter().floc(None)


def test_float_rejects_non_number():
    with pytest.raises(ValueOutOfRange):
        BinaryWriter().float32("fast")
