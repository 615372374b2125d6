"""Tests for BinaryReader: synthetic bytes only, no client files needed."""

import struct

import pytest

from l2dat.models.errors import MalformedField, TruncatedInput
from l2dat.parser.binary_reader import BinaryReader


def test_uint8():
    r = BinaryReader(bytes([0x00, 0x7F, 0xFF]))
    assert r.uint8() == 0
    assert r.uint8() == 127
    assert r.uint8() == 255


def test_uint16():
    data = struct.pack("<HH", 0, 0xFFFF)
    r = BinaryReader(data)
    assert r.uint16() == 0
    assert r.uint16() == 65535


def test_uint32():
    data = struct.pack("<II", 42, 0xDEADBEEF)
    r = BinaryReader(data)
    assert r.uint32() == 42
    assert r.uint32() == 0xDEADBEEF


def test_int32():
    data = struct.pack("<ii", -1, 100)
    r = BinaryReader(data)
    assert r.int32() == -1
    assert r.int32() == 100


def test_float32():
    data = struct.pack("<f", 3.14)
    r = BinaryReader(data)
    assert abs(r.float32() - 3.14) < 0.001


def test_floc():
    r = BinaryReader(struct.pack("<fff", 1.0, -2.5, 100.0))
    assert r.floc() == (1.0, -2.5, 100.0)
    assert r.remaining == 0


def test_ascf():
    r = BinaryReader(struct.pack("<H", 5) + b"hello" + struct.pack("<H", 0))
    assert r.ascf() == "hello"
    assert r.ascf() == ""


def test_ascf_rejects_non_ascii():
    r = BinaryReader(struct.pack("<H", 2) + b"\xc3\xa9")
    with pytest.raises(MalformedField, match="Non-ASCII"):
        r.ascf()


def test_utf():
    raw = "Меч".encode("utf-8")
    r = BinaryReader(struct.pack("<I", len(raw)) + raw)
    assert r.utf() == "Меч"


def test_utf_invalid_bytes():
    r = BinaryReader(struct.pack("<I", 1) + b"\xff")
    with pytest.raises(MalformedField, match="Invalid UTF-8"):
        r.utf()


def test_string_length_past_end():
    r = BinaryReader(struct.pack("<H", 10) + b"abc")
    with pytest.raises(TruncatedInput, match="exceed boundary"):
        r.ascf()


def test_remaining_and_position():
    r = BinaryReader(b"abcdef")
    assert r.position == 0
    assert r.remaining == 6
    r.uint16()
    assert r.position == 2
    assert r.remaining == 4


def test_read_past_end():
    r = BinaryReader(b"\x01\x02")
    r.uint16()
    with pytest.raises(TruncatedInput, match="exceed boundary") as excinfo:
        r.uint16()
    assert excinfo.value.offset == 2


def test_floc_past_end():
    r = BinaryReader(struct.pack("<ff", 1.0, 2.0))
    with pytest.raises(ValueError, match="exceed boundary"):
        r.floc()
    assert r.position == 0
