"""Append-only binary writer mirroring BinaryReader's typed methods."""

import struct

from l2dat.models.errors import MalformedField, ValueOutOfRange


_UINT_LIMITS = {1: 0xFF, 2: 0xFFFF, 4: 0xFFFF_FFFF}


class BinaryWriter:
    """Accumulates little-endian encoded values into a growing buffer.

    Every method range-checks its input against the wire width and raises
    ValueOutOfRange instead of letting struct wrap or truncate silently. A
    value of the wrong Python type is a MalformedField.
    """

    __slots__ = ("_buf",)

    def __init__(self) -> None:
        self._buf = bytearray()

    @property
    def position(self) -> int:
        return len(self._buf)

    def getvalue(self) -> bytes:
        return bytes(self._buf)

    def _uint(self, value: int, width: int, fmt: str) -> None:
        limit = _UINT_LIMITS[width]
        if not isinstance(value, int) or value < 0 or value > limit:
            raise ValueOutOfRange(
                f"{value!r} does not fit an unsigned {width * 8}-bit field",
                offset=self.position,
            )
        self._buf += struct.pack(fmt, value)

    def uint8(self, value: int) -> None:
        self._uint(value, 1, "<B")

    def uint16(self, value: int) -> None:
        self._uint(value, 2, "<H")

    def uint32(self, value: int) -> None:
        self._uint(value, 4, "<I")

    def int32(self, value: int) -> None:
        if not isinstance(value, int) or not -0x8000_0000 <= value <= 0x7FFF_FFFF:
            raise ValueOutOfRange(
                f"{value!r} does not fit a signed 32-bit field",
                offset=self.position,
            )
        self._buf += struct.pack("<i", value)

    def float32(self, value: float) -> None:
        try:
            self._buf += struct.pack("<f", value)
        except (OverflowError, struct.error) as exc:
            raise ValueOutOfRange(
                f"{value!r} does not fit a 32-bit float field: {exc}",
                offset=self.position,
            )

    def _require_type(self, value, expected: type | tuple[type, ...], what: str) -> None:
        if not isinstance(value, expected):
            raise MalformedField(
                f"Expected {what}, got {type(value).__name__}",
                offset=self.position,
            )

    def floc(self, value: tuple[float, float, float]) -> None:
        self._require_type(value, (tuple, list), "an (x, y, z) position")
        if len(value) != 3:
            raise ValueOutOfRange(
                f"Position needs exactly 3 components, got {len(value)}",
                offset=self.position,
            )
        for component in value:
            self.float32(component)

    def ascf(self, value: str) -> None:
        """Write a u16-length-prefixed ASCII string (no terminator)."""
        self._require_type(value, str, "text")
        try:
            raw = value.encode("ascii")
        except UnicodeEncodeError:
            raise ValueOutOfRange(
                f"{value!r} is not representable as ASCII",
                offset=self.position,
            )
        self.uint16(len(raw))
        self._buf += raw

    def utf(self, value: str) -> None:
        """Write a u32-length-prefixed UTF-8 string (file-table variant)."""
        self._require_type(value, str, "text")
        raw = value.encode("utf-8")
        self.uint32(len(raw))
        self._buf += raw
