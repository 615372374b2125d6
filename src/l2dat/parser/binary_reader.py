"""Low-level binary reader with typed read methods and a moving cursor."""

import struct

from l2dat.models.errors import MalformedField, TruncatedInput


class BinaryReader:
    """Wraps a bytes buffer with typed reads and a moving cursor.

    Every read checks the end boundary first, so a short buffer raises
    TruncatedInput instead of returning partial data.
    """

    __slots__ = ("_data", "_pos", "_end")

    def __init__(self, data: bytes) -> None:
        self._data = data
        self._pos = 0
        self._end = len(data)

    @property
    def position(self) -> int:
        return self._pos

    @property
    def remaining(self) -> int:
        return self._end - self._pos

    def _read(self, size: int) -> bytes:
        if self._pos + size > self._end:
            raise TruncatedInput(
                f"Read of {size} bytes at offset {self._pos} "
                f"would exceed boundary at {self._end}",
                offset=self._pos,
            )
        chunk = self._data[self._pos : self._pos + size]
        self._pos += size
        return chunk

    def uint8(self) -> int:
        return self._read(1)[0]

    def uint16(self) -> int:
        return struct.unpack_from("<H", self._read(2))[0]

    def uint32(self) -> int:
        return struct.unpack_from("<I", self._read(4))[0]

    def int32(self) -> int:
        return struct.unpack_from("<i", self._read(4))[0]

    def float32(self) -> float:
        return struct.unpack_from("<f", self._read(4))[0]

    def floc(self) -> tuple[float, float, float]:
        """Read a position triple (x, y, z) of float32."""
        return struct.unpack_from("<fff", self._read(12))

    def ascf(self) -> str:
        """Read a u16-length-prefixed ASCII string (no terminator)."""
        start = self._pos
        raw = self._read(self.uint16())
        try:
            return raw.decode("ascii")
        except UnicodeDecodeError:
            raise MalformedField(
                f"Non-ASCII byte in ASCF string starting at offset {start}",
                offset=start,
            )

    def utf(self) -> str:
        """Read a u32-length-prefixed UTF-8 string (file-table variant)."""
        start = self._pos
        raw = self._read(self.uint32())
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError:
            raise MalformedField(
                f"Invalid UTF-8 in string starting at offset {start}",
                offset=start,
            )
