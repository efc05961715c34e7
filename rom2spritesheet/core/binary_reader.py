"""Little-endian cursor over an in-memory ROM or decompressed buffer."""

from __future__ import annotations

import struct
from contextlib import contextmanager
from typing import Iterator

from .errors import PointerRangeError, ShortReadError

_U16 = struct.Struct("<H")
_U32 = struct.Struct("<I")


class BinaryReader:
    """Seekable reader that raises typed decode errors instead of returning short data."""

    def __init__(self, data: bytes, position: int = 0):
        self._data = data
        self._position = 0
        self.seek(position, "open buffer")

    def tell(self) -> int:
        return self._position

    def seek(self, offset: int, operation: str = "seek") -> None:
        if offset < 0 or offset > len(self._data):
            raise PointerRangeError(
                f"offset outside buffer of {len(self._data)} bytes", operation, offset & 0xFFFFFFFF
            )
        self._position = offset

    @contextmanager
    def peek_at(self, offset: int, operation: str = "seek") -> Iterator["BinaryReader"]:
        """Temporarily move the cursor, restoring it afterwards."""

        saved = self._position
        self.seek(offset, operation)
        try:
            yield self
        finally:
            self._position = saved

    def read(self, size: int, operation: str = "read") -> bytes:
        end = self._position + size
        if end > len(self._data):
            raise ShortReadError(
                f"wanted {size} bytes, {len(self._data) - self._position} available",
                operation,
                self._position,
            )
        chunk = self._data[self._position:end]
        self._position = end
        return chunk

    def read_upto(self, size: int) -> bytes:
        """Read at most ``size`` bytes; fewer at the end of the buffer."""

        chunk = self._data[self._position:self._position + size]
        self._position += len(chunk)
        return chunk

    def skip(self, size: int, operation: str = "skip") -> None:
        self.read(size, operation)

    def u8(self, operation: str = "read u8") -> int:
        return self.read(1, operation)[0]

    def i8(self, operation: str = "read i8") -> int:
        value = self.u8(operation)
        return value - 0x100 if value & 0x80 else value

    def u16(self, operation: str = "read u16") -> int:
        return _U16.unpack(self.read(2, operation))[0]

    def u32(self, operation: str = "read u32") -> int:
        return _U32.unpack(self.read(4, operation))[0]
