"""GBA BIOS LZ77 (type 0x10) decompression."""

from __future__ import annotations

from .errors import DecompressionError

LZ77_MAGIC = 0x10


def decompress(data: bytes, offset: int = 0) -> bytes:
    """Decompress the LZ77 stream starting at ``offset`` in ``data``.

    Only as many input bytes as the stream needs are consumed; anything after
    it in ``data`` is ignored.
    """

    if offset < 0 or offset + 4 > len(data):
        raise DecompressionError("stream header out of range", "decompress LZ77", offset)
    if data[offset] != LZ77_MAGIC:
        raise DecompressionError(
            f"bad magic 0x{data[offset]:02x}, expected 0x{LZ77_MAGIC:02x}", "decompress LZ77", offset
        )

    size = int.from_bytes(data[offset + 1:offset + 4], "little")
    out = bytearray()
    src = offset + 4

    while len(out) < size:
        if src >= len(data):
            raise DecompressionError(
                f"stream truncated after {len(out)} of {size} bytes", "decompress LZ77", offset
            )
        flags = data[src]
        src += 1

        for bit in range(8):
            if len(out) >= size:
                break
            if not flags & (0x80 >> bit):
                if src >= len(data):
                    raise DecompressionError("literal past end of input", "decompress LZ77", offset)
                out.append(data[src])
                src += 1
                continue

            if src + 1 >= len(data):
                raise DecompressionError("back-reference past end of input", "decompress LZ77", offset)
            b0 = data[src]
            b1 = data[src + 1]
            src += 2
            length = (b0 >> 4) + 3
            distance = (((b0 & 0xF) << 8) | b1) + 1
            if distance > len(out):
                raise DecompressionError(
                    f"back-reference distance {distance} before start of output ({len(out)} bytes)",
                    "decompress LZ77",
                    offset,
                )
            # Byte-at-a-time so overlapping references repeat correctly.
            for _ in range(length):
                out.append(out[-distance])

    del out[size:]
    return bytes(out)
