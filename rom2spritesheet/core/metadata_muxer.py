"""Streaming PNG encode with animation metadata chunks spliced in.

Pillow encodes the atlas on a worker thread into a bounded in-memory pipe;
the calling thread reads the stream chunk by chunk and writes it out,
inserting the private chunks just before the first trigger chunk.
"""

from __future__ import annotations

import io
import logging
import queue
import struct
import threading
import zlib
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import BinaryIO, Iterable, Iterator, Optional

from PIL import Image

from . import Atlas, Color, PlacedFrame
from .compositor import MAX_IMAGE_COLORS, to_image
from .errors import ProcessingError

logger = logging.getLogger(__name__)

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"
DEFAULT_TRIGGERS = frozenset({b"IDAT"})
PIPE_DEPTH = 8
# Palette sheets are always written at 8 bits; smaller depths would truncate indices.
PNG_BIT_DEPTH = 8

OVERFLOW_PALETTE_TYPE = b"sPLT"
OVERFLOW_PALETTE_NAME = b"extra"
ANIMATION_CONTROL_TYPE = b"zTXt"
ANIMATION_CONTROL_KEYWORD = b"fctrl"
ANIMATION_CONTROL_METHOD = 0xFF
FRAME_RECORD = struct.Struct("<hhhhhhBB")

_CHUNK_HEADER = struct.Struct(">I4s")
_CRC = struct.Struct(">I")


class PipeClosed(Exception):
    """The reading side of a pipe went away."""


class BoundedPipe:
    """Single-producer, single-consumer byte pipe with a bounded buffer."""

    def __init__(self, depth: int = PIPE_DEPTH):
        self._queue: queue.Queue[Optional[bytes]] = queue.Queue(maxsize=depth)
        self._reader_closed = threading.Event()
        self._writer_error: Optional[BaseException] = None
        self._buffer = bytearray()
        self._eof = False

    def _put(self, item: Optional[bytes]) -> None:
        while True:
            if self._reader_closed.is_set():
                raise PipeClosed("pipe reader closed")
            try:
                self._queue.put(item, timeout=0.05)
                return
            except queue.Full:
                continue

    def write(self, data: bytes) -> None:
        if data:
            self._put(bytes(data))

    def close_writer(self, error: Optional[BaseException] = None) -> None:
        self._writer_error = error
        try:
            self._put(None)
        except PipeClosed:
            pass

    def close_reader(self) -> None:
        self._reader_closed.set()

    def read_exact(self, size: int) -> bytes:
        """Return exactly ``size`` bytes, or fewer only at end of stream."""

        while len(self._buffer) < size and not self._eof:
            item = self._queue.get()
            if item is None:
                self._eof = True
                if self._writer_error is not None:
                    raise ProcessingError(f"PNG encode failed: {self._writer_error}") from self._writer_error
            else:
                self._buffer.extend(item)
        data = bytes(self._buffer[:size])
        del self._buffer[:size]
        return data


class _PipeWriter(io.RawIOBase):
    """File-like adapter Pillow can save into."""

    def __init__(self, pipe: BoundedPipe):
        super().__init__()
        self._pipe = pipe

    def writable(self) -> bool:
        return True

    def write(self, data) -> int:
        self._pipe.write(bytes(data))
        return len(data)


def encode_png(image: Image.Image, pipe: BoundedPipe) -> None:
    """Producer: encode ``image`` into ``pipe`` and signal end of stream."""

    try:
        image.save(_PipeWriter(pipe), format="PNG", bits=PNG_BIT_DEPTH)
    except PipeClosed:
        logger.debug("PNG encoder stopped, reader went away")
        pipe.close_writer()
        return
    except Exception as exc:
        pipe.close_writer(exc)
        raise
    pipe.close_writer()


def iter_chunks(pipe: BoundedPipe) -> Iterator[tuple[bytes, bytes]]:
    """Yield ``(chunk_type, raw_chunk_bytes)`` from a PNG stream, checking CRCs."""

    signature = pipe.read_exact(len(PNG_SIGNATURE))
    if signature != PNG_SIGNATURE:
        raise ProcessingError("PNG stream has a bad signature")

    while True:
        header = pipe.read_exact(_CHUNK_HEADER.size)
        if not header:
            return
        if len(header) < _CHUNK_HEADER.size:
            raise ProcessingError("PNG stream ended inside a chunk header")
        length, chunk_type = _CHUNK_HEADER.unpack(header)
        body = pipe.read_exact(length + _CRC.size)
        if len(body) < length + _CRC.size:
            raise ProcessingError(f"PNG stream ended inside {chunk_type!r} chunk")
        (crc,) = _CRC.unpack(body[length:])
        if zlib.crc32(chunk_type + body[:length]) & 0xFFFFFFFF != crc:
            raise ProcessingError(f"CRC mismatch in {chunk_type!r} chunk")
        yield chunk_type, header + body
        if chunk_type == b"IEND":
            return


def make_chunk(chunk_type: bytes, data: bytes) -> bytes:
    return (
        _CHUNK_HEADER.pack(len(data), chunk_type)
        + data
        + _CRC.pack(zlib.crc32(chunk_type + data) & 0xFFFFFFFF)
    )


def overflow_palette_chunk(palette: tuple[Color, ...]) -> Optional[bytes]:
    """``sPLT`` chunk with the colors past index 255, or ``None`` if there are none."""

    extra = palette[MAX_IMAGE_COLORS:]
    if not extra:
        return None
    data = bytearray(OVERFLOW_PALETTE_NAME + b"\x00\x08")
    for r, g, b, a in extra:
        data.extend((r, g, b, a, 0, 0))
    return make_chunk(OVERFLOW_PALETTE_TYPE, bytes(data))


def pack_frame_record(frame: PlacedFrame) -> bytes:
    return FRAME_RECORD.pack(
        frame.bbox.left,
        frame.bbox.top,
        frame.bbox.right,
        frame.bbox.bottom,
        frame.origin.x,
        frame.origin.y,
        frame.delay & 0xFF,
        frame.action.control_code,
    )


def animation_control_chunk(frames: Iterable[PlacedFrame]) -> bytes:
    data = bytearray(ANIMATION_CONTROL_KEYWORD + b"\x00" + bytes([ANIMATION_CONTROL_METHOD]))
    for frame in frames:
        data.extend(pack_frame_record(frame))
    return make_chunk(ANIMATION_CONTROL_TYPE, bytes(data))


def metadata_chunks(atlas: Atlas) -> list[bytes]:
    chunks = []
    overflow = overflow_palette_chunk(atlas.palette)
    if overflow is not None:
        chunks.append(overflow)
    chunks.append(animation_control_chunk(atlas.frames))
    return chunks


def remux(pipe: BoundedPipe, out: BinaryIO, extra_chunks: list[bytes], triggers=DEFAULT_TRIGGERS) -> None:
    """Consumer: copy chunks to ``out``, inserting ``extra_chunks`` before the first trigger."""

    out.write(PNG_SIGNATURE)
    inserted = False
    for chunk_type, raw in iter_chunks(pipe):
        if not inserted and chunk_type in triggers:
            for extra in extra_chunks:
                out.write(extra)
            inserted = True
        out.write(raw)
    if not inserted:
        raise ProcessingError("PNG stream had no chunk to attach metadata to")


def write_png_with_metadata(
    image: Image.Image, extra_chunks: list[bytes], out: BinaryIO, triggers=DEFAULT_TRIGGERS
) -> None:
    """Run encoder and remuxer concurrently; the first failure on either side is raised."""

    pipe = BoundedPipe()
    with ThreadPoolExecutor(max_workers=1, thread_name_prefix="png-encode") as executor:
        encoder = executor.submit(encode_png, image, pipe)
        try:
            remux(pipe, out, extra_chunks, triggers)
        finally:
            pipe.close_reader()
        encoder.result()


def write_atlas(atlas: Atlas, path: Path, triggers=DEFAULT_TRIGGERS) -> Path:
    """Write ``atlas`` as a PNG carrying its animation metadata."""

    image = to_image(atlas.pixels, atlas.palette)
    try:
        with path.open("wb") as handle:
            write_png_with_metadata(image, metadata_chunks(atlas), handle, triggers)
    except Exception:
        path.unlink(missing_ok=True)
        raise
    logger.info("Wrote sprite sheet %s (%sx%s, %s frames)", path, atlas.width, atlas.height, len(atlas.frames))
    return path
