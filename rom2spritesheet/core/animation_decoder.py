"""Sequencing frame records into animations and whole sprite slots."""

from __future__ import annotations

import logging

from . import Animation, Frame, FrameAction, SpriteSlot
from .binary_reader import BinaryReader
from .errors import SpriteDecodeError
from .frame_decoder import read_frame
from .pointers import SpriteSource, open_sprite

logger = logging.getLogger(__name__)

ANIMATION_SET_HEADER_SKIP = 3


def read_animation(reader: BinaryReader, source: SpriteSource) -> Animation:
    """Read one animation pointer at the cursor and decode the frames it points at.

    Decoding stops after the first frame whose action is not NEXT. Running off
    the end of the buffer before that is a decode error.
    """

    animation_ptr = reader.u32("read animation pointer")
    target = source.resolve(animation_ptr, "seek to animation")

    frames: list[Frame] = []
    with reader.peek_at(target, "seek to animation"):
        while True:
            try:
                frame = read_frame(reader, source)
            except SpriteDecodeError as exc:
                raise exc.within(f"read frame {len(frames)}", animation_ptr) from exc
            frames.append(frame)
            if frame.action is not FrameAction.NEXT:
                break
    return Animation(frames=tuple(frames))


def read_animation_set(source: SpriteSource) -> list[Animation]:
    reader = source.reader()
    reader.skip(ANIMATION_SET_HEADER_SKIP, "skip animation set header")
    count = reader.u8("read animation count")

    animations = []
    for i in range(count):
        try:
            animations.append(read_animation(reader, source))
        except SpriteDecodeError as exc:
            raise exc.within(f"read animation {i}", source.base) from exc
    return animations


def read_sprite_slot(rom: bytes, raw_pointer: int, index: int) -> SpriteSlot:
    """Decode every animation of the sprite a table entry points at."""

    try:
        source = open_sprite(rom, raw_pointer)
        animations = read_animation_set(source)
    except SpriteDecodeError as exc:
        raise exc.within(f"read sprite {index:04d}", raw_pointer) from exc
    logger.debug("Sprite %04d: %s animations", index, len(animations))
    return SpriteSlot(index=index, animations=tuple(animations))
