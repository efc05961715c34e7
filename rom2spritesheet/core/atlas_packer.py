"""Trimming rendered frames and packing them into one sprite sheet per slot."""

from __future__ import annotations

import logging
from typing import Iterable, Optional

import numpy as np

from . import EMPTY_RECT, Atlas, Color, Frame, PlacedFrame, Point, Rect, SpriteSlot
from .compositor import draw_over, render_frame

logger = logging.getLogger(__name__)

ATLAS_SIZE = 2048


def find_trim(pixels: np.ndarray) -> Rect:
    """Tightest rectangle around the non-zero pixels; ``EMPTY_RECT`` if there are none."""

    filled = pixels != 0
    rows = np.flatnonzero(filled.any(axis=1))
    if rows.size == 0:
        return EMPTY_RECT
    cols = np.flatnonzero(filled.any(axis=0))
    return Rect(int(cols[0]), int(rows[0]), int(cols[-1]) + 1, int(rows[-1]) + 1)


class AtlasPacker:
    """Left-to-right shelf packer that wraps when a row runs out of width."""

    def __init__(self, size: int = ATLAS_SIZE):
        self.size = size
        self.canvas = np.zeros((size, size), dtype=np.uint8)
        self.placed: list[PlacedFrame] = []
        self.palette: Optional[tuple[Color, ...]] = None
        self._left = 0
        self._top = 0

    def add(self, pixels: np.ndarray, frame: Frame, animation_index: int = 0) -> PlacedFrame:
        """Place one rendered frame at the cursor and advance it."""

        self.palette = frame.palette
        trim = find_trim(pixels)
        origin = Point(pixels.shape[1] // 2 - trim.left, pixels.shape[0] // 2 - trim.top)

        if self._left + trim.width > self.size:
            self._left = 0
            self._top = find_trim(self.canvas).bottom + 1

        bbox = Rect(self._left, self._top, self._left + trim.width, self._top + trim.height)
        if bbox.right > self.size or bbox.bottom > self.size:
            logger.warning(
                "Frame %s at %s runs past the %spx atlas and is clipped; frames placed after it overlap",
                len(self.placed),
                bbox,
                self.size,
            )
        # Once the bottom edge is reached, every later wrap lands on the same row.
        overlapped = [i for i, earlier in enumerate(self.placed) if bbox.overlaps(earlier.bbox)]
        if overlapped:
            logger.warning(
                "Frame %s at %s overlaps earlier frames %s; the atlas is full", len(self.placed), bbox, overlapped
            )
        if not trim.is_empty:
            draw_over(self.canvas, pixels[trim.top:trim.bottom, trim.left:trim.right], bbox.left, bbox.top)

        placed = PlacedFrame(
            bbox=bbox, origin=origin, delay=frame.delay, action=frame.action, animation_index=animation_index
        )
        self.placed.append(placed)
        self._left += trim.width + 1
        return placed

    def finish(self) -> Optional[Atlas]:
        """Trim the sheet to its occupied area, or ``None`` if nothing was drawn."""

        if not self.palette:
            return None
        occupied = find_trim(self.canvas)
        if occupied.is_empty:
            return None

        pixels = self.canvas[occupied.top:occupied.bottom, occupied.left:occupied.right].copy()
        frames = [
            PlacedFrame(
                bbox=placed.bbox.translate(-occupied.left, -occupied.top),
                origin=placed.origin,
                delay=placed.delay,
                action=placed.action,
                animation_index=placed.animation_index,
            )
            for placed in self.placed
        ]
        return Atlas(pixels=pixels, palette=self.palette, frames=frames)


def pack_frames(items: Iterable[tuple[int, Frame]], size: int = ATLAS_SIZE) -> Optional[Atlas]:
    packer = AtlasPacker(size)
    for animation_index, frame in items:
        packer.add(render_frame(frame), frame, animation_index)
    return packer.finish()


def build_atlas(slot: SpriteSlot) -> Optional[Atlas]:
    """Render and pack every frame of a slot in animation order."""

    atlas = pack_frames(slot.iter_frames())
    if atlas is None:
        logger.debug("Sprite %04d has no visible pixels", slot.index)
    return atlas
