"""Core data model for ROM sprite extraction."""

__all__ = [
    "Color",
    "Flip",
    "OAMEntry",
    "FrameAction",
    "Frame",
    "Animation",
    "SpriteSlot",
    "Rect",
    "Point",
    "PlacedFrame",
    "Atlas",
    "DumpSettings",
    "DumpReport",
]

from dataclasses import dataclass, field
from enum import IntEnum, IntFlag
from pathlib import Path
from typing import Optional

import numpy as np

Color = tuple[int, int, int, int]
TRANSPARENT: Color = (0, 0, 0, 0)


class Flip(IntFlag):
    """OAM flip bits as stored in the high nibble of the size byte."""

    NONE = 0x0
    H = 0x4
    V = 0x8
    BOTH = 0xC


class FrameAction(IntEnum):
    """What the player does after a frame's delay has elapsed."""

    NEXT = 0x00
    STOP = 0x80
    LOOP = 0xC0

    @property
    def control_code(self) -> int:
        """Code written into the animation-control chunk."""

        return _CONTROL_CODES[self]


_CONTROL_CODES = {FrameAction.NEXT: 0, FrameAction.LOOP: 1, FrameAction.STOP: 2}


@dataclass(frozen=True)
class OAMEntry:
    """One hardware sprite placement record."""

    tile_index: int
    x: int
    y: int
    width_tiles: int
    height_tiles: int
    palette_offset: int
    flip: Flip = Flip.NONE

    @property
    def tile_count(self) -> int:
        return self.width_tiles * self.height_tiles


@dataclass(frozen=True)
class Frame:
    """A single decoded sprite frame."""

    tiles: tuple[np.ndarray, ...]
    palette: tuple[Color, ...]
    delay: int
    action: FrameAction
    oam_entries: tuple[OAMEntry, ...]


@dataclass(frozen=True)
class Animation:
    """Frames up to and including the first non-NEXT action."""

    frames: tuple[Frame, ...]

    @property
    def playback(self) -> FrameAction:
        return self.frames[-1].action if self.frames else FrameAction.STOP


@dataclass(frozen=True)
class SpriteSlot:
    """All animations decoded for one entry of the sprite table."""

    index: int
    animations: tuple[Animation, ...]

    def iter_frames(self):
        for animation_index, animation in enumerate(self.animations):
            for frame in animation.frames:
                yield animation_index, frame


@dataclass(frozen=True)
class Point:
    x: int
    y: int


@dataclass(frozen=True)
class Rect:
    """Half-open pixel rectangle."""

    left: int
    top: int
    right: int
    bottom: int

    @property
    def width(self) -> int:
        return self.right - self.left

    @property
    def height(self) -> int:
        return self.bottom - self.top

    @property
    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0

    def translate(self, dx: int, dy: int) -> "Rect":
        return Rect(self.left + dx, self.top + dy, self.right + dx, self.bottom + dy)

    def overlaps(self, other: "Rect") -> bool:
        if self.is_empty or other.is_empty:
            return False
        return (
            self.left < other.right
            and other.left < self.right
            and self.top < other.bottom
            and other.top < self.bottom
        )


EMPTY_RECT = Rect(0, 0, 0, 0)


@dataclass(frozen=True)
class PlacedFrame:
    """Atlas placement plus the timing a renderer needs to play it back."""

    bbox: Rect
    origin: Point
    delay: int
    action: FrameAction
    animation_index: int = 0


@dataclass
class Atlas:
    """Trimmed sprite sheet for one slot."""

    pixels: np.ndarray
    palette: tuple[Color, ...]
    frames: list[PlacedFrame]

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])


@dataclass
class DumpSettings:
    """User-configurable settings for a sprite dump run."""

    rom_path: Path
    output_dir: Path = Path("sprites")
    slots: Optional[list[int]] = None
    workers: Optional[int] = None
    write_manifest: bool = False


@dataclass
class DumpReport:
    """Outcome of a dump run."""

    decoded: int = 0
    skipped: list[int] = field(default_factory=list)
    written: list[Path] = field(default_factory=list)
