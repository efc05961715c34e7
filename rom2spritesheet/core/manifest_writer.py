"""Manifest writing logic."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from . import Atlas, SpriteSlot
from ..utils import file_tools

logger = logging.getLogger(__name__)


def write_manifest(atlas: Atlas, slot: SpriteSlot, sheet_path: Path, rom_path: Path | None = None) -> Path:
    """Create a JSON manifest describing frame placements and timing."""

    manifest_path = sheet_path.with_suffix(".json")
    file_tools.ensure_directory(manifest_path.parent)

    frames_payload = {}
    for index, placed in enumerate(atlas.frames):
        frames_payload[f"frame_{index:04d}"] = {
            "animation": placed.animation_index,
            "x": placed.bbox.left,
            "y": placed.bbox.top,
            "width": placed.bbox.width,
            "height": placed.bbox.height,
            "origin_x": placed.origin.x,
            "origin_y": placed.origin.y,
            "delay": placed.delay,
            "action": placed.action.name.lower(),
        }

    manifest = {
        "source": str(rom_path) if rom_path else None,
        "slot": slot.index,
        "frames": frames_payload,
        "meta": {
            "animations": [animation.playback.name.lower() for animation in slot.animations],
            "width": atlas.width,
            "height": atlas.height,
            "colors": len(atlas.palette),
            "spritesheet": sheet_path.name,
        },
    }

    manifest_path.write_text(json.dumps(manifest, indent=2), encoding="utf-8")
    logger.info("Wrote manifest to %s", manifest_path)
    return manifest_path
