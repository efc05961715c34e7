"""Decoding the sprite table and fanning slot output across a worker pool."""

from __future__ import annotations

import logging
import os
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Iterable, Optional

from . import DumpReport, DumpSettings, SpriteSlot
from .animation_decoder import read_sprite_slot
from .atlas_packer import build_atlas
from .binary_reader import BinaryReader
from .errors import SpriteDecodeError
from .manifest_writer import write_manifest
from .metadata_muxer import write_atlas
from .rom_info import RomInfo, load_rom_info, read_rom_bytes
from ..utils import file_tools, validators

logger = logging.getLogger(__name__)

TABLE_ENTRY_SIZE = 4


class ProgressCounter:
    """Thread-safe counter that logs as slots finish."""

    def __init__(self, total: int, label: str):
        self.total = total
        self.label = label
        self._done = 0
        self._lock = threading.Lock()

    @property
    def done(self) -> int:
        return self._done

    def advance(self, slot_index: int) -> int:
        with self._lock:
            self._done += 1
            done = self._done
        logger.info("%s: %04d (%s/%s)", self.label, slot_index, done, self.total)
        return done


def decode_sprite_table(
    rom: bytes, info: RomInfo, slots: Optional[Iterable[int]] = None
) -> tuple[list[SpriteSlot], list[int]]:
    """Decode the requested table entries, skipping any that fail to decode.

    Returns the decoded slots and the indices that were skipped.
    """

    indices = list(range(info.count)) if slots is None else list(slots)
    progress = ProgressCounter(len(indices), "decode")
    reader = BinaryReader(rom)
    decoded: list[SpriteSlot] = []
    skipped: list[int] = []

    for index in indices:
        try:
            reader.seek(info.offset + index * TABLE_ENTRY_SIZE, "seek to sprite table entry")
            raw_pointer = reader.u32("read sprite pointer")
            decoded.append(read_sprite_slot(rom, raw_pointer, index))
        except SpriteDecodeError as exc:
            logger.warning("error reading %04d: %s", index, exc)
            skipped.append(index)
        finally:
            progress.advance(index)
    return decoded, skipped


def process_slot(
    slot: SpriteSlot, output_dir: Path, write_manifest_file: bool = False, rom_path: Optional[Path] = None
) -> list[Path]:
    """Render, pack and write one slot; empty slots produce nothing."""

    atlas = build_atlas(slot)
    if atlas is None:
        logger.info("Sprite %04d is empty, skipping", slot.index)
        return []

    sheet_path = write_atlas(atlas, file_tools.slot_output_path(output_dir, slot.index))
    written = [sheet_path]
    if write_manifest_file:
        written.append(write_manifest(atlas, slot, sheet_path, rom_path))
    return written


def dump_slots(
    slots: list[SpriteSlot],
    output_dir: Path,
    workers: Optional[int] = None,
    write_manifest_file: bool = False,
    rom_path: Optional[Path] = None,
) -> list[Path]:
    """Process slots on a bounded pool; the first worker failure is raised after all work finishes."""

    file_tools.ensure_directory(output_dir)
    max_workers = workers or os.cpu_count() or 1
    progress = ProgressCounter(len(slots), "dump")
    written: list[Path] = []
    first_error: Optional[BaseException] = None

    with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="dump") as executor:
        futures = {
            executor.submit(process_slot, slot, output_dir, write_manifest_file, rom_path): slot for slot in slots
        }
        for future in as_completed(futures):
            slot = futures[future]
            progress.advance(slot.index)
            try:
                written.extend(future.result())
            except Exception as exc:
                logger.error("Failed to dump sprite %04d: %s", slot.index, exc)
                if first_error is None:
                    first_error = exc

    if first_error is not None:
        raise first_error
    return sorted(written)


def run_dump(settings: DumpSettings) -> DumpReport:
    """Read the ROM named in ``settings`` and dump its sprite sheets."""

    rom_path = validators.validate_rom_path(settings.rom_path)
    workers = validators.validate_workers(settings.workers)
    rom = read_rom_bytes(rom_path)
    info = load_rom_info(rom)
    requested = validators.validate_slots(settings.slots, info.count)

    slots, skipped = decode_sprite_table(rom, info, requested)
    logger.info("Decoded %s sprites, skipped %s", len(slots), len(skipped))

    written = dump_slots(slots, settings.output_dir, workers, settings.write_manifest, rom_path)
    return DumpReport(decoded=len(slots), skipped=skipped, written=written)
