"""Command-line entry point for ROM sprite dumping."""

import argparse
import logging
import sys
from pathlib import Path

from rom2spritesheet.core import DumpSettings
from rom2spritesheet.core.dump_scheduler import run_dump
from rom2spritesheet.core.errors import InvalidRomError, ProcessingError, UnsupportedRomError, ValidationError
from rom2spritesheet.core.rom_info import find_rom_info, read_rom_bytes, read_rom_header
from rom2spritesheet.utils import validators

logger = logging.getLogger("rom2sprite")


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="[%(levelname)s] %(name)s: %(message)s",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rom2sprite",
        description="Dump sprite sheets with animation metadata from a GBA ROM.",
    )
    parser.add_argument("rom", type=Path, help="Path to the ROM image")
    parser.add_argument(
        "output",
        type=Path,
        nargs="?",
        default=Path("sprites"),
        help="Directory for the sprite sheets (default: sprites)",
    )
    parser.add_argument(
        "--slot",
        dest="slots",
        type=validators.parse_slot,
        action="append",
        metavar="N",
        help="Only dump this sprite table entry (repeatable, decimal or 0x hex)",
    )
    parser.add_argument(
        "--workers",
        type=int,
        help="Number of sheets written in parallel (default: CPU count)",
    )
    parser.add_argument(
        "--manifest",
        action="store_true",
        help="Also write a JSON manifest next to each sheet",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show the ROM header and sprite table without writing anything",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


def _describe_rom(rom_path: Path) -> int:
    data = read_rom_bytes(validators.validate_rom_path(rom_path))
    header = read_rom_header(data)
    print(f"Title: {header.title}")
    print(f"ROM ID: {header.rom_id}")
    info = find_rom_info(header.rom_id)
    if info is None:
        print("Sprite table: unsupported game")
        return 2
    print(f"Sprite table: 0x{info.offset:08X}, {info.count} entries")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    try:
        if args.dry_run:
            return _describe_rom(args.rom)

        settings = DumpSettings(
            rom_path=args.rom,
            output_dir=args.output,
            slots=args.slots,
            workers=args.workers,
            write_manifest=args.manifest,
        )
        report = run_dump(settings)
    except (InvalidRomError, UnsupportedRomError, ValidationError) as exc:
        logger.error("%s", exc)
        return 2
    except (ProcessingError, OSError) as exc:
        logger.error("Dump failed: %s", exc)
        return 1

    logger.info(
        "Done: %s sheets written, %s sprites decoded, %s skipped",
        sum(1 for path in report.written if path.suffix == ".png"),
        report.decoded,
        len(report.skipped),
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
