import pytest

from rom2spritesheet.core.errors import InvalidRomError, ValidationError
from rom2spritesheet.utils import file_tools, validators


def test_validate_rom_path(tmp_path):
    rom = tmp_path / "game.GBA"
    rom.write_bytes(bytes(0x100))
    assert validators.validate_rom_path(rom) == rom

    with pytest.raises(InvalidRomError, match="File not found"):
        validators.validate_rom_path(tmp_path / "nope.gba")
    with pytest.raises(InvalidRomError, match="Not a regular file"):
        validators.validate_rom_path(tmp_path)

    tiny = tmp_path / "tiny.gba"
    tiny.write_bytes(bytes(16))
    with pytest.raises(InvalidRomError, match="Too small"):
        validators.validate_rom_path(tiny)


def test_validate_slots_sorts_and_dedupes():
    assert validators.validate_slots(None, 10) is None
    assert validators.validate_slots([4, 1, 4], 10) == [1, 4]
    with pytest.raises(ValidationError):
        validators.validate_slots([10], 10)
    with pytest.raises(ValidationError, match="negative"):
        validators.validate_slots([-1, 2], 10)


def test_parse_slot():
    assert validators.parse_slot("42") == 42
    assert validators.parse_slot("0x2a") == 42
    with pytest.raises(ValidationError):
        validators.parse_slot("forty")


def test_validate_workers():
    assert validators.validate_workers(None) is None
    assert validators.validate_workers(3) == 3
    with pytest.raises(ValidationError):
        validators.validate_workers(0)


def test_slot_output_path(tmp_path):
    assert file_tools.slot_output_path(tmp_path, 7) == tmp_path / "0007.png"
    assert file_tools.slot_output_path(tmp_path, 1234, "json") == tmp_path / "1234.json"
    target = file_tools.ensure_directory(tmp_path / "a" / "b")
    assert target.is_dir()
