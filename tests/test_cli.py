import pytest

from rom2sprite import cli

from rom_builder import FrameSpec, build_rom, build_sprite


def _write_rom(tmp_path, rom_id="BR6E"):
    path = tmp_path / "game.gba"
    path.write_bytes(build_rom([build_sprite([[FrameSpec()]])], rom_id=rom_id).data)
    return path


def test_build_parser_creates_arguments():
    parser = cli.build_parser()
    args = parser.parse_args(
        ["game.gba", "out", "--slot", "3", "--slot", "0x10", "--workers", "2", "--manifest", "--dry-run"]
    )
    assert args.rom.name == "game.gba"
    assert args.output.name == "out"
    assert args.slots == [3, 16]
    assert args.workers == 2
    assert args.manifest is True
    assert args.dry_run is True


def test_parser_defaults():
    args = cli.build_parser().parse_args(["game.gba"])
    assert args.output.name == "sprites"
    assert args.slots is None
    assert args.workers is None
    assert args.manifest is False


def test_bad_slot_is_a_usage_error():
    with pytest.raises(SystemExit) as excinfo:
        cli.build_parser().parse_args(["game.gba", "--slot", "-1"])
    assert excinfo.value.code == 2


def test_main_dry_run_returns_zero(tmp_path, capsys):
    rom_path = _write_rom(tmp_path)
    assert cli.main([str(rom_path), str(tmp_path / "out"), "--dry-run"]) == 0
    printed = capsys.readouterr().out
    assert "Title: MEGAMAN6_FXX" in printed
    assert "ROM ID: BR6E" in printed
    assert "0x00031CEC, 815 entries" in printed
    assert not (tmp_path / "out").exists()


def test_main_dry_run_unsupported_game(tmp_path, capsys):
    rom_path = _write_rom(tmp_path, rom_id="ZZZZ")
    assert cli.main([str(rom_path), "--dry-run"]) == 2
    assert "unsupported game" in capsys.readouterr().out


def test_main_writes_sheets(tmp_path):
    rom_path = _write_rom(tmp_path)
    out = tmp_path / "out"
    assert cli.main([str(rom_path), str(out), "--slot", "0", "--manifest"]) == 0
    assert sorted(p.name for p in out.iterdir()) == ["0000.json", "0000.png"]


@pytest.mark.parametrize(
    "make_args",
    [
        lambda tmp: [str(tmp / "missing.gba")],
        lambda tmp: [str(_write_rom(tmp, rom_id="ZZZZ"))],
        lambda tmp: ["--workers", "0", str(_write_rom(tmp))],
        lambda tmp: ["--slot", "9999", str(_write_rom(tmp))],
    ],
)
def test_main_input_errors_return_two(tmp_path, make_args):
    assert cli.main(make_args(tmp_path) + [str(tmp_path / "out")]) == 2
    assert not (tmp_path / "out").exists()


def test_main_rejects_wrong_extension(tmp_path):
    rom_path = tmp_path / "game.txt"
    rom_path.write_bytes(bytes(0x200))
    assert cli.main([str(rom_path)]) == 2
