import numpy as np

from rom2spritesheet.core import Flip, Frame, FrameAction, OAMEntry
from rom2spritesheet.core.compositor import CANVAS_SIZE, apply_flips, draw_over, render_frame, to_image


def _tile(value, transparent_corner=False):
    tile = np.full((8, 8), value, dtype=np.uint8)
    if transparent_corner:
        tile[0, 0] = 0
    return tile


def _frame(entries, tiles, palette=()):
    return Frame(tiles=tuple(tiles), palette=tuple(palette), delay=1, action=FrameAction.STOP, oam_entries=tuple(entries))


def _entry(tile_index=0, x=0, y=0, w=1, h=1, bank=0, flip=Flip.NONE):
    return OAMEntry(tile_index, x, y, w, h, bank, flip)


def test_canvas_is_centred_on_pivot():
    canvas = render_frame(_frame([_entry(x=-8, y=-8)], [_tile(3)]))
    assert canvas.shape == (CANVAS_SIZE, CANVAS_SIZE)
    assert canvas[248:256, 248:256].min() == 3
    assert canvas.sum() == 3 * 64


def test_later_entries_draw_over_earlier_ones():
    tiles = [_tile(1), _tile(2, transparent_corner=True)]
    canvas = render_frame(_frame([_entry(0), _entry(1)], tiles))
    assert canvas[257, 257] == 2
    # Transparent pixel of the top entry leaves the one below visible.
    assert canvas[256, 256] == 1


def test_transparent_index_never_drawn_even_with_bank_offset():
    tile = np.zeros((8, 8), dtype=np.uint8)
    tile[4, 4] = 5
    canvas = render_frame(_frame([_entry(bank=2)], [tile]))
    assert canvas[260, 260] == 37
    assert np.count_nonzero(canvas) == 1


def test_flips_apply_to_whole_entry_block():
    left = _tile(1)
    right = _tile(2)
    entry = _entry(w=2, h=1, flip=Flip.H)
    canvas = render_frame(_frame([entry], [left, right]))
    assert canvas[256, 256] == 2
    assert canvas[256, 271] == 1

    top = _tile(1)
    bottom = _tile(2)
    canvas = render_frame(_frame([_entry(w=1, h=2, flip=Flip.V)], [top, bottom]))
    assert canvas[256, 256] == 2
    assert canvas[271, 256] == 1


def test_apply_flips_both():
    block = np.arange(6, dtype=np.uint8).reshape(2, 3)
    np.testing.assert_array_equal(apply_flips(block, Flip.BOTH), block[::-1, ::-1])
    np.testing.assert_array_equal(apply_flips(block, Flip.NONE), block)


def test_zero_sized_entry_draws_nothing():
    canvas = render_frame(_frame([_entry(w=0, h=0)], []))
    assert not canvas.any()


def test_draw_over_clips_to_canvas():
    canvas = np.zeros((4, 4), dtype=np.uint8)
    draw_over(canvas, np.full((3, 3), 9, dtype=np.uint8), -1, 2)
    expected = np.zeros((4, 4), dtype=np.uint8)
    expected[2:4, 0:2] = 9
    np.testing.assert_array_equal(canvas, expected)
    draw_over(canvas, np.full((2, 2), 7, dtype=np.uint8), 10, 10)
    np.testing.assert_array_equal(canvas, expected)


def test_render_returns_independent_buffers():
    frame = _frame([_entry()], [_tile(4)])
    first = render_frame(frame)
    second = render_frame(frame)
    first[:] = 0
    assert second.any()


def test_to_image_uses_rgba_palette():
    pixels = np.array([[0, 1], [2, 1]], dtype=np.uint8)
    palette = ((0, 0, 0, 0), (255, 0, 0, 255), (0, 0, 255, 255))
    image = to_image(pixels, palette)
    assert image.mode == "P"
    assert image.size == (2, 2)
    rgba = image.convert("RGBA")
    assert rgba.getpixel((0, 0))[3] == 0
    assert rgba.getpixel((1, 0)) == (255, 0, 0, 255)
    assert rgba.getpixel((0, 1)) == (0, 0, 255, 255)
