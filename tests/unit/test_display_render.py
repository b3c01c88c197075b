"""Framebuffer model and rendering helpers."""

from __future__ import annotations

import pytest

from chip8emu.chip8.display import HEIGHT, PIXEL_OFF, PIXEL_ON, WIDTH, Chip8Display


def test_draw_sprite_is_self_inverse() -> None:
    display = Chip8Display()
    rows = [0xA5, 0x5A, 0xFF]

    assert display.draw_sprite(10, 20, rows) is False
    lit = display.pixels.count(PIXEL_ON)
    assert lit == 4 + 4 + 8
    assert display.draw_sprite(10, 20, rows) is True
    assert display.pixels.count(PIXEL_ON) == 0


def test_draw_sprite_wraps_start_coordinates() -> None:
    display = Chip8Display()

    display.draw_sprite(WIDTH + 3, HEIGHT + 1, [0x80])

    assert display.get_pixel(3, 1)


def test_partial_overlap_reports_collision() -> None:
    display = Chip8Display()
    display.draw_sprite(0, 0, [0x80])

    assert display.draw_sprite(0, 0, [0xC0]) is True
    assert not display.get_pixel(0, 0)
    assert display.get_pixel(1, 0)


def test_render_text_and_rows() -> None:
    display = Chip8Display()
    display.draw_sprite(0, 0, [0xC0])

    rows = display.render_pixels()
    text = display.render_text()

    assert len(rows) == HEIGHT
    assert all(len(row) == WIDTH for row in rows)
    assert text.splitlines()[0].startswith("##..")
    assert text.count("#") == 2


def test_to_bytes_uses_pitch_per_row() -> None:
    display = Chip8Display()
    display.draw_sprite(1, 0, [0x80])

    data = display.to_bytes()

    assert display.pitch == 4 * WIDTH
    assert len(data) == display.pitch * HEIGHT
    assert data[0:4] == b"\x00\x00\x00\x00"
    assert data[4:8] == b"\xff\xff\xff\xff"


def test_refresh_notifies_presenter() -> None:
    display = Chip8Display()
    seen: list[int] = []
    display.set_presenter(lambda frame: seen.append(frame.frame_count))

    display.refresh()
    display.refresh()

    assert seen == [1, 2]


def test_state_parse_and_validation() -> None:
    display = Chip8Display()
    display.draw_sprite(5, 5, [0xF0])
    state: dict[str, object] = {}
    display.save_state(state)

    restored = Chip8Display()
    assert restored.parse_state(state) == display.pixels
    assert restored.pixels == [PIXEL_OFF] * (WIDTH * HEIGHT)

    with pytest.raises(ValueError):
        restored.parse_state({"display.pixels": [1, 0, 1]})

    assert restored.parse_state({}) == [PIXEL_OFF] * (WIDTH * HEIGHT)
