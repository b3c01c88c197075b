"""pygame surface rendering."""

from __future__ import annotations

import pytest

from chip8emu.chip8.display import Chip8Display

pygame = pytest.importorskip("pygame")


def test_render_pygame_surface_scales_pixels() -> None:
    display = Chip8Display()
    display.draw_sprite(0, 0, [0x80])

    surface = display.render_pygame_surface(2)

    assert surface.get_size() == (128, 64)
    assert tuple(surface.get_at((1, 1)))[:3] == (255, 255, 255)
    assert tuple(surface.get_at((2, 0)))[:3] == (0, 0, 0)


def test_render_pygame_surface_rejects_bad_scale() -> None:
    with pytest.raises(ValueError):
        Chip8Display().render_pygame_surface(0)
