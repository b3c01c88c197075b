"""CHIP-8 framebuffer model."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Optional

WIDTH = 64
HEIGHT = 32
PIXEL_ON = 0xFFFFFFFF
PIXEL_OFF = 0x00000000


@dataclass
class Chip8Display:
    """Monochrome 64x32 framebuffer.

    Cells hold ``PIXEL_ON`` (all bits set) or ``PIXEL_OFF`` so the buffer can
    be handed to a 32-bit texture as is.
    """

    WIDTH: int = WIDTH
    HEIGHT: int = HEIGHT

    pixels: List[int] = field(default_factory=lambda: [PIXEL_OFF] * (WIDTH * HEIGHT))
    foreground: int = 0xFFFFFF
    background: int = 0x000000
    frame_count: int = 0
    _presenter: Optional[Callable[["Chip8Display"], None]] = None

    @property
    def pitch(self) -> int:
        """Bytes per framebuffer row in 32-bit pixel form."""

        return 4 * self.WIDTH

    def set_presenter(self, presenter: Optional[Callable[["Chip8Display"], None]]) -> None:
        self._presenter = presenter

    def refresh(self) -> None:
        self.frame_count += 1
        if self._presenter is not None:
            self._presenter(self)

    # ------------------------------------------------------------------
    # Pixel access
    # ------------------------------------------------------------------
    def clear(self) -> None:
        self.pixels = [PIXEL_OFF] * (self.WIDTH * self.HEIGHT)

    def get_pixel(self, x: int, y: int) -> bool:
        return self.pixels[(y % self.HEIGHT) * self.WIDTH + (x % self.WIDTH)] == PIXEL_ON

    def _cells(self, data: Iterable[int]) -> List[int]:
        values = [PIXEL_ON if value else PIXEL_OFF for value in data]
        if len(values) != self.WIDTH * self.HEIGHT:
            raise ValueError("framebuffer must hold WIDTH * HEIGHT cells")
        return values

    def draw_sprite(self, x: int, y: int, rows: Iterable[int], *, clip: bool = False) -> bool:
        """XOR an 8-pixel-wide sprite onto the screen; return True on collision.

        The start position always wraps. Pixels running past the right or
        bottom edge wrap around as well unless ``clip`` is set, in which case
        they are dropped.
        """

        x0 = x % self.WIDTH
        y0 = y % self.HEIGHT
        collision = False
        for row, sprite_byte in enumerate(rows):
            py = y0 + row
            if py >= self.HEIGHT:
                if clip:
                    break
                py %= self.HEIGHT
            base = py * self.WIDTH
            for col in range(8):
                if not sprite_byte & (0x80 >> col):
                    continue
                px = x0 + col
                if px >= self.WIDTH:
                    if clip:
                        break
                    px %= self.WIDTH
                index = base + px
                if self.pixels[index] == PIXEL_ON:
                    collision = True
                self.pixels[index] ^= PIXEL_ON
        return collision

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------
    def render_pixels(self) -> List[List[int]]:
        return [self.pixels[row * self.WIDTH:(row + 1) * self.WIDTH] for row in range(self.HEIGHT)]

    def to_bytes(self) -> bytes:
        """Serialize the framebuffer as big-endian 32-bit cells, ``pitch`` bytes per row."""

        return b"".join(value.to_bytes(4, "big") for value in self.pixels)

    def render_text(self, on: str = "#", off: str = ".") -> str:
        return "\n".join(
            "".join(on if value == PIXEL_ON else off for value in row) for row in self.render_pixels()
        )

    def render_pygame_surface(self, scaling: int = 1):
        """Render the framebuffer into a pygame Surface.

        Parameters
        ----------
        scaling:
            Integer scale factor applied to both axes.

        Returns
        -------
        pygame.Surface
            RGB surface with lit cells in ``foreground`` and the rest in
            ``background``.

        Raises
        ------
        RuntimeError
            If pygame is not available.
        """

        if scaling <= 0:
            raise ValueError("scaling factor must be positive")

        try:
            import pygame  # type: ignore
        except Exception as exc:  # pragma: no cover - optional dependency
            raise RuntimeError("pygame is required for render_pygame_surface") from exc

        surface = pygame.Surface((self.WIDTH * scaling, self.HEIGHT * scaling))
        surface.fill(self.background)
        surface.lock()
        try:
            for y, row in enumerate(self.render_pixels()):
                for x, value in enumerate(row):
                    if value == PIXEL_ON:
                        surface.fill(self.foreground, (x * scaling, y * scaling, scaling, scaling))
        finally:
            surface.unlock()
        return surface

    # ------------------------------------------------------------------
    # State persistence helpers
    # ------------------------------------------------------------------
    def save_state(self, out: dict[str, object]) -> None:
        out["display.pixels"] = [1 if value == PIXEL_ON else 0 for value in self.pixels]

    def parse_state(self, data: dict[str, object]) -> List[int]:
        pixels = data.get("display.pixels")
        if pixels is None:
            return [PIXEL_OFF] * (self.WIDTH * self.HEIGHT)
        return self._cells(pixels)  # type: ignore[arg-type]
