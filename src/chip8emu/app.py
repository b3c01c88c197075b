"""CHIP-8 emulator pygame application."""

from __future__ import annotations

import argparse
from dataclasses import replace
import json
import logging
from pathlib import Path
from typing import Dict, Iterable, Optional

from chip8emu.chip8.computer import Chip8Computer
from chip8emu.chip8.config import EmulatorConfig, resolve_config
from chip8emu.chip8.display import Chip8Display
from chip8emu.chip8.keyboard import Chip8Keypad
from chip8emu.emulator.file import ProgramInfo, ProgramLoadError

logger = logging.getLogger(__name__)

BASE_CAPTION = "CHIP-8 Emulator"
LOOP_HZ = 1000
SNAPSHOT_DIR = Path("snapshots")

# Mapping from pygame key constants to keypad indices.
#   1 2 3 4        1 2 3 C
#   Q W E R   ->   4 5 6 D
#   A S D F        7 8 9 E
#   Z X C V        A 0 B F
KEY_MAP: Dict[int, int] = {
    ord("x"): 0x0,
    ord("1"): 0x1,
    ord("2"): 0x2,
    ord("3"): 0x3,
    ord("q"): 0x4,
    ord("w"): 0x5,
    ord("e"): 0x6,
    ord("a"): 0x7,
    ord("s"): 0x8,
    ord("d"): 0x9,
    ord("z"): 0xA,
    ord("c"): 0xB,
    ord("4"): 0xC,
    ord("r"): 0xD,
    ord("f"): 0xE,
    ord("v"): 0xF,
}


def _handle_key_event(keypad: Chip8Keypad, key: int, pressed: bool) -> bool:
    index = KEY_MAP.get(key)
    if index is None:
        return False
    if pressed:
        keypad.press(index)
    else:
        keypad.release(index)
    return True


def _build_caption(info: Optional[ProgramInfo], *, paused: bool = False) -> str:
    caption = BASE_CAPTION if info is None else f"{BASE_CAPTION} | {info.name}"
    if paused:
        caption += " [paused]"
    return caption


def _snapshot_path(info: Optional[ProgramInfo]) -> Path:
    name = info.name if info is not None and info.name else "default"
    return SNAPSHOT_DIR / f"{name.lower()}.json"


def _write_snapshot(computer: Chip8Computer, path: Path) -> None:
    state: dict[str, object] = {}
    computer.save_state(state)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(state), encoding="utf-8")


def _read_snapshot(computer: Chip8Computer, path: Path) -> bool:
    if not path.exists():
        return False
    data = json.loads(path.read_text(encoding="utf-8"))
    computer.load_state(data)
    return True


def _load_program_for_run(computer: Chip8Computer, program_path: Optional[str]) -> ProgramInfo:
    if program_path:
        return computer.load_program_file(program_path)
    return computer.load_demo_program()


def _pygame_loop(config: EmulatorConfig, program_path: Optional[str]) -> None:
    import pygame  # type: ignore

    computer = Chip8Computer(config, enable_audio=config.audio)
    info = _load_program_for_run(computer, program_path)
    display = computer.display
    scale = config.scale

    pygame.init()
    screen = pygame.display.set_mode((display.WIDTH * scale, display.HEIGHT * scale))
    pygame.display.set_caption(_build_caption(info))
    clock = pygame.time.Clock()

    def present(frame: Chip8Display) -> None:
        screen.blit(frame.render_pygame_surface(scale), (0, 0))
        pygame.display.flip()

    display.set_presenter(present)
    computer.power_on()
    snapshot_path = _snapshot_path(info)

    running = True
    try:
        while running:
            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    running = False
                    continue
                if event.type == pygame.KEYDOWN:
                    if event.key == pygame.K_ESCAPE:
                        running = False
                        continue
                    if event.key == pygame.K_F2:
                        computer.reset()
                        continue
                    if event.key == pygame.K_p:
                        computer.toggle_pause()
                        paused = computer.get_running_status() == Chip8Computer.STATUS_PAUSED
                        pygame.display.set_caption(_build_caption(info, paused=paused))
                        continue
                    if event.key == pygame.K_F5:
                        _write_snapshot(computer, snapshot_path)
                        logger.info("state saved to %s", snapshot_path)
                        continue
                    if event.key == pygame.K_F9:
                        try:
                            if _read_snapshot(computer, snapshot_path):
                                present(display)
                        except (ValueError, TypeError) as exc:
                            logger.error("cannot restore %s: %s", snapshot_path, exc)
                        continue
                    _handle_key_event(computer.keypad, event.key, True)
                elif event.type == pygame.KEYUP:
                    _handle_key_event(computer.keypad, event.key, False)

            computer.advance()
            clock.tick(LOOP_HZ)
    finally:
        computer.power_off()
        computer.hardware.sound_processor.shutdown()
        pygame.quit()


def build_config(args: argparse.Namespace) -> EmulatorConfig:
    """Merge command-line overrides onto the file/environment configuration."""

    config = resolve_config(args.config)
    overrides: dict[str, object] = {}
    if args.scale is not None:
        overrides["scale"] = args.scale
    if args.cpu_hz is not None:
        overrides["cpu_frequency"] = args.cpu_hz
    if args.timer_hz is not None:
        overrides["timer_frequency"] = args.timer_hz
    if args.seed is not None:
        overrides["seed"] = args.seed
    if args.audio is not None:
        overrides["audio"] = args.audio
    quirks = config.quirks
    if args.shift_vy:
        quirks = replace(quirks, shift_uses_vy=True)
    if args.clip:
        quirks = replace(quirks, clip_sprites=True)
    if args.jump_vx:
        quirks = replace(quirks, jump_uses_vx=True)
    return replace(config, quirks=quirks, **overrides)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="CHIP-8 emulator")
    parser.add_argument("program", nargs="?", help="Raw CHIP-8 program image; runs the built-in demo if omitted")
    parser.add_argument("--config", help="JSON configuration file (defaults to $CHIP8EMU_CONFIG)")
    parser.add_argument("--scale", type=int, default=None, help="Integer scaling factor for the display (default: 10)")
    parser.add_argument("--cpu-hz", type=float, default=None, help="Instructions per second (default: 500)")
    parser.add_argument("--timer-hz", type=float, default=None, help="Timer and display rate in Hz (default: 60)")
    parser.add_argument("--seed", type=int, default=None, help="Seed for the RND instruction")
    parser.add_argument("--audio", dest="audio", action="store_true", help="Enable the sound-timer beeper")
    parser.add_argument("--no-audio", dest="audio", action="store_false", help="Disable the sound-timer beeper")
    parser.set_defaults(audio=None)
    parser.add_argument("--shift-vy", action="store_true", help="8xy6/8xyE shift Vy into Vx")
    parser.add_argument("--clip", action="store_true", help="Clip sprites at the screen edges instead of wrapping")
    parser.add_argument("--jump-vx", action="store_true", help="Bnnn offsets by Vx instead of V0")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


def main(argv: Iterable[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    try:
        config = build_config(args)
    except (OSError, ValueError) as exc:
        raise SystemExit(f"invalid configuration: {exc}")

    try:
        _pygame_loop(config, args.program)
    except ProgramLoadError as exc:
        raise SystemExit(f"cannot load program: {exc}")


if __name__ == "__main__":
    main()
