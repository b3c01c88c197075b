"""Emulator configuration: interpreter quirks and host timing."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
import json
import os
from pathlib import Path
from typing import Any, Mapping, Optional

ENV_CONFIG_PATH = "CHIP8EMU_CONFIG"

DEFAULT_CPU_FREQUENCY = 500.0
DEFAULT_TIMER_FREQUENCY = 60.0
DEFAULT_SCALE = 10


@dataclass
class Quirks:
    """Architectural variants found in CHIP-8 interpreters.

    By default shifts operate on ``Vx`` and sprites wrap around the screen
    edges. ``Bnnn`` offsets by ``V0`` unless ``jump_uses_vx`` is set.
    """

    shift_uses_vy: bool = False
    clip_sprites: bool = False
    jump_uses_vx: bool = False

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "Quirks":
        _reject_unknown(cls, data, "quirk")
        return cls(**{key: bool(value) for key, value in data.items()})


@dataclass
class EmulatorConfig:
    cpu_frequency: float = DEFAULT_CPU_FREQUENCY
    timer_frequency: float = DEFAULT_TIMER_FREQUENCY
    scale: int = DEFAULT_SCALE
    seed: Optional[int] = None
    audio: bool = True
    quirks: Quirks = field(default_factory=Quirks)

    def __post_init__(self) -> None:
        if self.cpu_frequency <= 0:
            raise ValueError("cpu_frequency must be positive")
        if self.timer_frequency <= 0:
            raise ValueError("timer_frequency must be positive")
        if self.scale <= 0:
            raise ValueError("scale must be positive")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "EmulatorConfig":
        _reject_unknown(cls, data, "config")
        values = dict(data)
        quirks = values.pop("quirks", None)
        config = cls(
            cpu_frequency=float(values.get("cpu_frequency", DEFAULT_CPU_FREQUENCY)),
            timer_frequency=float(values.get("timer_frequency", DEFAULT_TIMER_FREQUENCY)),
            scale=int(values.get("scale", DEFAULT_SCALE)),
            seed=None if values.get("seed") is None else int(values["seed"]),
            audio=bool(values.get("audio", True)),
        )
        if quirks is not None:
            if not isinstance(quirks, Mapping):
                raise ValueError("quirks must be a JSON object")
            config.quirks = Quirks.from_mapping(quirks)
        return config

    def to_dict(self) -> dict:
        return asdict(self)


def _reject_unknown(cls: type, data: Mapping[str, Any], label: str) -> None:
    known = {item.name for item in fields(cls)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ValueError(f"unknown {label} keys: {', '.join(unknown)}")


def load_config(path: str | os.PathLike[str]) -> EmulatorConfig:
    """Read an :class:`EmulatorConfig` from a JSON file."""

    text = Path(path).read_text(encoding="utf-8")
    data = json.loads(text)
    if not isinstance(data, dict):
        raise ValueError("configuration file must contain a JSON object")
    return EmulatorConfig.from_mapping(data)


def resolve_config(path: str | os.PathLike[str] | None = None) -> EmulatorConfig:
    """Load ``path``, else the file named by ``CHIP8EMU_CONFIG``, else defaults."""

    if path is not None and str(path):
        return load_config(path)
    env_value = os.getenv(ENV_CONFIG_PATH)
    if env_value:
        return load_config(env_value)
    return EmulatorConfig()
