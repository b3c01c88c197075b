"""Configuration parsing and resolution."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from chip8emu.chip8.config import (
    ENV_CONFIG_PATH,
    EmulatorConfig,
    Quirks,
    load_config,
    resolve_config,
)


def test_defaults() -> None:
    config = EmulatorConfig()

    assert config.cpu_frequency == 500.0
    assert config.timer_frequency == 60.0
    assert config.scale == 10
    assert config.seed is None
    assert config.quirks == Quirks()


def test_from_mapping_with_quirks() -> None:
    config = EmulatorConfig.from_mapping(
        {"cpu_frequency": 700, "seed": "12", "quirks": {"shift_uses_vy": True, "clip_sprites": 1}}
    )

    assert config.cpu_frequency == 700.0
    assert config.seed == 12
    assert config.quirks == Quirks(shift_uses_vy=True, clip_sprites=True)
    assert config.to_dict()["quirks"]["jump_uses_vx"] is False


@pytest.mark.parametrize(
    "data",
    [
        {"speed": 1},
        {"quirks": {"wrap": True}},
        {"quirks": [1, 2]},
        {"cpu_frequency": 0},
        {"scale": -1},
    ],
)
def test_invalid_mappings(data: dict) -> None:
    with pytest.raises(ValueError):
        EmulatorConfig.from_mapping(data)


def test_load_config_file(tmp_path: Path) -> None:
    path = tmp_path / "chip8.json"
    path.write_text(json.dumps({"scale": 4, "audio": False}), encoding="utf-8")

    config = load_config(path)

    assert config.scale == 4
    assert config.audio is False


def test_load_config_requires_object(tmp_path: Path) -> None:
    path = tmp_path / "chip8.json"
    path.write_text("[1, 2]", encoding="utf-8")

    with pytest.raises(ValueError):
        load_config(path)


def test_resolve_config_prefers_path_then_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    env_path = tmp_path / "env.json"
    env_path.write_text(json.dumps({"scale": 3}), encoding="utf-8")
    explicit = tmp_path / "explicit.json"
    explicit.write_text(json.dumps({"scale": 7}), encoding="utf-8")

    monkeypatch.delenv(ENV_CONFIG_PATH, raising=False)
    assert resolve_config().scale == 10

    monkeypatch.setenv(ENV_CONFIG_PATH, str(env_path))
    assert resolve_config().scale == 3
    assert resolve_config(explicit).scale == 7
