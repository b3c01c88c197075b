"""Sound processor tests."""

from __future__ import annotations

import sys

import pytest

from chip8emu.chip8.sound import AMPLITUDE, Chip8SoundProcessor


class DummySound:
    def __init__(self, buffer):
        self.buffer = buffer


class DummyChannel:
    def __init__(self, mixer):
        self.mixer = mixer

    def play(self, sound, loops=0):
        self.mixer.last_sound = sound
        self.mixer.last_loops = loops

    def set_volume(self, volume):
        self.mixer.last_volume = volume

    def stop(self):
        self.mixer.stopped = True


class DummyMixer:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.initialized = False
        self.last_sound = None
        self.last_volume = None
        self.last_loops = None
        self.stopped = False

    def init(self, **kwargs):
        if self.fail:
            raise RuntimeError("no audio device")
        self.init_kwargs = kwargs
        self.initialized = True

    def get_init(self):
        return self.initialized

    def Channel(self, index):
        return DummyChannel(self)

    def Sound(self, *args, **kwargs):
        buffer = kwargs.get("buffer") or (args[0] if args else None)
        return DummySound(buffer)


class DummyPygame:
    def __init__(self, fail: bool = False):
        self.mixer = DummyMixer(fail)


def test_sound_processor_history_only():
    sp = Chip8SoundProcessor()
    sp.set_active(True)
    sp.set_active(True)
    sp.set_active(False)
    assert sp.history == [("set_active", (True,)), ("set_active", (False,))]
    assert sp.active is False


def test_sound_processor_audio(monkeypatch):
    dummy = DummyPygame()
    monkeypatch.setitem(sys.modules, "pygame", dummy)

    sp = Chip8SoundProcessor(enable_audio=True)
    sp.set_active(True)
    assert dummy.mixer.init_kwargs == {"frequency": 44100, "size": -16, "channels": 1}
    assert dummy.mixer.last_sound is not None
    assert dummy.mixer.last_loops == -1
    assert dummy.mixer.last_volume == pytest.approx(sp.volume)
    sp.set_active(False)
    assert dummy.mixer.stopped is True


def test_mixer_failure_disables_audio(monkeypatch):
    monkeypatch.setitem(sys.modules, "pygame", DummyPygame(fail=True))

    sp = Chip8SoundProcessor(enable_audio=True)
    sp.set_active(True)

    assert sp.enable_audio is False
    assert sp.active is True


def test_render_period_is_square_wave():
    sp = Chip8SoundProcessor()
    samples = sp.render_period()

    assert len(samples) == 44100 // 440
    assert set(samples) == {AMPLITUDE, -AMPLITUDE}
    assert samples[0] == -AMPLITUDE
    assert samples[len(samples) // 2] == AMPLITUDE
