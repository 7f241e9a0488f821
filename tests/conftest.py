"""Shared fixtures: fake streams, synchronous ramps, fake sinks"""

import numpy as np
import pytest

from ambient_voice.core.ports.i_audio_sink import IAudioSink
from ambient_voice.infrastructure.adapters.audio.sinks import RampHandle


class InlineRampRunner:
    """Runs every ramp step immediately on the calling thread."""

    def __init__(self):
        self.started = []

    def start(self, handle: RampHandle, apply):
        self.started.append(handle)
        ramp = handle.ramp
        for step in range(1, ramp.steps + 1):
            if handle.cancelled:
                break
            apply(ramp.value_at_step(step))
        handle.mark_finished()
        return handle


class ManualRampRunner:
    """Keeps ramps pending until step() is called (mid-fade tests)."""

    def __init__(self):
        self.pending = []

    def start(self, handle: RampHandle, apply):
        self.pending.append([handle, apply, 0])
        return handle

    def step(self, count: int = 1):
        for entry in self.pending:
            handle, apply, done = entry
            for _ in range(count):
                if done >= handle.ramp.steps:
                    break
                done += 1
                apply(handle.ramp.value_at_step(done))
            entry[2] = done
            if done >= handle.ramp.steps:
                handle.mark_finished()


class FakeStream:
    """Stands in for sounddevice streams."""

    def __init__(self, blocks=None, **kwargs):
        self.kwargs = kwargs
        self.callback = kwargs.get('callback')
        self.blocks = list(blocks or [])
        self.started = False
        self.closed = False

    def start(self):
        self.started = True

    def stop(self):
        self.started = False

    def close(self):
        self.closed = True

    def read(self, frames):
        if self.blocks:
            return self.blocks.pop(0), False
        return np.zeros((frames, 1), dtype=np.float32), False


class FakeStreamFactory:
    """Records every stream it opens."""

    def __init__(self, blocks=None):
        self.blocks = blocks
        self.streams = []

    def __call__(self, **kwargs):
        stream = FakeStream(blocks=self.blocks, **kwargs)
        self.streams.append(stream)
        return stream


class FakeSink(IAudioSink):
    """In-memory sink; ramps land instantly and are recorded."""

    def __init__(self, name="fake", gain=1.0, active=True):
        self._name = name
        self.gain = gain
        self.active = active
        self.ramps = []
        self.set_calls = []

    @property
    def name(self):
        return self._name

    @property
    def is_active(self):
        return self.active

    def get_gain(self):
        return self.gain

    def set_gain(self, gain):
        self.set_calls.append(gain)
        self.gain = gain

    def ramp_gain(self, target, duration_ms):
        self.ramps.append((target, duration_ms))
        self.gain = target


class BrokenSink(FakeSink):
    """Fails on every gain change."""

    def ramp_gain(self, target, duration_ms):
        raise RuntimeError("device unplugged")

    def set_gain(self, gain):
        raise RuntimeError("device unplugged")


@pytest.fixture
def ramp_runner():
    return InlineRampRunner()


@pytest.fixture
def manual_runner():
    return ManualRampRunner()


@pytest.fixture
def stream_factory():
    return FakeStreamFactory()
