"""Tests for the ambient orchestrator (capture -> VAD -> ducking)"""

import numpy as np
import pytest

from ambient_voice.application.services.ambient_orchestrator import AmbientOrchestrator
from ambient_voice.application.services.ducking_controller import DuckingController
from ambient_voice.core.ports.i_audio_input import IAudioInput
from ambient_voice.infrastructure.adapters.audio.vad import (
    VoiceActivityDetector,
    SpeechEvent,
    SpeechState
)

from conftest import FakeSink

SILENCE = np.zeros(800, dtype=np.float32)
LOUD = np.full(800, 0.5, dtype=np.float32)


class ScriptedInput(IAudioInput):
    """Plays back a list of frames; an Exception entry is raised instead."""

    def __init__(self, frames):
        self.frames = list(frames)
        self.started = False
        self.stopped = False

    def start_stream(self):
        self.started = True
        return "stream"

    async def read_chunk(self, stream):
        assert stream == "stream"
        item = self.frames.pop(0) if self.frames else SILENCE
        if isinstance(item, Exception):
            raise item
        return item

    def stop_stream(self):
        self.stopped = True


class StepClock:
    """50 ms per call."""

    def __init__(self):
        self.now = 0.0

    def __call__(self):
        value = self.now
        self.now += 0.05
        return value


@pytest.fixture
def sink():
    return FakeSink(gain=0.8)


def build(frames, sink):
    ducking = DuckingController()
    ducking.register_sink(sink)
    orchestrator = AmbientOrchestrator(
        audio_input=ScriptedInput(frames),
        detector=VoiceActivityDetector(),
        ducking=ducking,
        clock=StepClock()
    )
    return orchestrator


@pytest.mark.asyncio
async def test_speech_ducks_background(sink):
    orchestrator = build([SILENCE] * 10 + [LOUD] * 9, sink)

    async with orchestrator:
        await orchestrator.listen(max_frames=19)
        assert orchestrator.detector.state == SpeechState.ACTIVE
        assert orchestrator.ducking.is_ducked
        assert sink.gain == pytest.approx(0.16)

    # Session end closes the episode and restores
    assert not orchestrator.ducking.is_ducked
    assert sink.gain == pytest.approx(0.8)
    assert orchestrator.audio.stopped
    assert orchestrator.last_metrics.speech_episodes == 1


@pytest.mark.asyncio
async def test_speech_callback_receives_events(sink):
    orchestrator = build([SILENCE] * 10 + [LOUD] * 9, sink)
    received = []
    orchestrator.add_speech_callback(received.append)

    async with orchestrator:
        await orchestrator.listen(max_frames=19)

    assert received == [SpeechEvent.SPEECH_STARTED, SpeechEvent.SPEECH_ENDED]


@pytest.mark.asyncio
async def test_read_errors_are_treated_as_silence(sink):
    orchestrator = build([RuntimeError("overflow")] + [SILENCE] * 3, sink)

    async with orchestrator:
        await orchestrator.listen(max_frames=4)
        metrics = orchestrator.detector.get_current_metrics()
        assert metrics.total_frames == 4
        assert metrics.empty_frames == 1


@pytest.mark.asyncio
async def test_stop_ends_listen_loop(sink):
    orchestrator = build([], sink)
    await orchestrator.start()
    await orchestrator.stop()

    await orchestrator.listen()
    assert not orchestrator.is_running
    assert orchestrator.stream is None


@pytest.mark.asyncio
async def test_stop_is_idempotent(sink):
    orchestrator = build([], sink)
    await orchestrator.start()
    await orchestrator.stop()
    await orchestrator.stop()
    assert orchestrator.audio.stopped


@pytest.mark.asyncio
async def test_disable_vad_mid_speech_restores(sink):
    orchestrator = build([SILENCE] * 10 + [LOUD] * 9, sink)

    async with orchestrator:
        await orchestrator.listen(max_frames=19)
        assert sink.gain == pytest.approx(0.16)

        orchestrator.set_vad_enabled(False)
        assert sink.gain == pytest.approx(0.8)
        assert not orchestrator.ducking.is_ducked


def test_runtime_setters_are_clamped(sink):
    orchestrator = build([], sink)

    assert orchestrator.set_vad_threshold(1.0) == 0.1
    assert orchestrator.set_ducking_factor(0.05) == 0.1
    assert orchestrator.set_fade_duration(0) == 1
    assert orchestrator.set_min_speech_duration(-1) == 1
    assert orchestrator.set_silence_timeout(1500) == 1500

    stats = orchestrator.get_statistics()
    assert stats['vad']['config']['threshold'] == 0.1
    assert stats['ducking']['config']['ducking_factor'] == 0.1
    assert stats['running'] is False
    assert stats['last_session'] is None
