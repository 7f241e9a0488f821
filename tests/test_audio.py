"""Tests for audio capture"""
import numpy as np
import pytest

from ambient_voice.core.exceptions import AudioError
from ambient_voice.infrastructure.adapters.audio.sounddevice_capture import SoundDeviceCapture

from conftest import FakeStreamFactory


def test_audio_capture_init():
    capture = SoundDeviceCapture(sample_rate=16000, channels=1)
    assert capture.sample_rate == 16000
    assert capture.channels == 1
    assert capture.block_duration_ms == 256.0
    assert capture.stream is None


def test_start_stream_opens_float32_input():
    factory = FakeStreamFactory()
    capture = SoundDeviceCapture(block_size=1024, device=3, stream_factory=factory)

    stream = capture.start_stream()
    assert stream.started
    assert stream.kwargs['dtype'] == 'float32'
    assert stream.kwargs['blocksize'] == 1024
    assert stream.kwargs['device'] == 3

    # Second start reuses the open stream
    assert capture.start_stream() is stream

    capture.stop_stream()
    assert stream.closed
    assert capture.stream is None


def test_start_failure_raises_audio_error():
    def failing_factory(**kwargs):
        raise OSError("no microphone")

    capture = SoundDeviceCapture(stream_factory=failing_factory)
    with pytest.raises(AudioError):
        capture.start_stream()


@pytest.mark.asyncio
async def test_read_chunk_downmixes_and_applies_gain():
    stereo = np.tile(np.array([[0.2, 0.4]], dtype=np.float32), (256, 1))
    factory = FakeStreamFactory(blocks=[stereo])
    capture = SoundDeviceCapture(channels=2, block_size=256, gain=2.0, stream_factory=factory)

    stream = capture.start_stream()
    chunk = await capture.read_chunk(stream)

    assert chunk.shape == (256,)
    assert np.allclose(chunk, 0.6)


@pytest.mark.asyncio
async def test_gain_is_clipped():
    loud = np.full((128, 1), 0.8, dtype=np.float32)
    capture = SoundDeviceCapture(block_size=128, gain=4.0,
                                 stream_factory=FakeStreamFactory(blocks=[loud]))

    chunk = await capture.read_chunk(capture.start_stream())
    assert chunk.max() == 1.0
