# ambient_voice/infrastructure/adapters/audio/sinks/tone_sink.py

"""Synthesized sine tone - fallback when no track is available."""

import numpy as np

from .base_sink import BaseAudioSink


class ToneSink(BaseAudioSink):
    """
    Sine oscillator with phase kept across blocks (no clicks between
    callbacks).
    """

    def __init__(self, frequency: float = 220.0, name: str = None, **kwargs):
        """
        Args:
            frequency: Oscillator frequency (Hz)
            name: Sink name (default "tone_<frequency>hz")
            **kwargs: BaseAudioSink options (gain, sample_rate, ramp_runner, ...)
        """
        super().__init__(name=name or f"tone_{frequency:g}hz", **kwargs)
        self.frequency = float(frequency)
        self._phase = 0.0

    def _render(self, frames: int) -> np.ndarray:
        step = 2 * np.pi * self.frequency / self.sample_rate
        phases = self._phase + step * np.arange(frames)
        self._phase = float((self._phase + step * frames) % (2 * np.pi))
        return np.sin(phases).astype(np.float32)
