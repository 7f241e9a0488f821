# ambient_voice/infrastructure/adapters/audio/sinks/track_sink.py

"""Looped playback of a decoded track."""

from pathlib import Path

import numpy as np
import soundfile as sf
import structlog

from ambient_voice.core.exceptions import PlaybackError
from .base_sink import BaseAudioSink

logger = structlog.get_logger()

def load_wav(path: str) -> tuple[np.ndarray, int]:
    """
    Decode an audio file into mono float32 samples.

    Args:
        path: Audio file path (any format libsndfile reads: PCM/float WAV, FLAC, OGG)

    Returns:
        (samples, sample_rate)
    """
    file_path = Path(path)
    if not file_path.exists():
        raise PlaybackError(f"Track not found: {path}")

    try:
        data, sample_rate = sf.read(str(file_path), dtype='float32', always_2d=True)
    except (sf.LibsndfileError, RuntimeError) as e:
        raise PlaybackError(f"Unreadable audio file {path}: {e}") from e

    channels = data.shape[1]
    samples = data.mean(axis=1) if channels > 1 else data[:, 0]

    logger.debug("track_loaded", path=str(file_path), sample_rate=sample_rate,
                 channels=channels, samples=len(samples))
    return samples.astype(np.float32), sample_rate


class TrackSink(BaseAudioSink):
    """
    Plays a decoded track in a loop.
    The track is rendered at its own sample rate.
    """

    def __init__(self, samples: np.ndarray, sample_rate: int, name: str = "track", **kwargs):
        """
        Args:
            samples: Mono float32 samples
            sample_rate: Track sample rate (Hz)
            name: Track name
            **kwargs: BaseAudioSink options (gain, device, ramp_runner, ...)
        """
        kwargs.pop('sample_rate', None)
        super().__init__(name=name, sample_rate=sample_rate, **kwargs)

        track = np.asarray(samples, dtype=np.float32).ravel()
        if track.size == 0:
            raise PlaybackError(f"Track '{name}' has no samples")

        self.samples = np.clip(track, -1.0, 1.0)
        self.position = 0

    @classmethod
    def from_wav(cls, path: str, **kwargs) -> "TrackSink":
        samples, sample_rate = load_wav(path)
        kwargs.setdefault('name', Path(path).stem)
        return cls(samples, sample_rate, **kwargs)

    def _render(self, frames: int) -> np.ndarray:
        total = len(self.samples)
        indices = (self.position + np.arange(frames)) % total
        self.position = (self.position + frames) % total
        return self.samples[indices]
