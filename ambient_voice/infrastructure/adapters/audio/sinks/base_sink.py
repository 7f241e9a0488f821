# ambient_voice/infrastructure/adapters/audio/sinks/base_sink.py

"""Shared gain handling and output stream ownership for audio sinks."""

import threading
from abc import abstractmethod
from typing import Callable, Optional

import numpy as np
import structlog

from ambient_voice.core.exceptions import AudioError
from ambient_voice.core.ports.i_audio_sink import IAudioSink
from ..sounddevice_streams import open_output_stream
from .gain_ramp import GainRamp, RampHandle, ThreadedRampRunner, DEFAULT_STEPS

logger = structlog.get_logger()


def clamp_gain(gain: float) -> float:
    return min(1.0, max(0.0, float(gain)))


class BaseAudioSink(IAudioSink):
    """
    Base class for sinks that render mono float32 blocks into an output stream.

    - Gain lives here and is clamped to 0.0-1.0
    - ramp_gain() cancels any running ramp and starts from the current gain
    - The audio callback interpolates gain across each block (no zipper noise)
    - The output stream is owned: start() opens it, stop() releases it
    """

    def __init__(
            self,
            name: str,
            gain: float = 1.0,
            sample_rate: int = 44100,
            device: Optional[int] = None,
            ramp_runner: Optional[ThreadedRampRunner] = None,
            ramp_steps: int = DEFAULT_STEPS,
            stream_factory: Optional[Callable] = None
    ):
        """
        Args:
            name: Sink name for logs
            gain: Initial gain (0.0-1.0)
            sample_rate: Output sample rate (Hz)
            device: Output device index (None = default)
            ramp_runner: Executes fades (default: one thread per fade)
            ramp_steps: Fixed steps per fade
            stream_factory: Creates the output stream (default: sounddevice)
        """
        self._name = name
        self._gain = clamp_gain(gain)
        self._block_gain = self._gain  # gain at the end of the last rendered block
        self.sample_rate = sample_rate
        self.device = device
        self.ramp_steps = ramp_steps

        self._ramp_runner = ramp_runner or ThreadedRampRunner()
        self._stream_factory = stream_factory or open_output_stream
        self._ramp: Optional[RampHandle] = None
        self._stream = None
        self._lock = threading.RLock()

    # ========================================
    # IAudioSink
    # ========================================

    @property
    def name(self) -> str:
        return self._name

    @property
    def is_active(self) -> bool:
        return self._stream is not None

    def get_gain(self) -> float:
        with self._lock:
            return self._gain

    def set_gain(self, gain: float) -> None:
        """Set gain now. Cancels a running ramp."""
        with self._lock:
            self._cancel_ramp()
            self._gain = clamp_gain(gain)

    def ramp_gain(self, target: float, duration_ms: int) -> None:
        target = clamp_gain(target)
        with self._lock:
            self._cancel_ramp()

            if duration_ms <= 0:
                self._gain = target
                return

            handle = RampHandle(GainRamp(
                start_gain=self._gain,
                end_gain=target,
                duration_ms=duration_ms,
                steps=self.ramp_steps
            ))
            self._ramp = handle
            self._ramp_runner.start(handle, lambda g: self._apply_ramp_step(handle, g))

        logger.debug("sink_ramp_started", sink=self.name, start=handle.ramp.start_gain,
                     target=target, duration_ms=duration_ms)

    @property
    def current_ramp(self) -> Optional[RampHandle]:
        """The ramp in flight, if any."""
        with self._lock:
            if self._ramp is not None and not self._ramp.done:
                return self._ramp
            return None

    def _apply_ramp_step(self, handle: RampHandle, gain: float) -> None:
        with self._lock:
            # A newer ramp or a direct set_gain won
            if handle is not self._ramp or handle.cancelled:
                return
            self._gain = clamp_gain(gain)

    def _cancel_ramp(self) -> None:
        if self._ramp is not None:
            self._ramp.cancel()
            self._ramp = None

    # ========================================
    # Stream lifecycle
    # ========================================

    def start(self) -> "BaseAudioSink":
        """Open and start the output stream."""
        with self._lock:
            if self._stream is not None:
                return self

            try:
                stream = self._stream_factory(
                    samplerate=self.sample_rate,
                    channels=1,
                    dtype='float32',
                    device=self.device,
                    callback=self._callback
                )
                stream.start()
            except AudioError:
                raise
            except Exception as e:
                logger.error("sink_start_failed", sink=self.name, error=str(e))
                raise AudioError(f"Failed to open output for {self.name}: {e}") from e

            self._stream = stream
            self._block_gain = self._gain

        logger.info("sink_started", sink=self.name, gain=round(self._gain, 4),
                    sample_rate=self.sample_rate)
        return self

    def stop(self) -> None:
        """Stop playback and release the output stream."""
        with self._lock:
            self._cancel_ramp()
            stream, self._stream = self._stream, None

        if stream is None:
            return

        try:
            stream.stop()
            stream.close()
            logger.info("sink_stopped", sink=self.name)
        except Exception as e:
            logger.warning("sink_stop_error", sink=self.name, error=str(e))

    def __enter__(self):
        return self.start()

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()
        return False

    # ========================================
    # Rendering
    # ========================================

    def _callback(self, outdata, frames, time_info, status) -> None:
        """sounddevice output callback."""
        if status:
            logger.debug("sink_stream_status", sink=self.name, status=str(status))

        block = self._render(frames)

        with self._lock:
            start_gain, end_gain = self._block_gain, self._gain
            self._block_gain = end_gain

        if start_gain == end_gain:
            envelope = end_gain
        else:
            envelope = np.linspace(start_gain, end_gain, frames, dtype=np.float32)

        outdata[:, 0] = block * envelope

    @abstractmethod
    def _render(self, frames: int) -> np.ndarray:
        """Next `frames` samples at unity gain (float32, mono)."""
        pass

    def get_statistics(self) -> dict:
        return {
            'name': self.name,
            'gain': round(self.get_gain(), 4),
            'is_active': self.is_active,
            'ramp_in_flight': self.current_ramp is not None,
            'sample_rate': self.sample_rate
        }
