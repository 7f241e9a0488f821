"""Microphone capture via sounddevice"""

import asyncio
import numpy as np
import structlog
from typing import Callable, Optional

from ambient_voice.core.exceptions import AudioError
from ambient_voice.core.ports.i_audio_input import IAudioInput
from .sounddevice_streams import open_input_stream

logger = structlog.get_logger()


class SoundDeviceCapture(IAudioInput):
    """Handles audio input from the microphone (mono float32 blocks)"""

    def __init__(self, sample_rate: int = 16000, channels: int = 1,
                 block_size: int = 4096, device: Optional[int] = None,
                 gain: float = 1.0, stream_factory: Optional[Callable] = None):
        self.sample_rate = sample_rate
        self.channels = channels
        self.block_size = block_size
        self.device = device
        self.gain = gain  # Input gain multiplier
        self.stream = None
        self._stream_factory = stream_factory or open_input_stream

        logger.info("audio_capture_initialized",
                    sample_rate=sample_rate,
                    channels=channels,
                    block_size=block_size,
                    device=device if device is not None else "default",
                    gain=gain)

    @property
    def block_duration_ms(self) -> float:
        return self.block_size * 1000 / self.sample_rate

    def start_stream(self):
        """Open and start the input stream"""
        if self.stream is not None:
            return self.stream

        try:
            self.stream = self._stream_factory(
                device=self.device,
                channels=self.channels,
                samplerate=self.sample_rate,
                blocksize=self.block_size,
                dtype='float32'
            )
            self.stream.start()
            logger.info("audio_stream_started")
            return self.stream
        except AudioError:
            raise
        except Exception as e:
            logger.error("failed_to_start_stream", error=str(e))
            raise AudioError(f"Failed to start microphone stream: {e}") from e

    async def read_chunk(self, stream) -> np.ndarray:
        """Read one block from the stream without blocking the event loop"""
        loop = asyncio.get_running_loop()
        audio_data, overflowed = await loop.run_in_executor(
            None, stream.read, self.block_size
        )

        if overflowed:
            logger.warning("audio_buffer_overflow")

        audio_data = np.asarray(audio_data, dtype=np.float32)
        if audio_data.ndim > 1:
            # Downmix to mono
            audio_data = audio_data.mean(axis=1)

        if self.gain != 1.0:
            audio_data = np.clip(audio_data * self.gain, -1.0, 1.0)

        return audio_data

    def stop_stream(self):
        """Stop and close the stream"""
        stream, self.stream = self.stream, None
        if stream is None:
            return
        try:
            stream.stop()
            stream.close()
            logger.info("audio_stream_stopped")
        except Exception as e:
            logger.error("stop_stream_error", error=str(e))
