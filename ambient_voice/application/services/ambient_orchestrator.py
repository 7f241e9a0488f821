# ambient_voice/application/services/ambient_orchestrator.py

"""Ambient Orchestrator - microphone -> VAD -> ducking, plus runtime settings."""

import asyncio
import time
import structlog
from typing import Callable, Optional

from ambient_voice.core.ports.i_audio_input import IAudioInput
from ambient_voice.infrastructure.adapters.audio.vad import (
    VoiceActivityDetector,
    VADMetrics,
    SpeechEvent
)
from .ducking_controller import DuckingController
from .playback_service import PlaybackService

logger = structlog.get_logger()


class AmbientOrchestrator:
    """
    Runs one VAD session: reads capture blocks, feeds the detector and lets
    the ducking controller react to speech events.

    Use as an async context manager so the microphone stream is always
    released and nothing stays ducked when the session ends.
    """

    def __init__(
            self,
            audio_input: IAudioInput,
            detector: VoiceActivityDetector,
            ducking: DuckingController,
            playback: Optional[PlaybackService] = None,
            clock: Callable[[], float] = time.monotonic
    ):
        self.audio = audio_input
        self.detector = detector
        self.ducking = ducking
        self.playback = playback
        self.stream = None
        self._clock = clock
        self._running = False
        self.last_metrics: Optional[VADMetrics] = None

        self.detector.add_listener(self.ducking.handle_event)

    def add_speech_callback(self, callback: Callable[[SpeechEvent], None]) -> None:
        """Extra speech listener (e.g. a UI indicator)."""
        self.detector.add_listener(callback)

    @property
    def is_running(self) -> bool:
        return self._running

    def _now_ms(self) -> float:
        return self._clock() * 1000

    # ========================================
    # Session lifecycle
    # ========================================

    async def start(self):
        """Open the microphone and start a fresh VAD session."""
        logger.info("ambient_session_starting")
        self.stream = self.audio.start_stream()
        self.detector.start_session()
        self._running = True

    async def stop(self):
        """End the session: restore ducked audio, release the microphone."""
        if not self._running and self.stream is None:
            return

        logger.info("ambient_session_stopping")
        self._running = False
        self.last_metrics = self.detector.end_session()

        if self.stream is not None:
            self.audio.stop_stream()
            self.stream = None

    async def __aenter__(self):
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.stop()
        return False

    async def listen(self, max_frames: Optional[int] = None) -> None:
        """
        Frame loop. Runs until stop() or until max_frames blocks were read.
        """
        frames = 0
        while self._running:
            if max_frames is not None and frames >= max_frames:
                break

            try:
                frame = await self.audio.read_chunk(self.stream)
            except Exception as e:
                # Treat as silence; keep detecting
                logger.error("capture_read_error", error=str(e))
                frame = None
                await asyncio.sleep(0.1)

            self.detector.process_frame(frame, self._now_ms())
            frames += 1
            await asyncio.sleep(0)

    # ========================================
    # Runtime configuration
    # ========================================

    def set_vad_enabled(self, enabled: bool) -> None:
        self.detector.set_enabled(enabled)

    def set_vad_threshold(self, threshold: float) -> float:
        return self.detector.set_threshold(threshold)

    def set_min_speech_duration(self, duration_ms: int) -> int:
        return self.detector.set_min_speech_duration(duration_ms)

    def set_silence_timeout(self, timeout_ms: int) -> int:
        return self.detector.set_silence_timeout(timeout_ms)

    def set_ducking_factor(self, factor: float) -> float:
        return self.ducking.set_ducking_factor(factor)

    def set_fade_duration(self, duration_ms: int) -> int:
        return self.ducking.set_fade_duration(duration_ms)

    def get_statistics(self) -> dict:
        return {
            'running': self._running,
            'vad': self.detector.get_statistics(),
            'ducking': self.ducking.get_statistics(),
            'playback': self.playback.get_status() if self.playback else None,
            'last_session': self.last_metrics.to_dict() if self.last_metrics else None
        }
