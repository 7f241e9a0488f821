# ambient_voice/infrastructure/adapters/audio/vad/voice_activity_detector.py

"""
Voice Activity Detector - energy based, with adaptive threshold and hysteresis.
Pipeline per frame: RMS energy -> threshold tracker -> speech state machine.
"""

import threading
import time
from typing import Callable, List, Optional

import structlog

from ambient_voice.core.config.settings import clamp_duration_ms
from .models import VADConfig, VADMetrics, SpeechEvent, SpeechState
from .functionality import (
    calculate_rms_energy,
    normalize_frame,
    ThresholdTracker,
    SpeechStateMachine,
    MetricsTracker
)

logger = structlog.get_logger()

SpeechListener = Callable[[SpeechEvent], None]


class VoiceActivityDetector:
    """
    Turns raw audio frames into SPEECH_STARTED / SPEECH_ENDED events.

    Features:
    - RMS energy with exponential smoothing
    - Adaptive threshold (rolling average floor, base threshold minimum)
    - Minimum speech duration and silence timeout hysteresis
    - Listener isolation (a failing listener never stalls detection)

    process_frame() takes the timestamp as an argument, so the detector
    can be driven by a test harness as easily as by a microphone.
    """

    def __init__(self, config: Optional[VADConfig] = None):
        """
        Args:
            config: VAD configuration (clamped on construction)
        """
        self.config = (config or VADConfig()).clamp()

        self.tracker = ThresholdTracker(
            base_threshold=self.config.threshold,
            smoothing_factor=self.config.smoothing_factor,
            history_length=self.config.history_length,
            sensitivity_multiplier=self.config.sensitivity_multiplier
        )
        self.state_machine = SpeechStateMachine(
            min_speech_duration_ms=self.config.min_speech_duration_ms,
            silence_timeout_ms=self.config.silence_timeout_ms
        )
        self.metrics_tracker = MetricsTracker()

        self._listeners: List[SpeechListener] = []
        self._lock = threading.RLock()

        logger.info("vad_initialized", config=self.config.to_dict())

    # ========================================
    # Listeners
    # ========================================

    def add_listener(self, listener: SpeechListener) -> None:
        """Subscribe to speech events (called in emission order)."""
        with self._lock:
            if listener not in self._listeners:
                self._listeners.append(listener)

    def remove_listener(self, listener: SpeechListener) -> None:
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def _emit(self, event: SpeechEvent) -> None:
        self.metrics_tracker.record_event(event)
        logger.info(
            event.value,
            smoothed_energy=round(self.tracker.smoothed_energy, 6),
            threshold=round(self.tracker.threshold, 6)
        )

        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                logger.error(
                    "speech_listener_error",
                    speech_event=event.value,
                    listener=getattr(listener, "__qualname__", repr(listener)),
                    error=str(e)
                )

    # ========================================
    # Frame processing
    # ========================================

    @property
    def state(self) -> SpeechState:
        return self.state_machine.state

    @property
    def is_speech_active(self) -> bool:
        return self.state_machine.is_speech_active

    @property
    def enabled(self) -> bool:
        return self.config.enabled

    @property
    def smoothed_energy(self) -> float:
        return self.tracker.smoothed_energy

    @property
    def threshold(self) -> float:
        return self.tracker.threshold

    def process_frame(self, frame, now: float) -> bool:
        """
        Process one audio frame.

        Args:
            frame: Samples (float in [-1, 1]; int16 is normalized)
            now: Frame timestamp in milliseconds

        Returns:
            True while speech is active
        """
        with self._lock:
            if not self.config.enabled:
                return False

            started = time.perf_counter()

            samples = normalize_frame(frame)
            energy = calculate_rms_energy(samples)
            update = self.tracker.update(energy)

            previous_state = self.state_machine.state
            event = self.state_machine.update(update.above_threshold, now)

            if (previous_state == SpeechState.PENDING_SPEECH
                    and self.state_machine.state == SpeechState.SILENT):
                self.metrics_tracker.record_false_start()

            self.metrics_tracker.update_frame(
                energy=energy,
                threshold=update.threshold,
                above_threshold=update.above_threshold,
                is_empty=samples.size == 0,
                processing_time_ms=(time.perf_counter() - started) * 1000
            )

            if event is not None:
                self._emit(event)

            return self.state_machine.is_speech_active

    # ========================================
    # Runtime configuration
    # ========================================

    def set_enabled(self, enabled: bool) -> None:
        """
        Enable/disable detection.

        Disabling during speech emits SPEECH_ENDED right away so nothing
        stays ducked. Re-enabling starts from SILENT with fresh timers.
        """
        with self._lock:
            enabled = bool(enabled)
            if enabled == self.config.enabled:
                return

            self.config.enabled = enabled
            logger.info("vad_enabled_changed", enabled=enabled)

            if enabled:
                self.state_machine.reset()
                return

            event = self.state_machine.force_silence()
            if event is not None:
                self._emit(event)

    def set_threshold(self, threshold: float) -> float:
        """Set base threshold (clamped to 0.001-0.1)."""
        with self._lock:
            self.config.threshold = self.tracker.set_base_threshold(threshold)
            return self.config.threshold

    def set_min_speech_duration(self, duration_ms: int) -> int:
        with self._lock:
            value = clamp_duration_ms("min_speech_duration_ms", duration_ms, self.config.min_speech_duration_ms)
            self.config.min_speech_duration_ms = value
            self.state_machine.min_speech_duration_ms = value
            return value

    def set_silence_timeout(self, timeout_ms: int) -> int:
        with self._lock:
            value = clamp_duration_ms("silence_timeout_ms", timeout_ms, self.config.silence_timeout_ms)
            self.config.silence_timeout_ms = value
            self.state_machine.silence_timeout_ms = value
            return value

    # ========================================
    # Session lifecycle
    # ========================================

    def start_session(self) -> None:
        """Fresh energy state, SILENT, new metrics."""
        with self._lock:
            self.tracker.reset()
            self.state_machine.reset()
            self.metrics_tracker = MetricsTracker()
            logger.info("vad_session_started")

    def end_session(self) -> VADMetrics:
        """
        Close the session. Emits SPEECH_ENDED if speech was active.

        Returns:
            Final metrics of the session
        """
        with self._lock:
            event = self.state_machine.force_silence()
            if event is not None:
                self._emit(event)

            metrics = self.metrics_tracker.finalize()
            self.tracker.reset()
            logger.info("vad_session_finished", **metrics.to_dict())
            return metrics

    def get_current_metrics(self) -> VADMetrics:
        return self.metrics_tracker.get_current_metrics()

    def get_statistics(self) -> dict:
        """Overall detector statistics."""
        with self._lock:
            return {
                'config': self.config.to_dict(),
                'enabled': self.config.enabled,
                'is_speech_active': self.is_speech_active,
                'state_machine': self.state_machine.get_statistics(),
                'tracker': self.tracker.get_statistics(),
                'metrics': self.metrics_tracker.get_current_metrics().to_dict()
            }
