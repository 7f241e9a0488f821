# ambient_voice/infrastructure/adapters/audio/vad/functionality/speech_state_machine.py

"""Speech state machine - debounced speech signal with hysteresis."""

from typing import Optional

import structlog

from ..models import SpeechState, SpeechEvent

logger = structlog.get_logger()


class SpeechStateMachine:
    """
    Four-state speech detector driven once per frame.

    States:
    - SILENT: nothing happening
    - PENDING_SPEECH: above threshold, waiting for min_speech_duration
    - ACTIVE: speech confirmed (SPEECH_STARTED emitted)
    - PENDING_SILENCE: below threshold, waiting for silence_timeout

    Timestamps are passed in (milliseconds) so the machine is deterministic.
    """

    def __init__(
            self,
            min_speech_duration_ms: float = 300,
            silence_timeout_ms: float = 1000
    ):
        """
        Args:
            min_speech_duration_ms: Sustained speech needed to start
            silence_timeout_ms: Silence needed to end
        """
        self.min_speech_duration_ms = min_speech_duration_ms
        self.silence_timeout_ms = silence_timeout_ms

        self.state = SpeechState.SILENT
        self.speech_start_time: Optional[float] = None
        self.last_speech_time: Optional[float] = None

    @property
    def is_speech_active(self) -> bool:
        """SPEECH_STARTED was emitted and SPEECH_ENDED not yet."""
        return self.state.is_speaking

    def update(self, above_threshold: bool, now: float) -> Optional[SpeechEvent]:
        """
        Advance the machine by one frame.

        Args:
            above_threshold: smoothed energy > threshold for this frame
            now: Frame timestamp (ms)

        Returns:
            SPEECH_STARTED / SPEECH_ENDED on the transition frame, else None
        """
        if self.state == SpeechState.SILENT:
            if above_threshold:
                self.speech_start_time = now
                self.state = SpeechState.PENDING_SPEECH
            return None

        if self.state == SpeechState.PENDING_SPEECH:
            if not above_threshold:
                logger.debug(
                    "speech_false_start",
                    duration_ms=now - self.speech_start_time
                )
                self._transition_to_silent()
                return None

            if now - self.speech_start_time >= self.min_speech_duration_ms:
                self.state = SpeechState.ACTIVE
                self.last_speech_time = now
                return SpeechEvent.SPEECH_STARTED
            return None

        if self.state == SpeechState.ACTIVE:
            if above_threshold:
                self.last_speech_time = now
            else:
                self.state = SpeechState.PENDING_SILENCE
            return None

        # PENDING_SILENCE
        if above_threshold:
            # Re-arm without a second SPEECH_STARTED
            self.last_speech_time = now
            self.state = SpeechState.ACTIVE
            return None

        if now - self.last_speech_time >= self.silence_timeout_ms:
            self._transition_to_silent()
            return SpeechEvent.SPEECH_ENDED
        return None

    def force_silence(self) -> Optional[SpeechEvent]:
        """
        Jump straight to SILENT (VAD disabled or session ending).

        Returns:
            SPEECH_ENDED if speech had been announced, else None
        """
        was_speaking = self.state.is_speaking
        self._transition_to_silent()
        if was_speaking:
            return SpeechEvent.SPEECH_ENDED
        return None

    def reset(self) -> None:
        """Back to SILENT with all timers cleared (no event)."""
        self._transition_to_silent()

    def _transition_to_silent(self) -> None:
        self.state = SpeechState.SILENT
        self.speech_start_time = None
        self.last_speech_time = None

    def get_statistics(self) -> dict:
        return {
            'state': self.state.value,
            'speech_start_time': self.speech_start_time,
            'last_speech_time': self.last_speech_time,
            'min_speech_duration_ms': self.min_speech_duration_ms,
            'silence_timeout_ms': self.silence_timeout_ms
        }
