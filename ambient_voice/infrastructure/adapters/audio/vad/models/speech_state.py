# ambient_voice/infrastructure/adapters/audio/vad/models/speech_state.py

"""Speech state and event model."""

from enum import Enum


class SpeechState(Enum):
    """Speech state machine states"""
    SILENT = "silent"  # No speech
    PENDING_SPEECH = "pending_speech"  # Above threshold, not long enough yet
    ACTIVE = "active"  # Speech confirmed
    PENDING_SILENCE = "pending_silence"  # Below threshold, waiting for timeout

    @property
    def is_speaking(self) -> bool:
        """Speech has been announced and not yet ended."""
        return self in (SpeechState.ACTIVE, SpeechState.PENDING_SILENCE)


class SpeechEvent(Enum):
    """Externally observable transitions"""
    SPEECH_STARTED = "speech_started"
    SPEECH_ENDED = "speech_ended"
