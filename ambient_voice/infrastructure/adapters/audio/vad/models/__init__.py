# ambient_voice/infrastructure/adapters/audio/vad/models/__init__.py

"""VAD models - data classes for configuration, state and metrics."""

from .vad_config import VADConfig, MIN_THRESHOLD, MAX_THRESHOLD
from .speech_state import SpeechState, SpeechEvent
from .vad_metrics import VADMetrics

__all__ = [
    'VADConfig',
    'MIN_THRESHOLD',
    'MAX_THRESHOLD',
    'SpeechState',
    'SpeechEvent',
    'VADMetrics'
]
