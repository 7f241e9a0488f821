# ambient_voice/infrastructure/adapters/audio/vad/functionality/__init__.py

"""VAD functionality modules - the per-frame detection pipeline."""

from .energy_analyzer import calculate_rms_energy, normalize_frame
from .threshold_tracker import ThresholdTracker, ThresholdUpdate
from .speech_state_machine import SpeechStateMachine
from .metrics_tracker import MetricsTracker

__all__ = [
    'calculate_rms_energy',
    'normalize_frame',
    'ThresholdTracker',
    'ThresholdUpdate',
    'SpeechStateMachine',
    'MetricsTracker'
]
