# ambient_voice/infrastructure/adapters/audio/__init__.py

"""Audio adapters."""

from .sounddevice_capture import SoundDeviceCapture
from .vad import VoiceActivityDetector, VADConfig, VADMetrics, SpeechEvent, SpeechState
from .sinks import TrackSink, ToneSink

__all__ = [
    'SoundDeviceCapture',
    'VoiceActivityDetector',
    'VADConfig',
    'VADMetrics',
    'SpeechEvent',
    'SpeechState',
    'TrackSink',
    'ToneSink'
]
