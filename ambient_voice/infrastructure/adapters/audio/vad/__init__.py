# ambient_voice/infrastructure/adapters/audio/vad/__init__.py

"""
VAD (Voice Activity Detection) module.

Energy-based voice activity detection with:
- RMS energy with exponential smoothing
- Adaptive threshold (rolling average with a fixed floor)
- Minimum speech duration / silence timeout hysteresis
- Per-session metrics

Usage:
    from ambient_voice.infrastructure.adapters.audio.vad import (
        VoiceActivityDetector, VADConfig, SpeechEvent
    )

    detector = VoiceActivityDetector(VADConfig(threshold=0.02))
    detector.add_listener(lambda event: print(event.value))

    detector.start_session()
    for frame in frames:
        detector.process_frame(frame, now=time.monotonic() * 1000)
    metrics = detector.end_session()
"""

from .voice_activity_detector import VoiceActivityDetector
from .models import VADConfig, VADMetrics, SpeechState, SpeechEvent

__all__ = [
    'VoiceActivityDetector',
    'VADConfig',
    'VADMetrics',
    'SpeechState',
    'SpeechEvent'
]
