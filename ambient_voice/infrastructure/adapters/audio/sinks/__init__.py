# ambient_voice/infrastructure/adapters/audio/sinks/__init__.py

"""Audio sinks - gain-controllable outputs (looped track, synthesized tone)."""

from .gain_ramp import GainRamp, RampHandle, ThreadedRampRunner
from .base_sink import BaseAudioSink
from .track_sink import TrackSink, load_wav
from .tone_sink import ToneSink

__all__ = [
    'GainRamp',
    'RampHandle',
    'ThreadedRampRunner',
    'BaseAudioSink',
    'TrackSink',
    'ToneSink',
    'load_wav'
]
